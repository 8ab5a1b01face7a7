from typing import Literal, Optional
from pydantic import BaseModel, Field


AllowedIPsMode = Literal["combined", "split"]


class RenderOptions(BaseModel):
    allowed_ips_mode: AllowedIPsMode = "combined"
    export_remote_endpoint: bool = False
    export_peers_total: bool = False
    handshake_timeout_seconds: Optional[int] = Field(default=None, gt=0)


class ExporterOptions(BaseModel):
    address: str = "0.0.0.0"
    port: int = Field(default=9586, ge=0, le=65535)
    verbose: bool = False

    # collector
    prepend_sudo: bool = False
    namespace: str = ""
    command_timeout: float = Field(default=5.0, gt=0)
    interfaces: list[str] = Field(default_factory=lambda: ["all"])

    # annotations
    config_files: list[str] = Field(default_factory=list)

    # rendering
    allowed_ips_mode: AllowedIPsMode = "combined"
    export_remote_endpoint: bool = False
    export_peers_total: bool = False
    handshake_timeout_seconds: Optional[int] = Field(default=None, gt=0)

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            allowed_ips_mode=self.allowed_ips_mode,
            export_remote_endpoint=self.export_remote_endpoint,
            export_peers_total=self.export_peers_total,
            handshake_timeout_seconds=self.handshake_timeout_seconds,
        )
