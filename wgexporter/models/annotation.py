from dataclasses import dataclass


@dataclass
class PeerAnnotation:
    public_key: str
    friendly_name: str | None = None
    # insertion order is the order the keys appeared in the comment
    friendly_json: dict[str, str] | None = None

    def labels(self) -> list[tuple[str, str]]:
        "friendly_json keys sorted by name, then friendly_name last"

        labels: list[tuple[str, str]] = []
        if self.friendly_json:
            labels.extend(sorted(self.friendly_json.items()))
        if self.friendly_name is not None:
            labels.append(("friendly_name", self.friendly_name))
        return labels
