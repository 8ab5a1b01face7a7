import enum
import json
import math
import re
from typing import Iterable
from wgexporter.common.errors import AnnotationFileError
from wgexporter.common.logger import get_logger
from wgexporter.models.annotation import PeerAnnotation


logger = get_logger("annotations")

FRIENDLY_NAME = "friendly_name"
FRIENDLY_JSON = "friendly_json"

LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
RESERVED_LABELS = {"interface", "public_key", "allowed_ips", "endpoint", "remote_port", FRIENDLY_NAME}
RESERVED_LABEL_RE = re.compile(r"^allowed_(ip|subnet)_[0-9]+$")


class ParserState(enum.Enum):
    SEARCHING = enum.auto()
    IN_PEER_BLOCK = enum.auto()


class FriendlyJsonError(ValueError):
    pass


def _reject_constant(name: str):
    raise FriendlyJsonError("{} is not allowed".format(name))


def coerce_json_scalar(value) -> str:
    "true/false for booleans, plain digits for integers, shortest round-trip repr for floats"

    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise FriendlyJsonError("non-finite number {!r}".format(value))
        return repr(value)
    if isinstance(value, str):
        return value
    raise FriendlyJsonError("unsupported value {!r}, only flat strings, numbers and booleans are allowed".format(value))


def check_label_name(key: str):
    if not LABEL_NAME_RE.match(key) or key.startswith('__'):
        raise FriendlyJsonError("{!r} is not a valid label name".format(key))
    if key in RESERVED_LABELS or RESERVED_LABEL_RE.match(key):
        raise FriendlyJsonError("{!r} collides with a built-in label".format(key))


def parse_friendly_json(text: str, source: str = '<string>') -> dict[str, str]:
    """
    Parse a flat json object into label name -> string value.

    A bad value (not json, not an object, nested or non-finite values) rejects
    the whole object. A key that is not a usable label name is dropped with a
    warning and the remaining keys are kept.
    """
    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise FriendlyJsonError("invalid json: {}".format(e))

    if not isinstance(data, dict):
        raise FriendlyJsonError("expected a json object, got {}".format(type(data).__name__))

    labels: dict[str, str] = {}
    for key, value in data.items():
        value = coerce_json_scalar(value)
        try:
            check_label_name(key)
        except FriendlyJsonError as e:
            logger.warning('{}: dropping friendly_json key: {}'.format(source, e))
            continue
        labels[key] = value

    return labels


def split_comment_assignment(line: str):
    "# key = value -> (key, value); None if the comment has no '='"

    body = line.lstrip()[1:]
    key, sep, value = body.partition('=')
    if not sep:
        return None
    return key.strip(), value.strip()


def split_assignment(line: str):
    "PublicKey = abc= # comment -> (publickey, abc=)"

    key, sep, value = line.partition('=')
    if not sep:
        return None
    value = value.split('#', 1)[0]
    return key.strip().lower(), value.strip()


class AnnotationParser:
    """
    Two-state scanner over a WireGuard configuration file.

    SEARCHING skips everything until a [Peer] header. IN_PEER_BLOCK collects the
    PublicKey (first one wins) and the friendly_name / friendly_json comments
    (last one wins) into a pending record, committed at the next section header
    or at the end of the input. Blocks without a PublicKey are dropped.
    """

    def __init__(self, source: str = '<string>'):
        self.source = source
        self.annotations: dict[str, PeerAnnotation] = {}
        self._reset(ParserState.SEARCHING)

    def _reset(self, state: ParserState):
        self.state = state
        self.pending_public_key: str | None = None
        self.pending_name: str | None = None
        self.pending_json: dict[str, str] | None = None

    def _commit(self):
        if self.state is not ParserState.IN_PEER_BLOCK:
            return

        if not self.pending_public_key:
            if self.pending_name is not None or self.pending_json is not None:
                logger.debug('{}: dropping [Peer] annotation without PublicKey'.format(self.source))
            return

        if self.pending_name is None and self.pending_json is None:
            return

        self.annotations[self.pending_public_key] = PeerAnnotation(
            public_key=self.pending_public_key,
            friendly_name=self.pending_name,
            friendly_json=self.pending_json,
        )

    def _on_comment(self, lineno: int, line: str):
        kv = split_comment_assignment(line)
        if kv is None:
            return

        key, value = kv
        if key == FRIENDLY_NAME:
            if value:
                self.pending_name = value
        elif key == FRIENDLY_JSON:
            try:
                self.pending_json = parse_friendly_json(value, source='{}:{}'.format(self.source, lineno))
            except FriendlyJsonError as e:
                logger.warning('{}:{}: ignoring malformed friendly_json: {}'.format(self.source, lineno, e))

    def feed_line(self, lineno: int, raw_line: str):
        line = raw_line.strip()
        if not line:
            return

        if line.startswith('['):
            self._commit()
            if line.split('#', 1)[0].strip().lower() == '[peer]':
                self._reset(ParserState.IN_PEER_BLOCK)
            else:
                self._reset(ParserState.SEARCHING)
            return

        if self.state is ParserState.SEARCHING:
            return

        if line.startswith('#'):
            self._on_comment(lineno, line)
            return

        kv = split_assignment(line)
        if kv and kv[0] == 'publickey' and self.pending_public_key is None and kv[1]:
            self.pending_public_key = kv[1]

    def finish(self) -> dict[str, PeerAnnotation]:
        self._commit()
        self._reset(ParserState.SEARCHING)
        return self.annotations

    def parse(self, text: str) -> dict[str, PeerAnnotation]:
        for lineno, line in enumerate(text.splitlines(), start=1):
            self.feed_line(lineno, line)
        return self.finish()


def parse_annotations(text: str, source: str = '<string>') -> dict[str, PeerAnnotation]:
    return AnnotationParser(source).parse(text)


def merge_annotations(texts: Iterable[str], sources: Iterable[str] | None = None) -> dict[str, PeerAnnotation]:
    "Later texts override earlier ones for the same public key."

    texts = list(texts)
    sources = list(sources) if sources is not None else ['<config #{}>'.format(idx) for idx in range(len(texts))]

    merged: dict[str, PeerAnnotation] = {}
    for source, text in zip(sources, texts):
        merged.update(parse_annotations(text, source=source))
    return merged


def read_annotation_files(paths: list[str]) -> list[str]:
    texts: list[str] = []
    for path in paths:
        try:
            with open(path, "r", encoding="utf-8") as f:
                texts.append(f.read())
        except (OSError, UnicodeDecodeError) as e:
            raise AnnotationFileError(path, str(e))

    return texts


def load_annotations(paths: list[str]) -> dict[str, PeerAnnotation]:
    if not paths:
        return {}

    merged = merge_annotations(read_annotation_files(paths), sources=paths)
    logger.debug('loaded {} peer annotations from {} files'.format(len(merged), len(paths)))
    return merged
