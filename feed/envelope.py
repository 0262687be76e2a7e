import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from feed.nodes import NodeDecodeError, NodeSnapshot, decode_node_list
from feed.runtime_constants import INIT_TAG, NODES_KEY, READY_TAG


class EnvelopeError(ValueError):
    """프레임이 {"emit": [tag, ...]} 형태로 읽히지 않을 때. 읽기 루프를 조용히 끝낸다."""


class InitPayloadError(ValueError):
    """init 프레임인데 노드 목록을 해석할 수 없을 때. 치명적 오류."""


@dataclass(frozen=True)
class Envelope:
    tag: str
    args: List[Any] = field(default_factory=list)


@dataclass
class InitMessage:
    nodes: List[NodeSnapshot]


@dataclass(frozen=True)
class IgnoredMessage:
    tag: str


FeedMessage = Union[InitMessage, IgnoredMessage]


def encode_envelope(tag: str, *args: Any) -> str:
    return json.dumps({"emit": [tag, *args]}, separators=(",", ":"), ensure_ascii=False)


READY_FRAME = encode_envelope(READY_TAG)  # '{"emit":["ready"]}'


def decode_envelope(raw) -> Optional[Envelope]:
    """
    텍스트/바이너리 프레임 하나를 Envelope 로 디코딩.
    emit 키가 없는 JSON 객체는 None (무시할 프레임).
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EnvelopeError(f"frame is not utf-8: {exc}") from exc
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise EnvelopeError(f"frame is not json: {exc}") from exc
    if not isinstance(payload, dict):
        raise EnvelopeError(f"frame is not an object: {type(payload).__name__}")
    emit = payload.get("emit")
    if emit is None:
        return None
    if not isinstance(emit, list) or not emit:
        raise EnvelopeError("emit must be a non-empty array")
    tag = emit[0]
    if not isinstance(tag, str):
        raise EnvelopeError(f"emit tag must be a string, got {type(tag).__name__}")
    return Envelope(tag=tag, args=list(emit[1:]))


def parse_message(env: Envelope) -> FeedMessage:
    # init 외의 태그는 페이로드를 보지 않는다
    if env.tag != INIT_TAG:
        return IgnoredMessage(env.tag)
    if not env.args or not isinstance(env.args[0], dict):
        raise InitPayloadError("init payload must be an object")
    try:
        nodes = decode_node_list(env.args[0].get(NODES_KEY), NODES_KEY)
    except NodeDecodeError as exc:
        raise InitPayloadError(f"cannot decode node list: {exc}") from exc
    return InitMessage(nodes)
