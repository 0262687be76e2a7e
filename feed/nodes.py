from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


class NodeDecodeError(ValueError):
    """노드 스냅샷 필드의 JSON 타입이 스키마와 맞지 않을 때."""

    def __init__(self, path: str, expected: str, value: Any):
        self.path = path
        self.expected = expected
        super().__init__(f"{path}: expected {expected}, got {type(value).__name__}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _str(raw: dict, key: str, path: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise NodeDecodeError(f"{path}.{key}", "string", value)
    return value


def _bool(raw: dict, key: str, path: str) -> bool:
    value = raw.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise NodeDecodeError(f"{path}.{key}", "boolean", value)
    return value


def _to_int(value: Any, path: str) -> int:
    if not _is_number(value):
        raise NodeDecodeError(path, "integer", value)
    if isinstance(value, float):
        if not value.is_integer():
            raise NodeDecodeError(path, "integer", value)
        return int(value)
    return value


def _int(raw: dict, key: str, path: str) -> int:
    value = raw.get(key)
    if value is None:
        return 0
    return _to_int(value, f"{path}.{key}")


def _list(raw: dict, key: str, path: str) -> List[Any]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise NodeDecodeError(f"{path}.{key}", "array", value)
    return value


def _int_list(raw: dict, key: str, path: str) -> List[int]:
    items = _list(raw, key, path)
    # null 원소는 0 으로
    return [0 if v is None else _to_int(v, f"{path}.{key}[{i}]") for i, v in enumerate(items)]


def _float_list(raw: dict, key: str, path: str) -> List[float]:
    out: List[float] = []
    for i, v in enumerate(_list(raw, key, path)):
        if v is None:
            out.append(0)
            continue
        if not _is_number(v):
            raise NodeDecodeError(f"{path}.{key}[{i}]", "number", v)
        # 정수값은 52.0 이 아니라 52 로 출력
        out.append(int(v) if isinstance(v, float) and v.is_integer() else v)
    return out


def _obj(raw: dict, key: str, path: str) -> dict:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise NodeDecodeError(f"{path}.{key}", "object", value)
    return value


@dataclass
class NodeInfo:
    name: str = ""
    node: str = ""
    port: int = 0
    net: str = ""
    protocol: str = ""
    api: str = ""
    os: str = ""
    os_v: str = ""
    client: str = ""
    canUpdateHistory: bool = False
    data: Dict[str, Any] = field(default_factory=dict)  # 내용은 버리고 항상 {}
    ip: str = ""

    @classmethod
    def from_dict(cls, raw: dict, path: str) -> "NodeInfo":
        _obj(raw, "data", path)
        return cls(
            name=_str(raw, "name", path),
            node=_str(raw, "node", path),
            port=_int(raw, "port", path),
            net=_str(raw, "net", path),
            protocol=_str(raw, "protocol", path),
            api=_str(raw, "api", path),
            os=_str(raw, "os", path),
            os_v=_str(raw, "os_v", path),
            client=_str(raw, "client", path),
            canUpdateHistory=_bool(raw, "canUpdateHistory", path),
            ip=_str(raw, "ip", path),
        )


@dataclass
class NodeGeo:
    range: List[int] = field(default_factory=list)
    country: str = ""
    region: str = ""
    city: str = ""
    ll: List[float] = field(default_factory=list)  # [lat, long]
    metro: int = 0

    @classmethod
    def from_dict(cls, raw: dict, path: str) -> "NodeGeo":
        return cls(
            range=_int_list(raw, "range", path),
            country=_str(raw, "country", path),
            region=_str(raw, "region", path),
            city=_str(raw, "city", path),
            ll=_float_list(raw, "ll", path),
            metro=_int(raw, "metro", path),
        )


@dataclass
class NodeStats:
    active: bool = False
    mining: bool = False
    hashrate: int = 0
    peers: int = 0
    pending: int = 0
    gasPrice: int = 0
    syncing: bool = False
    propagationAvg: int = 0
    latency: str = ""
    uptime: int = 0

    @classmethod
    def from_dict(cls, raw: dict, path: str) -> "NodeStats":
        return cls(
            active=_bool(raw, "active", path),
            mining=_bool(raw, "mining", path),
            hashrate=_int(raw, "hashrate", path),
            peers=_int(raw, "peers", path),
            pending=_int(raw, "pending", path),
            gasPrice=_int(raw, "gasPrice", path),
            syncing=_bool(raw, "syncing", path),
            propagationAvg=_int(raw, "propagationAvg", path),
            latency=_str(raw, "latency", path),
            uptime=_int(raw, "uptime", path),
        )


@dataclass
class NodeUptime:
    started: int = 0
    up: int = 0
    down: int = 0
    lastStatus: bool = False
    lastUpdate: int = 0

    @classmethod
    def from_dict(cls, raw: dict, path: str) -> "NodeUptime":
        return cls(
            started=_int(raw, "started", path),
            up=_int(raw, "up", path),
            down=_int(raw, "down", path),
            lastStatus=_bool(raw, "lastStatus", path),
            lastUpdate=_int(raw, "lastUpdate", path),
        )


@dataclass
class NodeSnapshot:
    """
    init 프레임의 노드 한 개.
    필드 이름/중첩은 와이어 스키마 그대로 두고, 값은 해석하지 않고 통과시킨다.
    없는 필드는 0 값("", 0, False, [])으로 채운다.
    """

    id: str = ""
    trusted: bool = False
    info: NodeInfo = field(default_factory=NodeInfo)
    geo: NodeGeo = field(default_factory=NodeGeo)
    stats: NodeStats = field(default_factory=NodeStats)
    history: List[int] = field(default_factory=list)
    uptime: NodeUptime = field(default_factory=NodeUptime)
    spark: str = ""

    @classmethod
    def from_dict(cls, raw: Optional[dict], path: str = "node") -> "NodeSnapshot":
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise NodeDecodeError(path, "object", raw)
        return cls(
            id=_str(raw, "id", path),
            trusted=_bool(raw, "trusted", path),
            info=NodeInfo.from_dict(_obj(raw, "info", path), f"{path}.info"),
            geo=NodeGeo.from_dict(_obj(raw, "geo", path), f"{path}.geo"),
            stats=NodeStats.from_dict(_obj(raw, "stats", path), f"{path}.stats"),
            history=_int_list(raw, "history", path),
            uptime=NodeUptime.from_dict(_obj(raw, "uptime", path), f"{path}.uptime"),
            spark=_str(raw, "spark", path),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def decode_node_list(nodes: Any, path: str = "nodes") -> List[NodeSnapshot]:
    """
    init 페이로드의 nodes 값을 NodeSnapshot 리스트로 변환.
    허용: {key: node, ...} (키는 버리고 순서 유지), [node, ...], null(빈 리스트).
    """
    if nodes is None:
        return []
    if isinstance(nodes, dict):
        return [NodeSnapshot.from_dict(v, f"{path}[{k!r}]") for k, v in nodes.items()]
    if isinstance(nodes, list):
        return [NodeSnapshot.from_dict(v, f"{path}[{i}]") for i, v in enumerate(nodes)]
    raise NodeDecodeError(path, "object or array of objects", nodes)


def nodes_to_json_ready(nodes: List[NodeSnapshot]) -> List[Dict[str, Any]]:
    return [n.to_dict() for n in nodes]
