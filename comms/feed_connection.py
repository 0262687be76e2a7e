import json
import sys
from typing import List, Optional, TextIO

import websockets  # pip install websockets
from websockets.uri import parse_uri

from feed.envelope import READY_FRAME, InitMessage, decode_envelope, parse_message
from feed.nodes import NodeSnapshot, nodes_to_json_ready
from feed.runtime_constants import CLOSE_CODE_NORMAL, CLOSE_GRACE_SEC, JSON_INDENT


class FeedTransportError(RuntimeError):
    """접속/핸드셰이크 실패, ready 전송 실패."""


def parse_endpoint(addr: str) -> str:
    """ws:// 또는 wss:// URI 검증. 실패하면 websockets InvalidURI 가 그대로 올라간다."""
    parse_uri(addr)
    return addr


class FeedConnection:
    """
    ethstats primus 피드에 붙는 단일 WebSocket 연결.
    ready 한 번 보내고, init 프레임이 올 때까지 읽는다.
    """

    def __init__(
        self,
        addr: str,
        out: Optional[TextIO] = None,
        close_timeout: float = CLOSE_GRACE_SEC,
    ):
        self.addr = parse_endpoint(addr)
        self.out = out
        self.close_timeout = close_timeout
        self.ws = None

    async def open(self) -> None:
        try:
            # 접속/초기 대기에는 타임아웃 없음, close 만 제한
            self.ws = await websockets.connect(
                self.addr,
                open_timeout=None,
                ping_interval=None,
                close_timeout=self.close_timeout,
            )
        except Exception as exc:
            raise FeedTransportError(f"dial: {exc}") from exc

    async def send_ready(self) -> None:
        try:
            await self.ws.send(READY_FRAME)
        except Exception as exc:
            raise FeedTransportError(f"cannot write message to transport: {exc}") from exc

    async def read_until_init(self) -> Optional[List[NodeSnapshot]]:
        """
        읽기 루프. init 을 처리하면 노드 리스트를 돌려준다.
        연결 종료/수신 오류/깨진 프레임은 구분하지 않고 None 으로 조용히 끝낸다.
        init 페이로드가 깨졌으면 InitPayloadError 가 올라간다.
        """
        while True:
            try:
                raw = await self.ws.recv()
                env = decode_envelope(raw)
            except Exception:
                # EnvelopeError 포함, 전부 "스트림 끝" 으로 취급
                return None
            if env is None:
                continue
            msg = parse_message(env)
            if isinstance(msg, InitMessage):
                self._write_nodes(msg.nodes)
                return msg.nodes

    def _write_nodes(self, nodes: List[NodeSnapshot]) -> None:
        out = self.out or sys.stdout
        out.write(json.dumps(nodes_to_json_ready(nodes), indent=JSON_INDENT, ensure_ascii=False))
        out.write("\n")
        out.flush()

    async def close(self, code: int = CLOSE_CODE_NORMAL) -> None:
        # close_timeout 이 지나면 websockets 가 transport 를 끊는다
        if self.ws is not None:
            await self.ws.close(code=code)

    def abort(self) -> None:
        """close 핸드셰이크 없이 TCP 를 바로 끊는다. 이미 닫혔으면 아무것도 안 함."""
        if self.ws is not None:
            self.ws.transport.abort()
