import asyncio
import enum
import signal
import sys
from typing import List, Optional, TextIO

from comms.feed_connection import FeedConnection
from feed.nodes import NodeSnapshot
from feed.runtime_constants import CLOSE_CODE_NORMAL, CLOSE_GRACE_SEC


class ClientState(enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    CLOSED = "closed"


class FeedClient:
    """
    피드에 한 번 붙어서 init 스냅샷을 받아 출력하고 끝나는 클라이언트.

    읽기 루프는 별도 task 로 돌고, run() 은 두 이벤트 중 먼저 오는 쪽을 기다린다:
      - 읽기 task 종료 (init 처리 또는 스트림 끝) -> COMPLETED
      - 인터럽트 -> INTERRUPTED, close frame 전송 후 읽기 task 종료 또는
        close_grace 초 중 먼저 오는 쪽까지 기다림
    어느 경로든 마지막엔 CLOSED.
    """

    def __init__(self, addr: str, out: Optional[TextIO] = None, close_grace: float = CLOSE_GRACE_SEC):
        self.conn = FeedConnection(addr, out=out, close_timeout=close_grace)
        self.close_grace = float(close_grace)
        self.state = ClientState.RUNNING
        self._interrupted: Optional[asyncio.Event] = None
        self._reader: Optional["asyncio.Task[Optional[List[NodeSnapshot]]]"] = None

    @property
    def addr(self) -> str:
        return self.conn.addr

    def interrupt(self) -> None:
        """외부 인터럽트(SIGINT 등). 이벤트 루프 스레드에서 호출."""
        if self._interrupted is None:
            self._interrupted = asyncio.Event()
        self._interrupted.set()

    def install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self.interrupt)
        except (NotImplementedError, RuntimeError):
            # add_signal_handler 미지원 플랫폼
            signal.signal(signal.SIGINT, lambda *_: loop.call_soon_threadsafe(self.interrupt))

    async def run(self) -> Optional[List[NodeSnapshot]]:
        """
        연결 -> ready 전송 -> 대기. init 을 받았으면 노드 리스트, 아니면 None.
        FeedTransportError / InitPayloadError 는 호출자에게 그대로 올라간다.
        """
        if self._interrupted is None:
            self._interrupted = asyncio.Event()
        print(f"Connecting to {self.addr}", file=sys.stderr)
        await self.conn.open()
        try:
            self._reader = asyncio.create_task(self.conn.read_until_init())
            await self.conn.send_ready()
            return await self._wait()
        finally:
            await self._cleanup()
            self.state = ClientState.CLOSED

    async def _wait(self) -> Optional[List[NodeSnapshot]]:
        waiter = asyncio.create_task(self._interrupted.wait())
        try:
            done, _ = await asyncio.wait({self._reader, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
        # 둘 다 끝났으면 완료 쪽이 우선
        if self._reader in done:
            self.state = ClientState.COMPLETED
            return self._reader.result()
        self.state = ClientState.INTERRUPTED
        await self._graceful_close()
        # grace 구간 안에 끝난 읽기 결과도 버리지 않는다 (깨진 init 이면 여기서 올라감)
        if self._reader.done():
            return self._reader.result()
        return None

    async def _graceful_close(self) -> None:
        print("[FeedClient] interrupt", file=sys.stderr)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.close_grace
        try:
            await self.conn.close(CLOSE_CODE_NORMAL)
        except Exception as exc:
            print(f"[FeedClient] write close: {exc}", file=sys.stderr)
            return
        remaining = max(0.0, deadline - loop.time())
        await asyncio.wait({self._reader}, timeout=remaining)

    async def _cleanup(self) -> None:
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        # close 핸드셰이크는 기다리지 않고 소켓만 끊는다
        self.conn.abort()
