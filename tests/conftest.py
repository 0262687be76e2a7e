import asyncio
import sys
import threading
from pathlib import Path

import pytest

# 루트의 comms/, feed/, ws_mock_server.py 를 import 하기 위해
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ws_mock_server import MockFeedServer  # noqa: E402


@pytest.fixture
def threaded_feed_server():
    """
    MockFeedServer 를 별도 스레드의 이벤트 루프에서 띄운다.
    feed_main.main() 처럼 asyncio.run() 을 직접 부르는 코드를 테스트할 때 사용.
    """
    started = []

    def _start(**kwargs) -> MockFeedServer:
        server = MockFeedServer(**kwargs)
        loop = asyncio.new_event_loop()
        ready = threading.Event()

        def _runner():
            asyncio.set_event_loop(loop)
            loop.run_until_complete(server.start())
            ready.set()
            loop.run_forever()

        th = threading.Thread(target=_runner, daemon=True)
        th.start()
        ready.wait(timeout=5.0)
        started.append((server, loop, th))
        return server

    yield _start

    for server, loop, th in started:
        asyncio.run_coroutine_threadsafe(server.stop(), loop).result(timeout=5.0)
        loop.call_soon_threadsafe(loop.stop)
        th.join(timeout=2.0)
