import argparse
import asyncio
import json
import random
import sys
import time
from typing import List, Optional

import websockets  # pip install websockets

from feed.envelope import encode_envelope

CLIENTS = ["Geth/v1.13.5-stable/linux-amd64/go1.21.4", "Nethermind/v1.25.4", "erigon/2.55.1/linux-amd64"]
CITIES = [("DE", "Berlin", [52.52, 13.405]), ("US", "Ashburn", [39.0438, -77.4874]), ("KR", "Seoul", [37.5665, 126.978])]


def make_node(idx: int) -> dict:
    """
    클라이언트가 기대하는 ethstats 노드 형태 그대로 랜덤 생성.
    일부 필드는 일부러 빼서 기본값 채우기가 동작하는지 보이게 한다.
    """
    country, city, ll = random.choice(CITIES)
    now_ms = int(time.time() * 1000)
    return {
        "id": f"node-{idx}",
        "trusted": idx % 2 == 0,
        "info": {
            "name": f"goerli-node-{idx}",
            "node": random.choice(CLIENTS),
            "port": 30303,
            "net": "5",
            "protocol": "eth/68",
            "api": "No",
            "os": "linux",
            "os_v": "x64",
            "client": "0.1.1",
            "canUpdateHistory": True,
        },
        "geo": {
            "range": [now_ms // 1000 - 100, now_ms // 1000],
            "country": country,
            "region": "",
            "city": city,
            "ll": ll,
            "metro": 0,
        },
        "stats": {
            "active": True,
            "mining": False,
            "hashrate": 0,
            "peers": random.randint(5, 50),
            "pending": random.randint(0, 200),
            "gasPrice": random.randint(1, 50) * 10**9,
            "syncing": False,
            "propagationAvg": random.randint(50, 500),
            "latency": str(random.randint(1, 300)),
            "uptime": 100,
        },
        "history": [random.randint(-1, 400) for _ in range(40)],
        "uptime": {
            "started": now_ms - 3600 * 1000,
            "up": 3600 * 1000,
            "down": 0,
            "lastStatus": True,
            "lastUpdate": now_ms,
        },
        "spark": "",
    }


def make_init_frame(nodes) -> str:
    """nodes 가 리스트면 id 를 키로 하는 dict 로 바꿔서 보낸다."""
    if isinstance(nodes, list):
        nodes = {n.get("id") or f"n{i}": n for i, n in enumerate(nodes)}
    return encode_envelope("init", {"nodes": nodes})


class MockFeedServer:
    """
    ethstats primus 흉내 서버.
    ready 를 받으면 frames 를 순서대로 보내고, close_after 면 연결을 끊는다.
    frames 를 안 주면 pong 잡음 하나 + 랜덤 노드 init 하나.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 0,
        frames: Optional[List[str]] = None,
        node_count: int = 3,
        close_after: bool = False,
    ):
        self.host = host
        self.port = int(port)
        if frames is None:
            frames = [
                encode_envelope("pong", {"serverTime": int(time.time() * 1000)}),
                make_init_frame([make_node(i + 1) for i in range(node_count)]),
            ]
        self.frames = list(frames)
        self.close_after = close_after
        self.received: List[str] = []
        self.close_codes: List[Optional[int]] = []
        self._server = None

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}/primus/"

    async def handler(self, ws):
        print("[MockFeed] client connected", file=sys.stderr)
        try:
            async for raw in ws:
                self.received.append(raw)
                try:
                    tag = json.loads(raw)["emit"][0]
                except Exception:
                    continue
                if tag != "ready":
                    continue
                for frame in self.frames:
                    await ws.send(frame)
                if self.close_after:
                    await ws.close()
                    break
        except Exception as exc:
            print(f"[MockFeed] client error: {exc}", file=sys.stderr)
        finally:
            self.close_codes.append(ws.close_code)
            print(f"[MockFeed] client disconnected (code={ws.close_code})", file=sys.stderr)

    async def start(self) -> None:
        self._server = await websockets.serve(self.handler, self.host, self.port)
        # port=0 이면 실제 바인드된 포트로 갱신
        self.port = self._server.sockets[0].getsockname()[1]
        print(f"[MockFeed] listening on {self.url}", file=sys.stderr)

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()

    async def __aenter__(self) -> "MockFeedServer":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()


async def main():
    ap = argparse.ArgumentParser(description="Local ethstats feed that answers 'ready' with an 'init' snapshot")
    ap.add_argument("--host", default="0.0.0.0")
    ap.add_argument("--port", type=int, default=18000)
    ap.add_argument("--nodes", type=int, default=3, help="number of generated nodes (default: 3)")
    args = ap.parse_args()

    server = MockFeedServer(args.host, args.port, node_count=args.nodes)
    async with server:
        await asyncio.Future()  # run forever


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
