#!/usr/bin/env python3
import argparse
import asyncio
import sys

from websockets.exceptions import InvalidURI

from comms.feed_connection import FeedTransportError
from feed.client_core import FeedClient
from feed.envelope import InitPayloadError
from feed.runtime_constants import DEFAULT_FEED_ADDR


async def _run(client: FeedClient) -> None:
    client.install_signal_handlers()
    await client.run()


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Print the node snapshot pushed by an ethstats feed on connect")
    ap.add_argument("--addr", default=DEFAULT_FEED_ADDR, help=f"ethstats address (default: {DEFAULT_FEED_ADDR})")
    args = ap.parse_args(argv)

    try:
        client = FeedClient(args.addr)
    except InvalidURI as exc:
        print(f"Cannot parse URL: {exc}", file=sys.stderr)
        return 1

    try:
        asyncio.run(_run(client))
    except FeedTransportError as exc:
        print(exc, file=sys.stderr)
        return 1
    except InitPayloadError as exc:
        print(exc, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        # 시그널 핸들러 설치 전에 눌린 경우
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
