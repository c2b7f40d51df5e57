"""
framelink.server
演示服务器：接受单连接，把收到的每条消息原样回送。
"""
from __future__ import annotations

import argparse
import sys
from typing import Optional

from .channel import FramedChannel
from .config import ChannelConfig, DEFAULT_FRAME_SIZE
from .errors import LinkError
from .log import setup_logging


def serve(channel: FramedChannel, port: str, host: Optional[str] = None) -> int:
    """bind 并接受一个连接，回显直到对端关闭；返回处理的消息数。"""
    channel.bind(port, host)
    print(f"[server] listening on {channel.local_address}")
    channel.accept_one()
    print(f"[server] accepted from {channel.peer_address}")

    count = 0
    for message in channel.messages():
        print(f"[server] recv {len(message)} bytes: {message!r}")
        channel.send(message)
        count += 1
    print(f"[server] peer closed after {count} messages")
    return count


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="accept one peer and echo its messages")
    ap.add_argument("--host", default=None, help="local address (default: any)")
    ap.add_argument("--port", default="9000")
    ap.add_argument("--frame-size", type=int, default=DEFAULT_FRAME_SIZE)
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    setup_logging(args.verbose)
    try:
        config = ChannelConfig(frame_size=args.frame_size)
    except ValueError as exc:
        ap.error(str(exc))

    with FramedChannel(config=config) as channel:
        try:
            serve(channel, args.port, args.host)
        except LinkError as err:
            print(f"[server] error {err}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
