"""
framelink.client
演示客户端：连接服务器，逐条发送消息并打印回显。
"""
from __future__ import annotations

import argparse
import sys
from typing import List

from .channel import FramedChannel
from .config import ChannelConfig, DEFAULT_FRAME_SIZE
from .errors import LinkError
from .log import setup_logging


def exchange(channel: FramedChannel, messages: List[bytes]) -> List[bytes]:
    replies = []
    for message in messages:
        channel.send(message)
        replies.append(channel.receive())
    return replies


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="send messages to a framelink server")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", default="9000")
    ap.add_argument("--local-port", default="0", help="local port to bind before connecting")
    ap.add_argument("--frame-size", type=int, default=DEFAULT_FRAME_SIZE)
    ap.add_argument("--message", action="append", help="may be repeated (default: hello)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    setup_logging(args.verbose)
    try:
        config = ChannelConfig(frame_size=args.frame_size)
    except ValueError as exc:
        ap.error(str(exc))

    messages = [m.encode("utf-8") for m in (args.message or ["hello"])]

    with FramedChannel(config=config) as channel:
        try:
            channel.bind(args.local_port)
            channel.connect_to(args.host, args.port)
            print(f"[client] connected to {channel.peer_address}")
            for reply in exchange(channel, messages):
                print(f"[client] recv: {reply.decode('utf-8', errors='replace')}")
        except LinkError as err:
            print(f"[client] error {err}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
