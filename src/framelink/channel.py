"""
framelink.channel
消息通道：在 TcpEndpoint 之上用定长帧发送/接收任意长度的消息。
"""
from __future__ import annotations

import logging
from typing import Iterator, Optional, Union

from .config import ChannelConfig, DEFAULT_FRAME_SIZE
from .endpoint import EndpointState, TcpEndpoint
from .errors import ShortRead
from .protocol import MessageAssembler, iter_frames
from .sockets import PortSpec

logger = logging.getLogger(__name__)


class FramedChannel:
    def __init__(
        self,
        frame_size: Optional[int] = None,
        *,
        config: Optional[ChannelConfig] = None,
        endpoint: Optional[TcpEndpoint] = None,
    ):
        if endpoint is not None:
            if config is not None and config != endpoint.config:
                raise ValueError("config conflicts with endpoint.config")
            config = endpoint.config
        elif config is None:
            config = ChannelConfig(frame_size=DEFAULT_FRAME_SIZE if frame_size is None else frame_size)
        if frame_size is not None and frame_size != config.frame_size:
            raise ValueError(f"frame_size {frame_size} conflicts with configured {config.frame_size}")
        self.config = config
        self.endpoint = endpoint or TcpEndpoint(config)

    @property
    def frame_size(self) -> int:
        return self.config.frame_size

    @property
    def state(self) -> EndpointState:
        return self.endpoint.state

    @property
    def is_bound(self) -> bool:
        return self.endpoint.is_bound

    @property
    def is_connected(self) -> bool:
        return self.endpoint.is_connected

    @property
    def local_address(self) -> Optional[tuple]:
        return self.endpoint.local_address

    @property
    def peer_address(self) -> Optional[tuple]:
        return self.endpoint.peer_address

    def bind(self, port: PortSpec, host: Optional[str] = None) -> None:
        self.endpoint.bind(port, host)

    def accept_one(self) -> None:
        self.endpoint.accept_one()

    def connect_to(self, host: str, port: PortSpec) -> None:
        self.endpoint.connect_to(host, port)

    def send(self, message: Union[bytes, bytearray, memoryview]) -> None:
        if not isinstance(message, (bytes, bytearray, memoryview)):
            raise TypeError("message must be bytes-like")
        data = bytes(message)
        count = 0
        for frame in iter_frames(data, self.frame_size):
            self.endpoint.write_exact(frame)
            count += 1
        logger.debug("sent %d bytes in %d frames", len(data), count)

    def receive(self) -> bytes:
        message = self._receive(eof_ok=False)
        if message is None:
            raise ShortRead("connection closed before a message arrived")
        return message

    def _receive(self, eof_ok: bool) -> Optional[bytes]:
        assembler = MessageAssembler(self.frame_size)
        count = 0
        while True:
            try:
                frame = self.endpoint.read_exact(self.frame_size)
            except ShortRead as exc:
                # 只有在消息边界上干净关闭才算正常结束
                if eof_ok and count == 0 and exc.received == 0:
                    return None
                raise
            message = assembler.feed(frame)
            count += 1
            if message is not None:
                logger.debug("received %d bytes in %d frames", len(message), count)
                return message

    def messages(self) -> Iterator[bytes]:
        """逐条产出消息，直到对端在消息边界上关闭连接。"""
        while True:
            message = self._receive(eof_ok=True)
            if message is None:
                return
            yield message

    def close(self) -> None:
        self.endpoint.close()

    def __enter__(self) -> "FramedChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FramedChannel(frame_size={self.frame_size}, state={self.state.value})"
