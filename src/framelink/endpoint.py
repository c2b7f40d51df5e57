"""
framelink.endpoint
单连接 TCP 端点：管理 UNBOUND -> BOUND -> CONNECTED 生命周期，
连接建立后提供精确字节数的读写。
"""
from __future__ import annotations

import logging
import socket
from enum import Enum
from typing import Optional

from . import sockets
from .config import ChannelConfig
from .errors import AlreadyBound, AlreadyConnected, NotBound, NotConnected

logger = logging.getLogger(__name__)


class EndpointState(Enum):
    UNBOUND = "unbound"
    BOUND = "bound"
    CONNECTED = "connected"
    CLOSED = "closed"


class TcpEndpoint:
    """
    独占持有两个 OS 句柄：本地 socket（bind 后存在）与对端 socket（连接后存在）。
    close() 先释放对端再释放本地，可重复调用；with 语句退出和对象回收时都会执行。
    """

    def __init__(self, config: Optional[ChannelConfig] = None):
        self.config = config or ChannelConfig()
        self._sock: Optional[socket.socket] = None
        self._peer: Optional[socket.socket] = None
        self._closed = False

    @property
    def frame_size(self) -> int:
        return self.config.frame_size

    @property
    def is_bound(self) -> bool:
        return self._sock is not None

    @property
    def is_connected(self) -> bool:
        return self._peer is not None

    @property
    def state(self) -> EndpointState:
        if self._closed:
            return EndpointState.CLOSED
        if self.is_connected:
            return EndpointState.CONNECTED
        if self.is_bound:
            return EndpointState.BOUND
        return EndpointState.UNBOUND

    @property
    def local_address(self) -> Optional[tuple]:
        return self._sock.getsockname() if self._sock is not None else None

    @property
    def peer_address(self) -> Optional[tuple]:
        return self._peer.getpeername() if self._peer is not None else None

    def bind(self, port: sockets.PortSpec, host: Optional[str] = None) -> None:
        if self._closed:
            raise AlreadyBound("socket already closed")
        if self.is_bound:
            raise AlreadyBound("socket already bound")
        self._sock = sockets.resolve_and_bind_local(
            port, host, reuse_address=self.config.reuse_address
        )
        logger.debug("endpoint bound to %s", self.local_address)

    def _check_can_connect(self) -> None:
        if not self.is_bound:
            raise NotBound("socket unbound")
        if self.is_connected:
            raise AlreadyConnected("socket already connected")

    def accept_one(self) -> None:
        self._check_can_connect()
        self._peer = sockets.listen_and_accept_one(self._sock, self.config.accept_retry)
        logger.debug("endpoint connected to %s (accepted)", self.peer_address)

    def connect_to(self, host: str, port: sockets.PortSpec) -> None:
        self._check_can_connect()
        self._peer = sockets.resolve_and_connect(host, port)
        logger.debug("endpoint connected to %s", self.peer_address)

    def _require_connected(self) -> socket.socket:
        if self._peer is None:
            raise NotConnected("socket disconnected")
        return self._peer

    def write_exact(self, data: bytes) -> None:
        sockets.raw_write(self._require_connected(), data)

    def read_exact(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("n must be >= 0")
        return sockets.raw_read(self._require_connected(), n)

    def close(self) -> None:
        peer, sock = self._peer, self._sock
        self._peer = None
        self._sock = None
        if peer is not None or sock is not None:
            logger.debug("endpoint closing")
        # 对端句柄先于本地句柄释放
        sockets.release_handle(peer)
        sockets.release_handle(sock)
        self._closed = True

    def __enter__(self) -> "TcpEndpoint":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        # __init__ 可能未完成
        if getattr(self, "_closed", True) is False:
            self.close()

    def __repr__(self) -> str:
        return f"TcpEndpoint(frame_size={self.frame_size}, state={self.state.value})"
