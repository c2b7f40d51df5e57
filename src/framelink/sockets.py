"""
framelink.sockets
操作系统层 TCP 管道：地址解析、bind/connect/accept，以及按字节数精确读写。
上层（TcpEndpoint）只通过这里的函数接触 socket。
"""
from __future__ import annotations

import errno
import logging
import socket
import time
from typing import List, Optional, Tuple, Union

from .config import RetryPolicy
from .errors import (
    BindFailed,
    ConnectFailed,
    ListenFailed,
    ReadFailed,
    ResolutionFailed,
    ShortRead,
    WriteFailed,
)

logger = logging.getLogger(__name__)

PortSpec = Union[str, int]
AddrInfo = Tuple[int, int, int, str, tuple]

# accept(2): 这些错误不会破坏监听状态，可直接重试
TRANSIENT_ACCEPT_ERRNOS = frozenset(
    code
    for code in (
        getattr(errno, name, None)
        for name in (
            "EINTR",
            "EAGAIN",
            "EWOULDBLOCK",
            "ECONNABORTED",
            "EPROTO",
            "ENETDOWN",
            "ENOPROTOOPT",
            "EHOSTDOWN",
            "ENONET",
            "EHOSTUNREACH",
            "EOPNOTSUPP",
            "ENETUNREACH",
        )
    )
    if code is not None
)


def _resolve(host: Optional[str], port: PortSpec, passive: bool) -> List[AddrInfo]:
    flags = socket.AI_PASSIVE if passive else 0
    try:
        infos = socket.getaddrinfo(host, str(port), socket.AF_UNSPEC, socket.SOCK_STREAM, 0, flags)
    except socket.gaierror as exc:
        raise ResolutionFailed(
            f"couldn't resolve {host or '*'}:{port}: {exc.strerror or exc}", code=exc.errno
        ) from exc
    if not infos:
        raise ResolutionFailed(f"no address found for {host or '*'}:{port}")
    return infos


def resolve_and_bind_local(
    port: PortSpec,
    host: Optional[str] = None,
    *,
    reuse_address: bool = True,
) -> socket.socket:
    """解析本地地址并 bind，按解析顺序尝试，第一个成功者胜出。"""
    last_exc: Optional[OSError] = None
    for family, socktype, proto, _canon, addr in _resolve(host, port, passive=True):
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            logger.debug("socket() failed for %s: %s", addr, exc)
            last_exc = exc
            continue

        if reuse_address:
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            except OSError as exc:
                sock.close()
                raise BindFailed("couldn't set socket options", code=exc.errno) from exc

        try:
            sock.bind(addr)
        except OSError as exc:
            logger.debug("bind to %s failed: %s", addr, exc)
            sock.close()
            last_exc = exc
            continue

        logger.debug("bound to %s", sock.getsockname())
        return sock

    code = last_exc.errno if last_exc is not None else None
    raise BindFailed("couldn't bind to any address", code=code) from last_exc


def resolve_and_connect(host: str, port: PortSpec) -> socket.socket:
    """解析远端地址并依次尝试 connect，第一个成功者胜出。"""
    last_exc: Optional[OSError] = None
    for family, socktype, proto, _canon, addr in _resolve(host, port, passive=False):
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            logger.debug("socket() failed for %s: %s", addr, exc)
            last_exc = exc
            continue

        try:
            sock.connect(addr)
        except OSError as exc:
            logger.debug("connect to %s failed: %s", addr, exc)
            sock.close()
            last_exc = exc
            continue

        logger.debug("connected to %s", addr)
        return sock

    code = last_exc.errno if last_exc is not None else None
    raise ConnectFailed("couldn't connect to any address", code=code) from last_exc


def is_transient_accept_error(exc: OSError) -> bool:
    return exc.errno in TRANSIENT_ACCEPT_ERRNOS


def listen_and_accept_one(sock: socket.socket, retry: Optional[RetryPolicy] = None) -> socket.socket:
    """
    listen(1) 后阻塞直到恰好一个连接建立。
    瞬时 accept 失败按 retry 策略静默重试；其他失败抛出 ListenFailed。
    """
    retry = retry or RetryPolicy()
    try:
        sock.listen(1)
    except OSError as exc:
        raise ListenFailed("couldn't listen for connections", code=exc.errno) from exc

    attempt = 0
    while True:
        attempt += 1
        try:
            conn, addr = sock.accept()
        except OSError as exc:
            if not is_transient_accept_error(exc):
                raise ListenFailed("couldn't accept connection", code=exc.errno) from exc
            if not retry.allows(attempt + 1):
                raise ListenFailed(
                    f"gave up accepting after {attempt} attempts", code=exc.errno
                ) from exc
            logger.warning("transient accept failure (attempt %d): %s", attempt, exc)
            if retry.delay:
                time.sleep(retry.delay)
            continue

        logger.debug("accepted connection from %s", addr)
        return conn


def raw_read(sock: socket.socket, n: int) -> bytes:
    """阻塞读取恰好 n 字节。"""
    buf = bytearray()
    while len(buf) < n:
        try:
            chunk = sock.recv(n - len(buf))
        except OSError as exc:
            raise ReadFailed("couldn't receive data", code=exc.errno) from exc
        if not chunk:
            raise ShortRead(
                f"connection closed after {len(buf)} of {n} bytes",
                received=len(buf),
                expected=n,
            )
        buf.extend(chunk)
    return bytes(buf)


def raw_write(sock: socket.socket, data: bytes) -> None:
    try:
        sock.sendall(data)
    except OSError as exc:
        raise WriteFailed("couldn't send data", code=exc.errno) from exc


def release_handle(sock: Optional[socket.socket]) -> None:
    # socket.close() 对已关闭的 socket 是空操作
    if sock is not None:
        sock.close()
