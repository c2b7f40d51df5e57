"""
framelink.errors
错误类型：每种失败对应一个 ErrorKind（稳定的数值分类）与一个异常子类。
"""
from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorKind(IntEnum):
    ALREADY_BOUND = 1
    NOT_BOUND = 2
    ALREADY_CONNECTED = 3
    NOT_CONNECTED = 4
    RESOLUTION_FAILED = 5
    BIND_FAILED = 6
    LISTEN_FAILED = 7
    CONNECT_FAILED = 8
    READ_FAILED = 9
    WRITE_FAILED = 10
    SHORT_READ = 11
    PROTOCOL_VIOLATION = 12


class LinkError(Exception):
    """
    所有 framelink 错误的基类。

    kind    错误分类
    code    底层 errno / getaddrinfo 错误码；没有时等于 kind 的数值
    message 可读描述
    """
    kind: ErrorKind

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = int(self.kind) if code is None else code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class AlreadyBound(LinkError):
    kind = ErrorKind.ALREADY_BOUND


class NotBound(LinkError):
    kind = ErrorKind.NOT_BOUND


class AlreadyConnected(LinkError):
    kind = ErrorKind.ALREADY_CONNECTED


class NotConnected(LinkError):
    kind = ErrorKind.NOT_CONNECTED


class ResolutionFailed(LinkError):
    kind = ErrorKind.RESOLUTION_FAILED


class BindFailed(LinkError):
    kind = ErrorKind.BIND_FAILED


class ListenFailed(LinkError):
    kind = ErrorKind.LISTEN_FAILED


class ConnectFailed(LinkError):
    kind = ErrorKind.CONNECT_FAILED


class ReadFailed(LinkError):
    kind = ErrorKind.READ_FAILED


class WriteFailed(LinkError):
    kind = ErrorKind.WRITE_FAILED


class ShortRead(LinkError, EOFError):
    """对端在读满 n 字节之前关闭了连接。"""
    kind = ErrorKind.SHORT_READ

    def __init__(self, message: str, received: int = 0, expected: int = 0):
        super().__init__(message)
        self.received = received
        self.expected = expected


class ProtocolViolation(LinkError, ValueError):
    """收到的帧长度字节超出 frame_size - 1。"""
    kind = ErrorKind.PROTOCOL_VIOLATION
