"""
framelink.protocol
定长帧编解码。

帧格式（每帧恰好 frame_size 字节）：
  [0]          chunk 长度 L，0 <= L <= frame_size - 1
  [1 .. L]     chunk 数据
  [L+1 .. ]    填充（写 0，接收端忽略）

L == frame_size - 1 表示后面还有帧；L < frame_size - 1 表示消息的最后一帧。
因此长度恰为 frame_size - 1 整数倍的非空消息需要额外一个 L = 0 的结束帧。
"""
from __future__ import annotations

from typing import Iterator, Optional, Tuple

from .config import validate_frame_size
from .errors import ProtocolViolation


def chunk_capacity(frame_size: int) -> int:
    return validate_frame_size(frame_size) - 1


def frame_count(length: int, frame_size: int) -> int:
    """发送 length 字节的消息需要的帧数。"""
    if length < 0:
        raise ValueError("length must be >= 0")
    return length // chunk_capacity(frame_size) + 1


def encode_frame(chunk: bytes, frame_size: int) -> bytes:
    cap = chunk_capacity(frame_size)
    if len(chunk) > cap:
        raise ValueError(f"chunk of {len(chunk)} bytes exceeds capacity {cap}")
    return bytes([len(chunk)]) + chunk + bytes(cap - len(chunk))


def iter_frames(message: bytes, frame_size: int) -> Iterator[bytes]:
    cap = chunk_capacity(frame_size)
    view = memoryview(message)
    offset = 0
    while True:
        chunk = bytes(view[offset:offset + cap])
        offset += len(chunk)
        yield encode_frame(chunk, frame_size)
        if len(chunk) < cap:
            return


def decode_frame(frame: bytes, frame_size: int) -> Tuple[bytes, bool]:
    """返回 (chunk, is_final)。"""
    cap = chunk_capacity(frame_size)
    if len(frame) != frame_size:
        raise ProtocolViolation(f"frame is {len(frame)} bytes, expected {frame_size}")
    n = frame[0]
    if n > cap:
        raise ProtocolViolation(f"chunk length {n} exceeds frame capacity {cap}")
    return bytes(frame[1:1 + n]), n < cap


class MessageAssembler:
    """按到达顺序拼接 chunk，遇到非满帧即得到一条完整消息。"""

    def __init__(self, frame_size: int):
        self.frame_size = validate_frame_size(frame_size)
        self._buf = bytearray()

    @property
    def pending(self) -> int:
        return len(self._buf)

    def feed(self, frame: bytes) -> Optional[bytes]:
        chunk, final = decode_frame(frame, self.frame_size)
        self._buf.extend(chunk)
        if not final:
            return None
        message = bytes(self._buf)
        self._buf.clear()
        return message
