"""
framelink.config
通道配置：帧长、accept 重试策略与 socket 选项。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_FRAME_SIZE = 64
MIN_FRAME_SIZE = 2
# 长度字节只有一个字节，chunk 长度 <= frame_size - 1 <= 254
MAX_FRAME_SIZE = 255


def validate_frame_size(frame_size: int) -> int:
    if isinstance(frame_size, bool) or not isinstance(frame_size, int):
        raise TypeError("frame_size must be an int")
    if not MIN_FRAME_SIZE <= frame_size <= MAX_FRAME_SIZE:
        raise ValueError(
            f"frame_size must be in [{MIN_FRAME_SIZE}, {MAX_FRAME_SIZE}], got {frame_size}"
        )
    return frame_size


@dataclass(frozen=True)
class RetryPolicy:
    """
    accept 瞬时失败的重试策略。
    max_attempts=None 表示无限重试；delay 为两次尝试之间的秒数。
    """
    max_attempts: Optional[int] = None
    delay: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")

    def allows(self, attempt: int) -> bool:
        """attempt 从 1 开始计数。"""
        return self.max_attempts is None or attempt <= self.max_attempts


@dataclass(frozen=True)
class ChannelConfig:
    frame_size: int = DEFAULT_FRAME_SIZE
    reuse_address: bool = True
    accept_retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        validate_frame_size(self.frame_size)
