import threading
import time

import pytest

from framelink.channel import FramedChannel
from framelink.errors import ConnectFailed

LOCALHOST = "127.0.0.1"


def connect_with_retry(channel, host, port, attempts=100):
    # 对端可能还没有 listen；失败的 connect 会让通道留在 BOUND，可以重试
    for _ in range(attempts - 1):
        try:
            channel.connect_to(host, port)
            return
        except ConnectFailed:
            time.sleep(0.02)
    channel.connect_to(host, port)


def run_threads(*targets, timeout=10):
    """并行执行 targets，重新抛出第一个异常。"""
    errors = []

    def wrap(fn):
        def run():
            try:
                fn()
            except BaseException as exc:
                errors.append(exc)
        return run

    threads = [threading.Thread(target=wrap(fn)) for fn in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout)
        assert not t.is_alive(), "thread did not finish"
    if errors:
        raise errors[0]


@pytest.fixture
def make_pair():
    """返回工厂 make_pair(frame_size) -> (acceptor, connector)，测试结束时关闭。"""
    created = []

    def factory(frame_size=64):
        acceptor = FramedChannel(frame_size)
        connector = FramedChannel(frame_size)
        created.extend([acceptor, connector])
        acceptor.bind(0, LOCALHOST)
        connector.bind(0, LOCALHOST)
        port = acceptor.local_address[1]
        run_threads(
            acceptor.accept_one,
            lambda: connect_with_retry(connector, LOCALHOST, port),
        )
        return acceptor, connector

    yield factory
    for ch in created:
        ch.close()
