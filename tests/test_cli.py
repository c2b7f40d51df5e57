import socket

import pytest

from conftest import LOCALHOST, connect_with_retry, run_threads
from framelink import client, server
from framelink.channel import FramedChannel


def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((LOCALHOST, 0))
        return s.getsockname()[1]


def test_echo_server_and_client(capsys):
    port = free_port()
    served = []
    replies = []
    messages = [b"hello", b"", bytes(range(200))]

    def run_server():
        with FramedChannel(16) as ch:
            served.append(server.serve(ch, str(port), LOCALHOST))

    def run_client():
        with FramedChannel(16) as ch:
            ch.bind(0, LOCALHOST)
            connect_with_retry(ch, LOCALHOST, port)
            replies.extend(client.exchange(ch, messages))

    run_threads(run_server, run_client)
    assert replies == messages
    assert served == [3]
    out = capsys.readouterr().out
    assert "[server] peer closed after 3 messages" in out


def test_client_reports_connect_failure(capsys):
    rc = client.main(["--host", LOCALHOST, "--port", str(free_port()), "--message", "x"])
    assert rc == 1
    assert "[client] error" in capsys.readouterr().err


@pytest.mark.parametrize("main", [server.main, client.main])
def test_bad_frame_size(main):
    with pytest.raises(SystemExit) as exc_info:
        main(["--frame-size", "1"])
    assert exc_info.value.code == 2
