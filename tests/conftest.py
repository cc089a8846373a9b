import threading

import pytest
from paramiko import SSHException

from sshexec.session import Session


class FakeChannel:
    """In-memory stand-in for ``paramiko.Channel``."""

    def __init__(self, output=b"", exit_status=0, finish_on_exec=True, on_send=None):
        self._lock = threading.Lock()
        self._pending = bytearray()
        self._output = output
        self._exit_status = exit_status
        self._finish_on_exec = finish_on_exec
        self._status = threading.Event()
        self.on_send = on_send
        self.executed = []
        self.sent = bytearray()
        self.close_calls = 0
        self.closed = False
        self.eof_received = False
        self.write_shutdown = False

    def feed(self, data):
        with self._lock:
            self._pending += data

    def finish(self, status=None):
        if status is not None:
            self._exit_status = status
        self.eof_received = True
        self._status.set()

    def exec_command(self, command):
        if self.closed or self.write_shutdown:
            raise SSHException("Channel is not open")
        self.executed.append(command)
        self.feed(self._output)
        if self._finish_on_exec:
            self.finish()

    def recv_ready(self):
        with self._lock:
            return bool(self._pending)

    def recv(self, nbytes):
        with self._lock:
            chunk = bytes(self._pending[:nbytes])
            del self._pending[:nbytes]
            return chunk

    def sendall(self, data):
        if self.closed:
            raise OSError("Socket is closed")
        self.sent += data
        if self.on_send is not None:
            self.on_send(self, bytes(data))

    def shutdown_write(self):
        self.write_shutdown = True

    def exit_status_ready(self):
        return self._status.is_set()

    def recv_exit_status(self):
        self._status.wait()
        return self._exit_status

    def close(self):
        self.close_calls += 1
        if not self._status.is_set():
            self._exit_status = -1
            self._status.set()
        self.closed = True


class FakeTransport:
    def __init__(self, channel=None, active=True, error=None):
        self.channel = channel
        self.active = active
        self.error = error

    def is_active(self):
        return self.active

    def open_session(self, timeout=None):
        if self.error is not None:
            raise self.error
        return self.channel


class FakeClient:
    def __init__(self, transport=None):
        self.transport = transport
        self.close_calls = 0

    def get_transport(self):
        return self.transport

    def close(self):
        self.close_calls += 1
        if self.transport is not None:
            self.transport.active = False


@pytest.fixture
def pty_requests(monkeypatch):
    requests = []
    monkeypatch.setattr("sshexec.session.request_pty", requests.append)
    return requests


@pytest.fixture
def make_session(pty_requests):
    def make(**kwargs):
        channel = FakeChannel(**kwargs)
        return Session(channel, host="test:22"), channel

    return make
