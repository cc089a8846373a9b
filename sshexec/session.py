import logging
import threading
import time

from paramiko import SSHException

from .exception import (
    CommandCancelled,
    CommandTimeout,
    ExecutionError,
    PipeError,
    PTYError,
)
from .terminal import request_pty

logger = logging.getLogger(__name__)

INTERRUPT = b"\x03"


class Session:
    """
    One command channel on a connected transport.

    A session runs a single command and is then closed; it can not be
    reused. When ``client`` is given the session owns it and closes it
    together with the channel.
    """

    def __init__(self, channel, client=None, host=""):
        self._channel = channel
        self._client = client
        self._host = host
        self._closed = False
        self._lock = threading.Lock()

    @property
    def channel(self):
        return self._channel

    @property
    def host(self):
        return self._host

    @property
    def owns_client(self):
        return self._client is not None

    @property
    def closed(self):
        return self._closed

    @property
    def active(self):
        # channels are closed by paramiko when their transport goes away
        return not self._closed and not self._channel.closed

    def request_pty(self):
        try:
            request_pty(self._channel)
        except (SSHException, OSError) as e:
            raise PTYError(f"pty request refused by {self._host}: {e}") from e

    def exec_command(self, command):
        logger.debug("[ssh] %s: exec %r", self._host, command)
        try:
            self._channel.exec_command(command)
        except (SSHException, OSError) as e:
            raise PipeError(f"could not start command on {self._host}: {e}") from e

    def wait_exit(self, command, timeout=None, cancel=None, poll_interval=0.05, output=bytes):
        """
        Block until the remote command reports its exit status.

        ``output`` is called to attach the output collected so far to any
        error raised.

        Raises:
            CommandTimeout: ``timeout`` seconds passed first
            CommandCancelled: ``cancel`` was set first
            ExecutionError: the channel closed without an exit status
        """
        cancel = cancel or threading.Event()
        deadline = None if timeout is None else time.monotonic() + timeout

        while not self._channel.exit_status_ready():
            if cancel.is_set():
                raise CommandCancelled(
                    f"command cancelled: {command}",
                    command=command,
                    partial_output=output(),
                )
            if deadline is not None and time.monotonic() >= deadline:
                raise CommandTimeout(
                    f"command timed out after {timeout}s: {command}",
                    command=command,
                    partial_output=output(),
                )
            cancel.wait(poll_interval)

        status = self._channel.recv_exit_status()
        if status == -1:
            raise ExecutionError(
                f"channel closed without exit status: {command}",
                command=command,
                partial_output=output(),
            )
        return status

    def send(self, data):
        self._channel.sendall(data)

    def interrupt(self):
        """Send Ctrl+C through the terminal."""
        if not self.active:
            return
        try:
            self._channel.sendall(INTERRUPT)
        except (SSHException, OSError) as e:
            logger.debug("[ssh] %s: interrupt not delivered: %s", self._host, e)

    def close(self):
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._channel.close()
        if self._client is not None:
            self._client.close()
            logger.info("[ssh] Closed connection to %s.", self._host)
        logger.debug("[ssh] %s: session closed", self._host)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        state = "closed" if self._closed else "open"
        return f"Session({self._host}, {state})"
