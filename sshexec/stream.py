import io
import logging
import os
import select
import sys
import threading

from paramiko import SSHException

from .exception import CommandCancelled, CommandTimeout, ExecutionError, PipeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


def _fileno(stream):
    try:
        return stream.fileno()
    except (AttributeError, io.UnsupportedOperation, ValueError):
        return None


class _Pump:
    """
    Copy bytes both ways between a session and a pair of local streams.

    Each iteration moves at most one chunk per direction and never waits on
    a stream that has nothing to offer, so ``stop`` is observed within one
    poll interval. Local streams without a file descriptor are treated as
    in-memory and read directly.
    """

    def __init__(self, session, stdin, stdout, poll_interval=0.05):
        self._session = session
        self._stdin = stdin
        self._stdout = stdout
        self._stdin_fd = _fileno(stdin)
        self._stdin_open = True
        self._poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="sshexec-stream", daemon=True)
        self.error = None

    def start(self):
        self._thread.start()

    def stop(self):
        self._stop.set()

    def join(self, timeout=None):
        self._thread.join(timeout)

    def is_alive(self):
        return self._thread.is_alive()

    def _run(self):
        channel = self._session.channel
        try:
            while not self._stop.is_set():
                moved = self._pump_remote(channel)
                moved = self._pump_local(channel) or moved
                if not moved:
                    self._stop.wait(self._poll_interval)

            while self._pump_remote(channel):
                pass
        except (SSHException, OSError) as e:
            self.error = e
        logger.debug("[ssh] %s: stream worker finished", self._session.host)

    def _pump_remote(self, channel):
        if channel.closed or not channel.recv_ready():
            return False
        data = channel.recv(CHUNK_SIZE)
        if not data:
            return False
        self._stdout.write(data)
        self._stdout.flush()
        return True

    def _pump_local(self, channel):
        if not self._stdin_open:
            return False
        data = self._read_local()
        if data is None:
            return False
        if not data:
            self._stdin_open = False
            channel.shutdown_write()
            return False
        channel.sendall(data)
        return True

    def _read_local(self):
        """Return available local input, ``b""`` at EOF or ``None`` if nothing is ready."""
        if self._stdin_fd is None:
            return self._stdin.read(CHUNK_SIZE)
        readable, _, _ = select.select([self._stdin_fd], [], [], 0)
        if not readable:
            return None
        return os.read(self._stdin_fd, CHUNK_SIZE)


def stream_command(
    session,
    command,
    stdin=None,
    stdout=None,
    *,
    timeout=None,
    cancel=None,
    poll_interval=0.05,
):
    """
    Run an interactive command with its terminal wired to local streams.

    ``stdin`` and ``stdout`` are binary streams and default to the process'
    own. Returns once the remote command has exited and the copy worker has
    finished; the worker never outlives this call.

    The session is closed on return, successful or not.

    Raises:
        PTYError: the terminal request was refused
        PipeError: the command or one of the streams failed
        ExecutionError: non-zero exit
        CommandTimeout, CommandCancelled: see ``timeout`` and ``cancel``
    """
    stdin = sys.stdin.buffer if stdin is None else stdin
    stdout = sys.stdout.buffer if stdout is None else stdout

    try:
        session.request_pty()
        # local input may hit EOF at once; shutdown_write must follow exec
        session.exec_command(command)

        pump = _Pump(session, stdin, stdout, poll_interval)
        pump.start()
        try:
            status = session.wait_exit(
                command,
                timeout=timeout,
                cancel=cancel,
                poll_interval=poll_interval,
            )
        except (CommandTimeout, CommandCancelled):
            session.interrupt()
            session.close()
            raise
        finally:
            pump.stop()
            pump.join()

        if pump.error is not None:
            raise PipeError(f"stream failed: {pump.error}") from pump.error
        if status != 0:
            raise ExecutionError(
                f"command exited with status {status}: {command}",
                command=command,
                exit_status=status,
            )
        logger.info("[ssh] %s: command finished", session.host)
    finally:
        session.close()
