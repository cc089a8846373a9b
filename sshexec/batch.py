import logging
import re
import threading

from paramiko import SSHException

from .exception import CommandCancelled, CommandTimeout, ExecutionError, PipeError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096
SEQUENTIAL = "; "
STOP_ON_ERROR = " && "
SUDO_PROMPT = r"\[sudo\] password for [^:]*:\s*$"


def join_commands(commands, stop_on_error=False):
    """
    Join commands into a single shell command line.

    ``;`` keeps going after a failing command, ``&&`` stops at the first one.
    """
    if isinstance(commands, str):
        commands = [commands]
    commands = list(commands)
    if not commands:
        raise ValueError("no commands to run")
    return (STOP_ON_ERROR if stop_on_error else SEQUENTIAL).join(commands)


def sudo_password_responder(password, prompt=SUDO_PROMPT):
    """Answer sudo's password prompt with ``password``."""
    pattern = re.compile(prompt)

    def respond(line):
        if pattern.search(line):
            return password + "\n"
        return None

    return respond


class _OutputReader:
    """
    Collect everything the remote side writes, in order.

    The reader only calls ``recv`` when data is ready, so it never blocks
    and stops within one poll interval of ``finish``. Remaining buffered
    data is drained before it exits.
    """

    def __init__(self, session, responder=None, poll_interval=0.05):
        self._session = session
        self._responder = responder
        self._poll_interval = poll_interval
        self._buffer = bytearray()
        self._line = bytearray()
        self._lock = threading.Lock()
        self._finished = threading.Event()
        self._thread = threading.Thread(target=self._run, name="sshexec-batch-reader", daemon=True)
        self.error = None

    def start(self):
        self._thread.start()

    def finish(self):
        self._finished.set()

    def join(self, timeout=None):
        self._thread.join(timeout)

    def is_alive(self):
        return self._thread.is_alive()

    def output(self):
        with self._lock:
            return bytes(self._buffer)

    def _run(self):
        channel = self._session.channel
        try:
            while True:
                if channel.recv_ready():
                    if not self._consume(channel.recv(CHUNK_SIZE)):
                        return
                elif channel.eof_received or channel.closed or self._finished.is_set():
                    break
                else:
                    self._finished.wait(self._poll_interval)

            while channel.recv_ready():
                if not self._consume(channel.recv(CHUNK_SIZE)):
                    return
        except (SSHException, OSError) as e:
            self.error = e

    def _consume(self, chunk):
        if not chunk:
            return False
        with self._lock:
            self._buffer += chunk
        if self._responder is not None:
            self._scan(chunk)
        return True

    def _scan(self, chunk):
        for b in chunk:
            if b == ord("\n"):
                self._line.clear()
            else:
                self._line.append(b)

        if not self._line:
            return
        reply = self._responder(self._line.decode("utf-8", errors="replace"))
        if reply is not None:
            logger.debug("[ssh] %s: answering prompt", self._session.host)
            self._session.send(reply.encode())
            self._line.clear()


def run_commands(
    session,
    commands,
    *,
    stop_on_error=False,
    responder=None,
    timeout=None,
    cancel=None,
    poll_interval=0.05,
) -> bytes:
    """
    Run ``commands`` as one shell command line and return its output.

    The commands are joined with ``; `` (or ``&&`` with ``stop_on_error``)
    and executed under a pseudo-terminal, so stdout and stderr arrive
    combined. ``responder`` is called with the current unterminated output
    line and may return text to send back, e.g. a password.

    The session is closed on return, successful or not.

    Raises:
        ValueError: ``commands`` is empty
        PTYError: the terminal request was refused
        PipeError: the command or its output stream failed
        ExecutionError: non-zero exit, with the output collected so far
        CommandTimeout, CommandCancelled: see ``timeout`` and ``cancel``
    """
    command = join_commands(commands, stop_on_error)

    try:
        session.request_pty()

        reader = _OutputReader(session, responder, poll_interval)
        reader.start()
        try:
            session.exec_command(command)
            status = session.wait_exit(
                command,
                timeout=timeout,
                cancel=cancel,
                poll_interval=poll_interval,
                output=reader.output,
            )
        except (CommandTimeout, CommandCancelled):
            session.interrupt()
            session.close()
            raise
        finally:
            reader.finish()
            reader.join()

        output = reader.output()
        if reader.error is not None:
            raise PipeError(f"output stream failed: {reader.error}") from reader.error
        if status != 0:
            raise ExecutionError(
                f"command exited with status {status}: {command}",
                command=command,
                exit_status=status,
                partial_output=output,
            )

        logger.info("[ssh] %s: command finished, %d bytes of output", session.host, len(output))
        return output
    finally:
        session.close()
