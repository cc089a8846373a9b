import logging

from .batch import run_commands
from .client import connect, open_session
from .config import ConnectionParameters, configure
from .exception import SessionError
from .ssh_wrapper import SSHWrapper
from .stream import stream_command

logger = logging.getLogger(__name__)


class SSHWrapperParamiko(SSHWrapper):
    """
    A direct Paramiko SSH client wrapper.
    SSHWrapperParamiko keeps one connection and opens a session per command.
    """

    def __init__(self, user=None, password=None, **options):
        self._user = user
        self._password = password
        self._options = options
        self._client = None
        self._params = None
        self._session = None

    @property
    def params(self):
        return self._params

    def connect(self, host):
        """Connect to remote host using password authentication"""
        if self._client:
            self.close()

        if isinstance(host, ConnectionParameters):
            params = host
        else:
            params = configure(host, self._user, self._password, **self._options)

        self._client = connect(params)
        self._params = params

    def _open_session(self):
        if not self.isconnected():
            raise SessionError("Not connected")
        self._session = open_session(self._client, host=self._params.address)
        return self._session

    def run_commands(self, commands, **kwargs):
        """Run commands in one shell and return their combined output"""
        try:
            return run_commands(self._open_session(), commands, **kwargs)
        finally:
            self._session = None

    def stream_command(self, command, stdin=None, stdout=None, **kwargs):
        """Run an interactive command wired to stdin/stdout"""
        try:
            stream_command(self._open_session(), command, stdin, stdout, **kwargs)
        finally:
            self._session = None

    def interrupt(self):
        """Interrupt the current command"""
        session = self._session
        if session is not None:
            session.interrupt()

    def close(self):
        """Close the SSH connection"""
        if self._client:
            self._client.close()
            logger.info("[ssh] Closed connection to %s.", self._params.address)
        self._client = None
        self._session = None

    def isconnected(self):
        """Check if connected to remote host"""
        if self._client is None:
            return False
        transport = self._client.get_transport()
        return transport is not None and transport.is_active()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
