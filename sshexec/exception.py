class SSHExecError(Exception):
    """Base class for every error raised by sshexec."""


class TrustStoreError(SSHExecError):
    """The known_hosts file could not be read or parsed."""


class ConnectError(SSHExecError):
    """Network, authentication or host key failure while connecting."""


class SessionError(SSHExecError):
    """A session channel could not be opened on the transport."""


class PTYError(SSHExecError):
    """The remote side refused the pseudo-terminal request."""


class PipeError(SSHExecError):
    """The command or its streams could not be set up."""


class ExecutionError(SSHExecError):
    """
    The remote command exited non-zero or its channel closed abnormally.

    Whatever output was collected before the failure is kept in
    ``partial_output``. It is never the complete output of the command.
    """

    partial = True

    def __init__(self, message, command=None, exit_status=None, partial_output=b""):
        super().__init__(message)
        self.command = command
        self.exit_status = exit_status
        self.partial_output = bytes(partial_output)


class CommandTimeout(ExecutionError):
    """The remote command did not finish within its timeout."""


class CommandCancelled(ExecutionError):
    """The caller cancelled the command while it was running."""
