from abc import ABC, abstractmethod


class SSHWrapper(ABC):
    """
    Interface of a stateful connection to one remote host.

    Implementations keep one authenticated connection and open a fresh
    session for every command they run.
    """

    @abstractmethod
    def connect(self, host):
        """
        Establish connection to a remote host.

        Args:
            host: ``[user@]host[:port]`` string or ``ConnectionParameters``

        Raises:
            TrustStoreError: the known hosts file can not be used
            ConnectError: if the connection fails
        """

    @abstractmethod
    def run_commands(self, commands, **kwargs):
        """
        Run a batch of shell commands and collect their combined output.

        Args:
            commands (list): Commands executed in order within one shell

        Returns:
            bytes: Everything the commands wrote to the terminal
        """

    @abstractmethod
    def stream_command(self, command, stdin=None, stdout=None, **kwargs):
        """
        Run an interactive command with its terminal wired to local streams.

        Args:
            command (string): The command to execute
            stdin: Binary stream forwarded to the command
            stdout: Binary stream receiving the command's output
        """

    @abstractmethod
    def close(self):
        """Close the connection to the host."""

    @abstractmethod
    def interrupt(self):
        """Send a SIGINT (Ctrl+C) to the running command."""

    @abstractmethod
    def isconnected(self):
        """
        Returns:
            bool: True if connected, False otherwise
        """
