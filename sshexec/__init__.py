"""Run commands on a remote host over SSH"""

from .batch import join_commands, run_commands, sudo_password_responder
from .client import connect, open_session, start_session
from .config import ConnectionParameters, configure
from .exception import (
    CommandCancelled,
    CommandTimeout,
    ConnectError,
    ExecutionError,
    PipeError,
    PTYError,
    SessionError,
    SSHExecError,
    TrustStoreError,
)
from .session import Session
from .ssh_wrapper_paramiko import SSHWrapperParamiko
from .stream import stream_command
from .version import __version__

__all__ = [
    'CommandCancelled',
    'CommandTimeout',
    'ConnectError',
    'ConnectionParameters',
    'ExecutionError',
    'PipeError',
    'PTYError',
    'SSHExecError',
    'SSHWrapperParamiko',
    'Session',
    'SessionError',
    'TrustStoreError',
    '__version__',
    'configure',
    'connect',
    'join_commands',
    'open_session',
    'run_commands',
    'start_session',
    'stream_command',
    'sudo_password_responder',
]
