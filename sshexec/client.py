import logging

import paramiko
from paramiko import SSHException
from paramiko.hostkeys import InvalidHostKey

from .config import ConnectionParameters, configure
from .exception import ConnectError, SessionError, TrustStoreError
from .session import Session

logger = logging.getLogger(__name__)


def _load_trust_store(client, params: ConnectionParameters):
    path = params.known_hosts_path
    try:
        client.load_host_keys(path)
    except (OSError, InvalidHostKey, SSHException) as e:
        if params.strict_host_keys:
            raise TrustStoreError(f"cannot load known hosts from {path}: {e}") from e
        logger.warning("[ssh] Ignoring unreadable known hosts file %s: %s", path, e)


def connect(params: ConnectionParameters) -> paramiko.SSHClient:
    """
    Open and authenticate a connection described by ``params``.

    Host keys come from the known hosts file. With ``strict_host_keys``
    unknown hosts are rejected, otherwise they are accepted with a warning.
    The returned client is owned by the caller and must be closed.

    Raises:
        TrustStoreError: known hosts file missing or malformed (strict mode only)
        ConnectError: network, host key or authentication failure
    """
    client = paramiko.SSHClient()
    _load_trust_store(client, params)
    if params.strict_host_keys:
        client.set_missing_host_key_policy(paramiko.RejectPolicy())
    else:
        client.set_missing_host_key_policy(paramiko.WarningPolicy())

    logger.info("[ssh] Connecting to %s as %s.", params.address, params.user)
    try:
        client.connect(
            hostname=params.host,
            port=params.port,
            username=params.user,
            password=params.password,
            timeout=params.connect_timeout,
            allow_agent=False,
            look_for_keys=False,
        )
    except (SSHException, OSError) as e:
        client.close()
        raise ConnectError(f"cannot connect to {params.address}: {e}") from e

    logger.info("[ssh] Successfully connected to %s.", params.address)
    return client


def open_session(client, timeout=None, host="", owns_client=False) -> Session:
    """
    Open a new session channel on a connected client.

    Raises:
        SessionError: the transport is closed or the server refused the channel
    """
    transport = client.get_transport()
    if transport is None or not transport.is_active():
        raise SessionError(f"no active transport to {host or 'remote host'}")

    try:
        channel = transport.open_session(timeout=timeout)
    except (SSHException, OSError) as e:
        raise SessionError(f"cannot open session on {host or 'remote host'}: {e}") from e

    return Session(channel, client=client if owns_client else None, host=host)


def start_session(host, user=None, password=None, **options) -> Session:
    """
    Configure, connect and open a session in one step.

    The returned session owns the connection: closing the session closes it.
    """
    params = configure(host, user, password, **options)
    client = connect(params)
    try:
        return open_session(client, host=params.address, owns_client=True)
    except SessionError:
        client.close()
        raise
