import os
import re
from dataclasses import dataclass, field, replace
from typing import Optional

import paramiko

DEFAULT_PORT = 22
DEFAULT_KNOWN_HOSTS = "~/.ssh/known_hosts"
DEFAULT_SSH_CONFIG = "~/.ssh/config"


@dataclass(frozen=True)
class ConnectionParameters:
    """
    Everything needed to reach one remote host.

    Instances are immutable; derive a modified copy with ``with_options``.
    The password is kept out of ``repr`` so parameters can be logged.
    """

    host: str
    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    port: int = DEFAULT_PORT
    known_hosts: str = DEFAULT_KNOWN_HOSTS
    strict_host_keys: bool = True
    connect_timeout: Optional[float] = 10.0

    @property
    def address(self):
        return f"{self.host}:{self.port}"

    @property
    def known_hosts_path(self):
        return os.path.expanduser(self.known_hosts)

    def with_options(self, **options):
        return replace(self, **options)

    @classmethod
    def from_ssh_config(cls, alias, password=None, config_path=DEFAULT_SSH_CONFIG, **options):
        """
        Resolve a host alias through an OpenSSH client config file.

        ``hostname``, ``user`` and ``port`` are taken from the matching
        ``Host`` block; explicit ``options`` win over the file.
        """
        ssh_config = paramiko.SSHConfig()
        user_config_file = os.path.expanduser(config_path)
        if os.path.exists(user_config_file):
            with open(user_config_file) as f:
                ssh_config.parse(f)

        username_from_host = None
        m = re.search("([^@]+)@(.*)", alias)
        if m:
            username_from_host = m.group(1)
            alias = m.group(2)

        cfg = ssh_config.lookup(alias)
        values = {
            "host": cfg.get("hostname", alias),
            "user": username_from_host or cfg.get("user"),
            "port": int(cfg.get("port", DEFAULT_PORT)),
            "password": password,
        }
        values.update(options)
        return cls(**values)


def split_address(address):
    """
    Split ``host``, ``host:port``, ``[v6]:port`` or ``user@host:port``.

    Returns ``(user, host, port)``; missing parts are ``None``. The host is
    not validated, a bad address only fails when connecting.
    """
    user = None
    if "@" in address:
        user, address = address.rsplit("@", 1)

    m = re.fullmatch(r"\[([^\]]+)\](?::(\d+))?", address)
    if m:
        port = m.group(2)
        return user, m.group(1), int(port) if port else None

    host, sep, port = address.rpartition(":")
    # bare IPv6 addresses carry more than one colon
    if sep and port.isdigit() and ":" not in host:
        return user, host, int(port)
    return user, address, None


def configure(host, user=None, password=None, **options) -> ConnectionParameters:
    """Build connection parameters. No I/O happens here."""
    user_from_host, hostname, port = split_address(host)
    if port is not None:
        options.setdefault("port", port)
    return ConnectionParameters(
        host=hostname,
        user=user or user_from_host,
        password=password,
        **options,
    )
