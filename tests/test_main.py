import pytest

from sshexec import __main__ as cli
from sshexec.exception import ConnectError, ExecutionError


class _Wrapper:
    instances = []

    def __init__(self):
        self.params = None
        self.calls = []
        self.closed = False
        self.error = None
        self.output = b"remote output\n"
        _Wrapper.instances.append(self)

    def connect(self, params):
        self.params = params
        if isinstance(self.error, ConnectError):
            raise self.error

    def run_commands(self, commands, **kwargs):
        self.calls.append(("run", commands, kwargs))
        if self.error is not None:
            raise self.error
        return self.output

    def stream_command(self, command, **kwargs):
        self.calls.append(("stream", command, kwargs))

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@pytest.fixture
def wrapper(monkeypatch):
    _Wrapper.instances = []
    monkeypatch.setattr(cli, "SSHWrapperParamiko", _Wrapper)
    monkeypatch.setenv(cli.PASSWORD_ENV, "pw")
    return _Wrapper


def test_run(wrapper, capsysbinary):
    code = cli.main(["deploy@box:2200", "run", "cd app", "git pull"])
    assert code == 0

    (instance,) = wrapper.instances
    assert instance.params.host == "box"
    assert instance.params.port == 2200
    assert instance.params.user == "deploy"
    assert instance.params.password == "pw"
    assert instance.params.strict_host_keys
    assert instance.closed

    (action, commands, kwargs) = instance.calls[0]
    assert action == "run"
    assert commands == ["cd app", "git pull"]
    assert kwargs["stop_on_error"] is False
    assert kwargs["responder"] is None
    assert capsysbinary.readouterr().out == b"remote output\n"


def test_run_options(wrapper):
    cli.main(["box", "-u", "root", "-p", "22", "--insecure", "run", "--stop-on-error", "--sudo", "ls"])

    (instance,) = wrapper.instances
    assert instance.params.user == "root"
    assert not instance.params.strict_host_keys
    _, _, kwargs = instance.calls[0]
    assert kwargs["stop_on_error"] is True
    assert kwargs["responder"]("[sudo] password for root: ") == "pw\n"


def test_stream(wrapper):
    assert cli.main(["box", "--timeout", "5", "stream", "tail", "/var/log/syslog"]) == 0
    (instance,) = wrapper.instances
    assert instance.calls == [("stream", "tail /var/log/syslog", {"timeout": 5.0})]


def test_execution_error_exit_code(wrapper, monkeypatch, capsysbinary):
    def failing():
        instance = wrapper()
        instance.error = ExecutionError("failed", exit_status=3, partial_output=b"half")
        return instance

    monkeypatch.setattr(cli, "SSHWrapperParamiko", failing)
    assert cli.main(["box", "run", "false"]) == 3
    assert capsysbinary.readouterr().out == b"half"


def test_connect_error_exit_code(wrapper, monkeypatch):
    def failing():
        instance = wrapper()
        instance.error = ConnectError("refused")
        return instance

    monkeypatch.setattr(cli, "SSHWrapperParamiko", failing)
    assert cli.main(["box", "run", "true"]) == cli.EXIT_SSH_ERROR


def test_password_prompt(wrapper, monkeypatch):
    monkeypatch.delenv(cli.PASSWORD_ENV)
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "typed")
    cli.main(["box", "run", "true"])
    assert wrapper.instances[0].params.password == "typed"


def test_requires_action(wrapper):
    with pytest.raises(SystemExit):
        cli.main(["box"])
