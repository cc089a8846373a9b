import argparse
import getpass
import logging
import os
import sys
import textwrap

from .batch import sudo_password_responder
from .config import ConnectionParameters, configure
from .exception import ExecutionError, SSHExecError
from .ssh_wrapper_paramiko import SSHWrapperParamiko
from .version import __version__

logger = logging.getLogger("sshexec")

PASSWORD_ENV = "SSHEXEC_PASSWORD"
EXIT_INTERRUPTED = 130
EXIT_SSH_ERROR = 255


def get_usage():
    return textwrap.dedent(
        f"""
        examples:
          sshexec example.org:2222 -u deploy run 'cd app' 'git pull'
          sshexec --ssh-config myhost stream top

        The password is read from ${PASSWORD_ENV} or prompted for.
        Host keys must be present in ~/.ssh/known_hosts unless --insecure is given.
        """
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="sshexec",
        description="Run commands on a remote host over SSH.",
        epilog=get_usage(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("host", help="[user@]host[:port], or a Host alias with --ssh-config")
    parser.add_argument("-u", "--user", help="remote user name")
    parser.add_argument("-p", "--port", type=int, help="remote port")
    parser.add_argument("--ssh-config", action="store_true", help="resolve HOST through ~/.ssh/config")
    parser.add_argument("--insecure", action="store_true", help="accept hosts missing from known_hosts")
    parser.add_argument("--timeout", type=float, help="command timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    actions = parser.add_subparsers(dest="action", required=True)

    run = actions.add_parser("run", help="run commands in one shell and print their output")
    run.add_argument("commands", nargs="+", help="shell commands, run in order")
    run.add_argument("--stop-on-error", action="store_true", help="join with && instead of ;")
    run.add_argument("--sudo", action="store_true", help="answer sudo password prompts")

    stream = actions.add_parser("stream", help="run an interactive command on this terminal")
    stream.add_argument("command", nargs="+", help="command and its arguments")

    return parser


def _params(args, password):
    options = {"strict_host_keys": not args.insecure}
    if args.ssh_config:
        params = ConnectionParameters.from_ssh_config(args.host, password, **options)
    else:
        params = configure(args.host, args.user, password, **options)

    overrides = {}
    if args.user:
        overrides["user"] = args.user
    if args.port:
        overrides["port"] = args.port
    return params.with_options(**overrides) if overrides else params


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )

    password = os.environ.get(PASSWORD_ENV)
    if password is None:
        password = getpass.getpass("Password: ")
    params = _params(args, password)

    try:
        with SSHWrapperParamiko() as ssh:
            ssh.connect(params)
            if args.action == "run":
                responder = sudo_password_responder(password) if args.sudo else None
                output = ssh.run_commands(
                    args.commands,
                    stop_on_error=args.stop_on_error,
                    responder=responder,
                    timeout=args.timeout,
                )
                sys.stdout.buffer.write(output)
                sys.stdout.buffer.flush()
            else:
                ssh.stream_command(" ".join(args.command), timeout=args.timeout)
    except KeyboardInterrupt:
        logger.error("[ssh] Interrupted.")
        return EXIT_INTERRUPTED
    except ExecutionError as e:
        sys.stdout.buffer.write(e.partial_output)
        sys.stdout.buffer.flush()
        logger.error("[ssh] Error: %s", e)
        return e.exit_status or 1
    except SSHExecError as e:
        logger.error("[ssh] Error: %s", e)
        return EXIT_SSH_ERROR
    return 0


if __name__ == "__main__":
    sys.exit(main())
