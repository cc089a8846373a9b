"""
Pseudo-terminal request with explicit terminal modes.

``paramiko.Channel.get_pty`` always sends an empty mode list, so remote echo
can not be switched off through it. ``request_pty`` sends the same
``pty-req`` message with the encoded modes filled in (RFC 4254, section 8).
"""

import struct

from paramiko import Message, SSHException
from paramiko.common import cMSG_CHANNEL_REQUEST

# opcodes from RFC 4254, section 8
TTY_OP_END = 0
ECHO = 53
TTY_OP_ISPEED = 128
TTY_OP_OSPEED = 129

TERM = "xterm"
WIDTH = 80
HEIGHT = 40

TERMINAL_MODES = {
    ECHO: 0,  # disable echoing
    TTY_OP_ISPEED: 14400,  # input speed = 14.4kbaud
    TTY_OP_OSPEED: 14400,  # output speed = 14.4kbaud
}


def encode_modes(modes) -> bytes:
    """Encode ``{opcode: value}`` as opcode byte + uint32 pairs, TTY_OP_END terminated."""
    encoded = b"".join(
        struct.pack(">BI", opcode, value) for opcode, value in sorted(modes.items())
    )
    return encoded + bytes([TTY_OP_END])


def request_pty(channel, term=TERM, width=WIDTH, height=HEIGHT, modes=TERMINAL_MODES):
    """
    Request a pseudo-terminal on an open session channel and wait for the reply.

    Raises:
        SSHException: if the channel is not open or the server refuses
    """
    if channel.closed or channel.eof_received or channel.eof_sent or not channel.active:
        raise SSHException("Channel is not open")

    m = Message()
    m.add_byte(cMSG_CHANNEL_REQUEST)
    m.add_int(channel.remote_chanid)
    m.add_string("pty-req")
    m.add_boolean(True)
    m.add_string(term)
    m.add_int(width)
    m.add_int(height)
    m.add_int(0)  # width in pixels
    m.add_int(0)  # height in pixels
    m.add_string(encode_modes(modes))
    # private helpers as used by Channel.get_pty, checked against paramiko 2.9 to 4.x
    channel._event_pending()
    channel.transport._send_user_message(m)
    channel._wait_for_event()
