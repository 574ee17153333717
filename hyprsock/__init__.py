"""Hyprsock - client side of the Hyprland socket IPC.

Talks to the two Unix sockets the compositor exposes: the control socket
(one command per connection, response read until the peer closes) and the
event socket (a stream of ``name>>payload`` lines).
Blocking and asyncio flavours share the same framing and parsing code.
"""

from .command import AsyncHyprctlSocket, Command, HyprctlSocket
from .events import AsyncEventSocket, EventSocket, RawEvent, parse, split_records
from .models import (
    ConfigurationError,
    CtlFlag,
    FlagKind,
    MissingEnvironmentError,
    SocketState,
    SocketStateError,
    StreamEndedError,
)

__all__ = [
    "AsyncEventSocket",
    "AsyncHyprctlSocket",
    "Command",
    "ConfigurationError",
    "CtlFlag",
    "EventSocket",
    "FlagKind",
    "HyprctlSocket",
    "MissingEnvironmentError",
    "RawEvent",
    "SocketState",
    "SocketStateError",
    "StreamEndedError",
    "parse",
    "split_records",
]
