"""Common types: errors, command flags, socket states and Hyprland JSON shapes."""

import string
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, NotRequired, TypedDict

__all__ = [
    "ClientInfo",
    "ConfigurationError",
    "CtlFlag",
    "CursorPos",
    "DevicesInfo",
    "ExitCode",
    "FlagKind",
    "InstanceInfo",
    "JSONResponse",
    "KeyboardInfo",
    "LayerInfo",
    "LayerLevels",
    "MissingEnvironmentError",
    "MonitorInfo",
    "MouseInfo",
    "SocketState",
    "SocketStateError",
    "StreamEndedError",
    "SwitchInfo",
    "VersionInfo",
    "WorkspaceDf",
    "WorkspaceInfo",
    "hex_address_to_int",
]

PlainTypes = float | str | dict[str, "PlainTypes"] | list["PlainTypes"]
JSONResponse = dict[str, PlainTypes] | list[dict[str, PlainTypes]] | PlainTypes


# Errors {{{


class ConfigurationError(Exception):
    """The environment does not describe a reachable Hyprland instance."""


class MissingEnvironmentError(ConfigurationError):
    """A required environment variable is not set."""

    def __init__(self, variable: str, hint: str = "") -> None:
        self.variable = variable
        message = f"{variable} is not set!"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)


class StreamEndedError(EOFError):
    """The event stream ended before any byte of a new record."""


class SocketState(Enum):
    """Lifecycle of a connection handle."""

    CONNECTED = "connected"
    USED = "used"  # control socket: its single command completed
    FAILED = "failed"
    CLOSED = "closed"


class SocketStateError(RuntimeError):
    """An operation was requested on a handle which can no longer serve it."""

    def __init__(self, state: SocketState) -> None:
        self.state = state
        super().__init__(f"socket is {state.value}")


# }}}

# Control flags {{{


class FlagKind(Enum):
    """Kinds of control socket flags."""

    JSON = "json"
    CUSTOM = "custom"
    NONE = "none"


@dataclass(frozen=True)
class CtlFlag:
    """A flag prefixed to a control command (before the ``/``)."""

    kind: FlagKind = FlagKind.NONE
    text: str = ""

    JSON: ClassVar["CtlFlag"]
    NONE: ClassVar["CtlFlag"]

    @classmethod
    def custom(cls, text: str) -> "CtlFlag":
        """Return a flag sending `text` verbatim."""
        return cls(FlagKind.CUSTOM, text)

    def as_bytes(self) -> bytes:
        """Return the wire representation of the flag."""
        if self.kind is FlagKind.JSON:
            return b"j"
        if self.kind is FlagKind.CUSTOM:
            return self.text.encode()
        return b""


CtlFlag.JSON = CtlFlag(FlagKind.JSON)
CtlFlag.NONE = CtlFlag(FlagKind.NONE)


# }}}

# CLI {{{


class ExitCode(IntEnum):
    """Exit codes of the hyprsock CLI."""

    SUCCESS = 0
    USAGE_ERROR = 1
    ENV_ERROR = 2  # Missing environment variables
    CONNECTION_ERROR = 3  # Cannot connect or talk to the compositor
    STREAM_ENDED = 4  # Event socket closed by the compositor


# }}}

# Hyprland JSON shapes {{{


class WorkspaceDf(TypedDict):
    """Workspace reference."""

    id: int
    name: str


class MonitorInfo(TypedDict):
    """Monitor information as returned by ``j/monitors``."""

    id: int
    name: str
    description: str
    make: str
    model: str
    serial: str
    width: int
    height: int
    refreshRate: float
    x: int
    y: int
    activeWorkspace: WorkspaceDf
    specialWorkspace: NotRequired[WorkspaceDf | None]
    reserved: list[int]
    scale: float
    transform: int
    focused: bool
    dpmsStatus: bool
    vrr: bool
    activelyTearing: bool
    disabled: bool
    currentFormat: str
    availableModes: list[str]


ClientInfo = TypedDict(
    "ClientInfo",
    {
        "address": str,
        "mapped": bool,
        "hidden": bool,
        "at": list[int],
        "size": list[int],
        "workspace": WorkspaceDf,
        "floating": bool,
        "pseudo": bool,
        "monitor": int,
        "class": str,
        "title": str,
        "initialClass": str,
        "initialTitle": str,
        "pid": int,
        "xwayland": bool,
        "pinned": bool,
        "fullscreen": bool,
        "fullscreenMode": int,
        "fakeFullscreen": bool,
        "grouped": list[str],
        "tags": list[str],
        "swallowing": str,
        "focusHistoryID": int,
    },
)
"""Client (window) information as returned by ``j/clients``."""


class WorkspaceInfo(TypedDict):
    """Workspace information as returned by ``j/workspaces``."""

    id: int
    name: str
    monitor: str
    monitorID: int
    windows: int
    hasfullscreen: bool
    lastwindow: str
    lastwindowtitle: str


class KeyboardInfo(TypedDict):
    """Keyboard entry of ``j/devices``."""

    address: str
    name: str
    rules: str
    model: str
    layout: str
    variant: str
    options: str
    active_keymap: str
    main: bool


class MouseInfo(TypedDict):
    """Mouse entry of ``j/devices``."""

    address: str
    name: str
    defaultSpeed: float


class SwitchInfo(TypedDict):
    """Switch entry of ``j/devices``."""

    address: str
    name: str


class DevicesInfo(TypedDict, total=False):
    """Result of ``j/devices``."""

    mice: list[MouseInfo]
    keyboards: list[KeyboardInfo]
    switches: list[SwitchInfo]


class VersionInfo(TypedDict):
    """Result of ``j/version``."""

    branch: str
    commit: str
    dirty: bool
    commit_message: str
    commit_date: str
    tag: str
    commits: str
    flags: list[str]


class LayerInfo(TypedDict):
    """A layer surface of ``j/layers``."""

    address: str
    x: int
    y: int
    w: int
    h: int
    namespace: str


class LayerLevels(TypedDict):
    """Layers of one monitor, keyed by level ("0" to "3")."""

    levels: dict[str, list[LayerInfo]]


class CursorPos(TypedDict):
    """Result of ``j/cursorpos``."""

    x: int
    y: int


class InstanceInfo(TypedDict):
    """A running compositor, as listed by ``j/instances``."""

    instance: str
    time: int
    pid: int
    wl_socket: str


# }}}


def hex_address_to_int(address: str) -> int | None:
    """Convert a window address such as ``"0x58481cd30ae0"`` to an integer.

    Returns None if `address` is not ``0x`` followed by hexadecimal digits.
    """
    digits = address[2:]
    if not address.startswith("0x") or not digits or any(c not in string.hexdigits for c in digits):
        return None
    return int(digits, 16)
