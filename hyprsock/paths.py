"""Socket path discovery from the environment."""

import os
from collections.abc import Mapping
from pathlib import Path

from .constants import CONTROL_SOCKET_NAME, EVENT_SOCKET_NAME, INSTANCE_SIGNATURE_VAR, RUNTIME_DIR_VAR, SOCKET_SUBDIR
from .models import MissingEnvironmentError

__all__ = [
    "control_socket_path",
    "event_socket_path",
    "socket_dir",
    "socket_path",
]


def socket_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Return the folder holding the sockets of the current Hyprland instance.

    Args:
        environ: environment to read (defaults to `os.environ`)

    Raises:
        MissingEnvironmentError: the instance signature or the runtime dir is not set
    """
    if environ is None:
        environ = os.environ
    signature = environ.get(INSTANCE_SIGNATURE_VAR)
    if not signature:
        raise MissingEnvironmentError(INSTANCE_SIGNATURE_VAR, "Are you using Hyprland?")
    runtime_dir = environ.get(RUNTIME_DIR_VAR)
    if not runtime_dir:
        raise MissingEnvironmentError(RUNTIME_DIR_VAR, "Are you using Linux?")
    return Path(runtime_dir) / SOCKET_SUBDIR / signature


def socket_path(socket_name: str, environ: Mapping[str, str] | None = None) -> Path:
    """Return the path of `socket_name` for the current Hyprland instance.

    No filesystem check is done, a missing socket shows up when connecting.
    """
    return socket_dir(environ) / socket_name


def control_socket_path(environ: Mapping[str, str] | None = None) -> Path:
    """Path of the control (hyprctl) socket."""
    return socket_path(CONTROL_SOCKET_NAME, environ)


def event_socket_path(environ: Mapping[str, str] | None = None) -> Path:
    """Path of the event socket."""
    return socket_path(EVENT_SOCKET_NAME, environ)
