"""One-shot asyncio helpers on top of the sockets.

Every call opens its own control connection, as the compositor serves a
single command per connection.
"""

__all__ = [
    "dispatch",
    "get_event_stream",
    "hyprctl",
    "hyprctl_connection",
    "hyprctl_json",
]

import contextlib
import os
from collections.abc import AsyncIterator, Iterable, Sequence
from logging import Logger

from .command import AsyncHyprctlSocket, Command, decode_json
from .events import AsyncEventSocket
from .logging_setup import get_logger
from .models import CtlFlag, JSONResponse

SocketPath = str | os.PathLike | None


@contextlib.asynccontextmanager
async def hyprctl_connection(path: SocketPath = None, logger: Logger | None = None) -> AsyncIterator[AsyncHyprctlSocket]:
    """Open a control connection, closed when leaving the block.

    Args:
        path: socket path, discovered from the environment if not set
        logger: logger to use
    """
    logger = logger or get_logger("ipc")
    try:
        if path is None:
            ctl = await AsyncHyprctlSocket.new_from_env(logger=logger)
        else:
            ctl = await AsyncHyprctlSocket.new_from_path(path, logger=logger)
    except FileNotFoundError:
        logger.critical("hyprctl socket not found! is it running ?")
        raise
    try:
        yield ctl
    finally:
        await ctl.close()


async def hyprctl(
    command: str | Sequence[str],
    base_command: str = "dispatch",
    *,
    flags: Iterable[CtlFlag] | None = None,
    path: SocketPath = None,
    logger: Logger | None = None,
) -> bytes:
    """Run `base_command` with `command` as arguments and return the raw response.

    Args:
        command: arguments, a single string is sent as is
        base_command: first word of the request
        flags: flags to prefix the request with
        path: socket path, discovered from the environment if not set
        logger: logger to use
    """
    words = [base_command, command] if isinstance(command, str) else [base_command, *command]
    async with hyprctl_connection(path, logger) as ctl:
        return await ctl.run_hyprctl(Command.build(flags, words))


async def hyprctl_json(command: str, *, path: SocketPath = None, logger: Logger | None = None) -> JSONResponse:
    """Run an information command (eg: "monitors", "clients") and return the decoded JSON."""
    async with hyprctl_connection(path, logger) as ctl:
        return decode_json(await ctl.run_hyprctl(Command.build([CtlFlag.JSON], [command])))


async def dispatch(command: str, *, path: SocketPath = None, logger: Logger | None = None, weak: bool = False) -> bool:
    """Run a dispatcher, return True if the compositor answered "ok".

    Args:
        command: dispatcher and its arguments (eg: "workspace 3")
        path: socket path, discovered from the environment if not set
        logger: logger to use in case of error
        weak: if True, only log a warning on failure
    """
    logger = logger or get_logger("ipc")
    resp = (await hyprctl(command, path=path, logger=logger)).strip()
    if resp == b"ok":
        return True
    if weak:
        logger.warning("FAILED %s: %s", command, resp)
    else:
        logger.error("FAILED %s: %s", command, resp)
    return False


async def get_event_stream(path: SocketPath = None, logger: Logger | None = None) -> AsyncEventSocket:
    """Return a new event socket connection, the caller owns (and closes) it."""
    if path is None:
        return await AsyncEventSocket.new_from_env(logger=logger)
    return await AsyncEventSocket.new_from_path(path, logger=logger)
