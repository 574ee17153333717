"""Control socket: command buffers and request/response exchange.

A request is ``[flags]/word word word\\n``; the response is everything the
compositor writes before closing the connection. A connection serves exactly
one command.
"""

import json
import os
from collections.abc import Iterable
from logging import Logger
from typing import cast

from .backends import AsyncioUnixSocket, AsyncSocketBackend, BlockingUnixSocket, SocketBackend
from .constants import COMMAND_PREFIX, COMMAND_TERMINATOR, WORD_SEPARATOR
from .handles import ConnectionHandle
from .logging_setup import get_logger
from .models import CtlFlag, JSONResponse, MonitorInfo, SocketState
from .paths import control_socket_path

__all__ = [
    "AsyncHyprctlSocket",
    "Command",
    "HyprctlSocket",
    "decode_json",
]


class Command:
    """An encoded control request, ready to be sent verbatim."""

    __slots__ = ("_buffer",)

    def __init__(self, buffer: bytearray) -> None:
        self._buffer = buffer

    @classmethod
    def build(cls, flags: Iterable[CtlFlag] | None, words: Iterable[str], reuse_buffer: bytearray | None = None) -> "Command":
        """Encode a command.

        Args:
            flags: flags written before the ``/`` (eg: `CtlFlag.JSON`)
            words: command words, joined with single spaces. They are not sanitized:
                a word containing a newline breaks the request
            reuse_buffer: a buffer to recycle (eg: from `into_inner`), its content is discarded
        """
        buffer = bytearray() if reuse_buffer is None else reuse_buffer
        buffer.clear()
        for flag in flags or ():
            buffer += flag.as_bytes()
        buffer += COMMAND_PREFIX
        prefix_len = len(buffer)
        for word in words:
            buffer += word.encode()
            buffer += WORD_SEPARATOR
        if len(buffer) > prefix_len:
            # the last separator becomes the terminator
            buffer[-len(WORD_SEPARATOR) :] = COMMAND_TERMINATOR
        else:
            buffer += COMMAND_TERMINATOR
        return cls(buffer)

    @classmethod
    def from_raw(cls, buffer: bytes | bytearray) -> "Command":
        """Wrap an already encoded request, without any check."""
        return cls(bytearray(buffer))

    @property
    def data(self) -> bytes:
        """The request bytes."""
        return bytes(self._buffer)

    def try_as_str(self) -> str:
        """Decode the request as UTF-8, raises `UnicodeDecodeError` if it can't."""
        return self._buffer.decode()

    def into_inner(self) -> bytearray:
        """Give back the underlying buffer, to be recycled by `build`."""
        buffer = self._buffer
        self._buffer = bytearray()
        return buffer

    def __len__(self) -> int:
        return len(self._buffer)

    def __bytes__(self) -> bytes:
        return self.data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Command):
            return NotImplemented
        return self._buffer == other._buffer

    def __hash__(self) -> int:
        return hash(bytes(self._buffer))

    def __repr__(self) -> str:
        return f"Command({bytes(self._buffer)!r})"


def decode_json(response: bytes) -> JSONResponse:
    """Decode the response of a JSON flagged command."""
    return json.loads(response.decode("utf-8", errors="replace"))  # type: ignore


def _exec_command(shell_command: str) -> Command:
    return Command.build(None, ["dispatch", "--", "exec", shell_command])


def _json_command(words: Iterable[str]) -> Command:
    return Command.build([CtlFlag.JSON], words)


class HyprctlSocket(ConnectionHandle):
    """Blocking control socket connection."""

    backend_class: type[SocketBackend] = BlockingUnixSocket

    def __init__(self, backend: SocketBackend, logger: Logger | None = None) -> None:
        super().__init__()
        self.backend = backend
        self.log = logger or get_logger("ctl")

    @classmethod
    def new_from_path(cls, path: str | os.PathLike, logger: Logger | None = None) -> "HyprctlSocket":
        """Connect to the control socket at `path`."""
        log = logger or get_logger("ctl")
        log.debug("connecting to %s", path)
        return cls(cls.backend_class.connect(path), logger=log)

    @classmethod
    def new_from_env(cls, logger: Logger | None = None) -> "HyprctlSocket":
        """Connect to the control socket of the running Hyprland instance.

        Raises:
            MissingEnvironmentError: if the instance can't be located
        """
        return cls.new_from_path(control_socket_path(), logger=logger)

    def run_hyprctl(self, command: Command) -> bytes:
        """Send `command` and return the full response."""
        return self.send_bytes(command.data)

    def send_bytes(self, data: bytes) -> bytes:
        """Send raw `data` and read until the compositor closes the connection."""
        with self.guard():
            self.backend.write_all(data)
            response = self.backend.read_to_end()
        self.state = SocketState.USED
        self.log.debug("%r -> %d bytes", data, len(response))
        return response

    def dispatch_exec(self, shell_command: str) -> bytes:
        """Run `shell_command` through ``dispatch -- exec``."""
        return self.run_hyprctl(_exec_command(shell_command))

    def hyprctl_json(self, *words: str) -> JSONResponse:
        """Run a command with the JSON flag and decode the response."""
        return decode_json(self.run_hyprctl(_json_command(words)))

    def get_monitors(self) -> list[MonitorInfo]:
        """Return the monitors description."""
        return cast("list[MonitorInfo]", self.hyprctl_json("monitors"))

    def close(self) -> None:
        """Close the connection (idempotent)."""
        if self._mark_closed():
            self.backend.close()

    def __enter__(self) -> "HyprctlSocket":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class AsyncHyprctlSocket(ConnectionHandle):
    """Asyncio control socket connection, same API as `HyprctlSocket` but awaitable."""

    backend_class: type[AsyncSocketBackend] = AsyncioUnixSocket

    def __init__(self, backend: AsyncSocketBackend, logger: Logger | None = None) -> None:
        super().__init__()
        self.backend = backend
        self.log = logger or get_logger("ctl")

    @classmethod
    async def new_from_path(cls, path: str | os.PathLike, logger: Logger | None = None) -> "AsyncHyprctlSocket":
        """Connect to the control socket at `path`."""
        log = logger or get_logger("ctl")
        log.debug("connecting to %s", path)
        return cls(await cls.backend_class.connect(path), logger=log)

    @classmethod
    async def new_from_env(cls, logger: Logger | None = None) -> "AsyncHyprctlSocket":
        """Connect to the control socket of the running Hyprland instance."""
        return await cls.new_from_path(control_socket_path(), logger=logger)

    async def run_hyprctl(self, command: Command) -> bytes:
        """Send `command` and return the full response."""
        return await self.send_bytes(command.data)

    async def send_bytes(self, data: bytes) -> bytes:
        """Send raw `data` and read until the compositor closes the connection."""
        with self.guard():
            await self.backend.write_all(data)
            response = await self.backend.read_to_end()
        self.state = SocketState.USED
        self.log.debug("%r -> %d bytes", data, len(response))
        return response

    async def dispatch_exec(self, shell_command: str) -> bytes:
        """Run `shell_command` through ``dispatch -- exec``."""
        return await self.run_hyprctl(_exec_command(shell_command))

    async def hyprctl_json(self, *words: str) -> JSONResponse:
        """Run a command with the JSON flag and decode the response."""
        return decode_json(await self.run_hyprctl(_json_command(words)))

    async def get_monitors(self) -> list[MonitorInfo]:
        """Return the monitors description."""
        return cast("list[MonitorInfo]", await self.hyprctl_json("monitors"))

    async def close(self) -> None:
        """Close the connection (idempotent)."""
        if self._mark_closed():
            await self.backend.close()

    async def __aenter__(self) -> "AsyncHyprctlSocket":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()
