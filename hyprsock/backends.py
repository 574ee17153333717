"""I/O backends: the socket capabilities the codecs are written against.

Two flavours share the same capability set (connect, write everything, read
until the peer closes, read until a delimiter, close):

- `BlockingUnixSocket`: plain `socket` calls, for threads and scripts
- `AsyncioUnixSocket`: asyncio streams, every call is a suspension point

Errors raised by the platform are never translated nor retried.
"""

import asyncio
import contextlib
import os
import socket
from abc import ABC, abstractmethod

from .constants import READ_CHUNK_SIZE

__all__ = [
    "AsyncSocketBackend",
    "AsyncioUnixSocket",
    "BlockingUnixSocket",
    "SocketBackend",
]


class SocketBackend(ABC):
    """Blocking socket capabilities."""

    @classmethod
    @abstractmethod
    def connect(cls, path: str | os.PathLike) -> "SocketBackend":
        """Open a connection to the Unix socket at `path`."""

    @abstractmethod
    def write_all(self, data: bytes) -> None:
        """Send the whole `data`."""

    @abstractmethod
    def read_to_end(self) -> bytes:
        """Read until the peer closes its write side."""

    @abstractmethod
    def read_until(self, delimiter: bytes, buffer: bytearray) -> int:
        """Append bytes to `buffer` up to and including `delimiter`.

        Stops early at end-of-stream. Returns the number of bytes appended, 0 meaning
        the stream ended before any byte.
        """

    @abstractmethod
    def close(self) -> None:
        """Close the connection."""


class AsyncSocketBackend(ABC):
    """Awaitable socket capabilities, same contract as `SocketBackend`."""

    @classmethod
    @abstractmethod
    async def connect(cls, path: str | os.PathLike) -> "AsyncSocketBackend":
        """Open a connection to the Unix socket at `path`."""

    @abstractmethod
    async def write_all(self, data: bytes) -> None:
        """Send the whole `data`."""

    @abstractmethod
    async def read_to_end(self) -> bytes:
        """Read until the peer closes its write side."""

    @abstractmethod
    async def read_until(self, delimiter: bytes, buffer: bytearray) -> int:
        """Append bytes to `buffer` up to and including `delimiter`, see `SocketBackend.read_until`."""

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""


class BlockingUnixSocket(SocketBackend):
    """`SocketBackend` over a connected ``AF_UNIX`` stream socket.

    Bytes received past a delimiter are kept for the next `read_until` call,
    like a buffered reader would.
    """

    def __init__(self, sock: socket.socket, chunk_size: int = READ_CHUNK_SIZE) -> None:
        self._sock = sock
        self._pending = bytearray()
        self.chunk_size = chunk_size

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} fd={self._sock.fileno()} pending={len(self._pending)}>"

    @classmethod
    def connect(cls, path: str | os.PathLike) -> "BlockingUnixSocket":
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(os.fspath(path))
        except OSError:
            sock.close()
            raise
        return cls(sock)

    @classmethod
    def from_socket(cls, sock: socket.socket) -> "BlockingUnixSocket":
        """Wrap an already connected socket."""
        return cls(sock)

    def write_all(self, data: bytes) -> None:
        self._sock.sendall(data)

    def read_to_end(self) -> bytes:
        chunks = [bytes(self._pending)]
        self._pending.clear()
        while chunk := self._sock.recv(self.chunk_size):
            chunks.append(chunk)
        return b"".join(chunks)

    def read_until(self, delimiter: bytes, buffer: bytearray) -> int:
        start = len(buffer)
        searched = 0
        while True:
            index = self._pending.find(delimiter, searched)
            if index != -1:
                end = index + len(delimiter)
                buffer += self._pending[:end]
                del self._pending[:end]
                break
            # a delimiter may straddle two chunks, rescan its possible start only
            searched = max(0, len(self._pending) - len(delimiter) + 1)
            chunk = self._sock.recv(self.chunk_size)
            if not chunk:
                # end of stream: hand over what is left, possibly nothing
                buffer += self._pending
                self._pending.clear()
                break
            self._pending += chunk
        return len(buffer) - start

    def close(self) -> None:
        self._sock.close()


class AsyncioUnixSocket(AsyncSocketBackend):
    """`AsyncSocketBackend` over asyncio streams."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer

    @classmethod
    async def connect(cls, path: str | os.PathLike) -> "AsyncioUnixSocket":
        reader, writer = await asyncio.open_unix_connection(os.fspath(path))
        return cls(reader, writer)

    @classmethod
    async def from_socket(cls, sock: socket.socket) -> "AsyncioUnixSocket":
        """Wrap an already connected socket (must be used from a running loop)."""
        reader, writer = await asyncio.open_unix_connection(sock=sock)
        return cls(reader, writer)

    async def write_all(self, data: bytes) -> None:
        self._writer.write(data)
        await self._writer.drain()

    async def read_to_end(self) -> bytes:
        return await self._reader.read()

    async def read_until(self, delimiter: bytes, buffer: bytearray) -> int:
        start = len(buffer)
        while True:
            try:
                buffer += await self._reader.readuntil(delimiter)
            except asyncio.IncompleteReadError as e:
                # end of stream: hand over what is left, possibly nothing
                buffer += e.partial
            except asyncio.LimitOverrunError as e:
                # line longer than the stream limit: take what is buffered and keep going
                buffer += await self._reader.readexactly(e.consumed)
                continue
            return len(buffer) - start

    async def close(self) -> None:
        self._writer.close()
        # a broken connection was already reported by the failing read or write
        with contextlib.suppress(ConnectionError):
            await self._writer.wait_closed()
