"""Event socket: newline framed ``name>>payload`` records.

Two ways to consume a stream:

- single frame: `next_event` returns one record per call (or iterate the socket)
- batch drain: `read_events` reads until the compositor closes the connection,
  only meant for connections which are closed after a batch

Parsing never raises: a record which can't be split (or decoded) gives None.
"""

import os
from collections.abc import AsyncIterator, Iterator
from logging import Logger

from .backends import AsyncioUnixSocket, AsyncSocketBackend, BlockingUnixSocket, SocketBackend
from .constants import EVENT_BUFFER_RETAIN, EVENT_DELIMITER, RECORD_SEPARATOR
from .handles import ConnectionHandle
from .logging_setup import get_logger
from .models import SocketState, StreamEndedError
from .paths import event_socket_path

__all__ = [
    "AsyncEventSocket",
    "EventSocket",
    "RawEvent",
    "parse",
    "split_records",
]


class RawEvent:
    """One unparsed event line, without its newline."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = data

    @classmethod
    def from_raw(cls, data: bytes | bytearray) -> "RawEvent":
        """Wrap a record, without any check."""
        return cls(bytes(data))

    @property
    def data(self) -> bytes:
        """The record bytes."""
        return self._data

    def try_as_str(self) -> str:
        """Decode the whole record, raises `UnicodeDecodeError` if it can't."""
        return self._data.decode()

    def parse_into(self, name_buffer: bytearray, data_buffer: bytearray) -> bool:
        """Split the record into pre-allocated buffers.

        The name is what comes before the first ``>>``, the payload what comes after.
        Returns False, leaving both buffers untouched, if there is no ``>>``.
        """
        index = self._data.find(EVENT_DELIMITER)
        if index == -1:
            return False
        name_buffer.clear()
        data_buffer.clear()
        name_buffer += self._data[:index]
        data_buffer += self._data[index + len(EVENT_DELIMITER) :]
        return True

    def try_parse(self) -> tuple[str, str] | None:
        """Return (name, payload), or None if the record is not a valid UTF-8 event."""
        name, payload = bytearray(), bytearray()
        if not self.parse_into(name, payload):
            return None
        try:
            return name.decode(), payload.decode()
        except UnicodeDecodeError:
            return None

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RawEvent):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"RawEvent({self._data!r})"


def parse(record: RawEvent | bytes | str) -> tuple[str, str] | None:
    """Parse one record into (name, payload), see `RawEvent.try_parse`."""
    if isinstance(record, str):
        record = record.encode()
    if not isinstance(record, RawEvent):
        record = RawEvent.from_raw(record)
    return record.try_parse()


def split_records(data: bytes) -> list[RawEvent]:
    """Split drained bytes on every newline.

    A trailing newline produces a final empty record.
    """
    return [RawEvent(segment) for segment in data.split(RECORD_SEPARATOR)]


class _EventFraming(ConnectionHandle):
    """Record buffer management shared by both event sockets."""

    def __init__(self, logger: Logger | None) -> None:
        super().__init__()
        self.log = logger or get_logger("events")
        self._buffer = bytearray()

    def _take_record(self, count: int) -> RawEvent:
        """Turn the `count` bytes just framed into a record and reset the buffer."""
        if count == 0:
            msg = "event stream ended"
            raise StreamEndedError(msg)
        end = len(self._buffer)
        if self._buffer.endswith(RECORD_SEPARATOR):
            end -= len(RECORD_SEPARATOR)
        record = RawEvent(bytes(self._buffer[:end]))
        if len(self._buffer) > EVENT_BUFFER_RETAIN:
            self._buffer = bytearray()
        else:
            self._buffer.clear()
        return record

    def _drained(self, data: bytes) -> list[RawEvent]:
        """Split a drained stream, the peer closed it so the handle is done."""
        self.state = SocketState.FAILED
        records = split_records(data)
        self.log.debug("drained %d bytes, %d records", len(data), len(records))
        return records


class EventSocket(_EventFraming):
    """Blocking event socket connection."""

    backend_class: type[SocketBackend] = BlockingUnixSocket

    def __init__(self, backend: SocketBackend, logger: Logger | None = None) -> None:
        super().__init__(logger)
        self.backend = backend

    @classmethod
    def new_from_path(cls, path: str | os.PathLike, logger: Logger | None = None) -> "EventSocket":
        """Connect to the event socket at `path`."""
        log = logger or get_logger("events")
        log.debug("connecting to %s", path)
        return cls(cls.backend_class.connect(path), logger=log)

    @classmethod
    def new_from_env(cls, logger: Logger | None = None) -> "EventSocket":
        """Connect to the event socket of the running Hyprland instance.

        Raises:
            MissingEnvironmentError: if the instance can't be located
        """
        return cls.new_from_path(event_socket_path(), logger=logger)

    def next_event(self) -> RawEvent:
        """Block until the next record is complete and return it.

        A record cut by the end of the stream is returned as is, the following call
        raises `StreamEndedError`.
        """
        with self.guard():
            return self._take_record(self.backend.read_until(RECORD_SEPARATOR, self._buffer))

    def read_events(self) -> list[RawEvent]:
        """Read until the compositor closes the connection and return every record."""
        with self.guard():
            return self._drained(self.backend.read_to_end())

    def __iter__(self) -> Iterator[RawEvent]:
        """Yield records until the stream ends."""
        while True:
            try:
                yield self.next_event()
            except StreamEndedError:
                return

    def close(self) -> None:
        """Close the connection (idempotent)."""
        if self._mark_closed():
            self.backend.close()

    def __enter__(self) -> "EventSocket":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


class AsyncEventSocket(_EventFraming):
    """Asyncio event socket connection.

    A cancelled `next_event` leaves the socket FAILED: the part of a line
    already read is lost.
    """

    backend_class: type[AsyncSocketBackend] = AsyncioUnixSocket

    def __init__(self, backend: AsyncSocketBackend, logger: Logger | None = None) -> None:
        super().__init__(logger)
        self.backend = backend

    @classmethod
    async def new_from_path(cls, path: str | os.PathLike, logger: Logger | None = None) -> "AsyncEventSocket":
        """Connect to the event socket at `path`."""
        log = logger or get_logger("events")
        log.debug("connecting to %s", path)
        return cls(await cls.backend_class.connect(path), logger=log)

    @classmethod
    async def new_from_env(cls, logger: Logger | None = None) -> "AsyncEventSocket":
        """Connect to the event socket of the running Hyprland instance."""
        return await cls.new_from_path(event_socket_path(), logger=logger)

    async def next_event(self) -> RawEvent:
        """Wait for the next record, see `EventSocket.next_event`."""
        with self.guard():
            return self._take_record(await self.backend.read_until(RECORD_SEPARATOR, self._buffer))

    async def read_events(self) -> list[RawEvent]:
        """Read until the compositor closes the connection and return every record."""
        with self.guard():
            return self._drained(await self.backend.read_to_end())

    async def _iterate(self) -> AsyncIterator[RawEvent]:
        while True:
            try:
                yield await self.next_event()
            except StreamEndedError:
                return

    def __aiter__(self) -> AsyncIterator[RawEvent]:
        """Yield records until the stream ends."""
        return self._iterate()

    async def close(self) -> None:
        """Close the connection (idempotent)."""
        if self._mark_closed():
            await self.backend.close()

    async def __aenter__(self) -> "AsyncEventSocket":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()
