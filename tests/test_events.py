import asyncio

import pytest

from hyprsock.backends import AsyncioUnixSocket, BlockingUnixSocket
from hyprsock.constants import EVENT_BUFFER_RETAIN
from hyprsock.events import AsyncEventSocket, EventSocket, RawEvent, parse, split_records
from hyprsock.models import SocketState, SocketStateError, StreamEndedError

from .testtools import ChunkedBackend, compositor_reply

# Parsing


def test_parse_workspace():
    assert parse("workspace>>3") == ("workspace", "3")
    assert parse(b"workspace>>3") == ("workspace", "3")
    assert parse(RawEvent(b"workspace>>3")) == ("workspace", "3")


def test_parse_without_delimiter():
    assert parse("nofield") is None
    assert parse("") is None
    assert parse("half>delimiter") is None
    assert parse("ends with>") is None


def test_parse_first_delimiter_wins():
    assert parse("activewindow>>kitty,vim a>>b") == ("activewindow", "kitty,vim a>>b")
    assert parse(">>>") == ("", ">")


def test_parse_empty_parts():
    assert parse("configreloaded>>") == ("configreloaded", "")
    assert parse(">>payload") == ("", "payload")


@pytest.mark.parametrize(
    "record",
    [
        b"openwindow>>80e62df0,2,jetbrains-goland,win430",
        b"monitoradded>>DP-2",
        b"a>>b>>c",
        b"title>>\xc3\xa9t\xc3\xa9",
    ],
)
def test_parse_round_trip(record):
    name, payload = parse(record)
    assert f"{name}>>{payload}".encode() == record


def test_parse_into_buffers():
    name, payload = bytearray(b"old name"), bytearray(b"old payload")
    assert RawEvent(b"focusedmon>>DP-1,2").parse_into(name, payload)
    assert name == b"focusedmon"
    assert payload == b"DP-1,2"


def test_failed_parse_leaves_buffers_untouched():
    name, payload = bytearray(b"scratch"), bytearray(b"space")
    assert not RawEvent(b"nofield").parse_into(name, payload)
    assert not RawEvent(b"").parse_into(name, payload)
    assert name == b"scratch"
    assert payload == b"space"


def test_parse_invalid_utf8():
    record = RawEvent(b"windowtitle>>\xff\xfe")
    assert record.try_parse() is None
    name, payload = bytearray(), bytearray()
    assert record.parse_into(name, payload)
    assert payload == b"\xff\xfe"


def test_split_records():
    records = split_records(b"a>>1\nb>>2\n")
    assert records == [RawEvent(b"a>>1"), RawEvent(b"b>>2"), RawEvent(b"")]
    assert [r.try_parse() for r in records] == [("a", "1"), ("b", "2"), None]


def test_split_records_without_trailing_newline():
    assert split_records(b"a>>1\n\nb>>2") == [RawEvent(b"a>>1"), RawEvent(b""), RawEvent(b"b>>2")]
    assert split_records(b"") == [RawEvent(b"")]


# Single frame mode


def test_next_event_frames_lines():
    events = EventSocket(ChunkedBackend(b"work", b"space>>1\nfocusedmon>>DP-1,1\nactivewin", b"dow>>kitty,~\n"))
    assert events.next_event() == RawEvent(b"workspace>>1")
    assert events.next_event() == RawEvent(b"focusedmon>>DP-1,1")
    assert events.next_event().try_parse() == ("activewindow", "kitty,~")


def test_next_event_over_socket(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"workspace>>2\ncreateworkspace>>3\n")

    with EventSocket(BlockingUnixSocket.from_socket(local)) as events:
        assert events.next_event().data == b"workspace>>2"
        assert events.next_event().data == b"createworkspace>>3"
        with pytest.raises(StreamEndedError):
            events.next_event()
        assert events.state is SocketState.FAILED
    assert events.state is SocketState.CLOSED


def test_next_event_on_immediate_close(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"")

    events = EventSocket(BlockingUnixSocket.from_socket(local))
    with pytest.raises(StreamEndedError):
        events.next_event()
    with pytest.raises(SocketStateError) as exc_info:
        events.next_event()
    assert exc_info.value.state is SocketState.FAILED


def test_next_event_partial_line_at_end():
    events = EventSocket(ChunkedBackend(b"urgent>>80e62df0\nclosewin"))
    assert events.next_event().data == b"urgent>>80e62df0"
    assert events.next_event().data == b"closewin"
    with pytest.raises(StreamEndedError):
        events.next_event()


def test_next_event_empty_line():
    events = EventSocket(ChunkedBackend(b"\nsubmap>>resize\n"))
    assert events.next_event() == RawEvent(b"")
    assert events.next_event().try_parse() == ("submap", "resize")


def test_next_event_read_error(mocker):
    backend = ChunkedBackend()
    mocker.patch.object(backend, "read_until", side_effect=ConnectionResetError(104, "Connection reset by peer"))
    events = EventSocket(backend)
    with pytest.raises(ConnectionResetError):
        events.next_event()
    with pytest.raises(SocketStateError):
        events.read_events()
    assert backend.read_until.call_count == 1


def test_oversized_line_releases_buffer():
    big = b"windowtitle>>" + b"x" * (EVENT_BUFFER_RETAIN + 10)
    events = EventSocket(ChunkedBackend(big + b"\n", b"workspace>>1\n"))
    initial = events._buffer
    assert events.next_event().data == big
    assert events._buffer is not initial
    assert len(events._buffer) == 0
    small = events._buffer
    assert events.next_event().data == b"workspace>>1"
    assert events._buffer is small


def test_iterate_until_end(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"openlayer>>waybar\ncloselayer>>waybar\n")

    events = EventSocket(BlockingUnixSocket.from_socket(local))
    assert [record.try_parse() for record in events] == [("openlayer", "waybar"), ("closelayer", "waybar")]
    assert events.state is SocketState.FAILED


def test_connect_from_env(mocker, hyprland_env):
    connect = mocker.patch.object(BlockingUnixSocket, "connect", return_value=ChunkedBackend())
    EventSocket.new_from_env()
    connect.assert_called_once_with(hyprland_env / ".socket2.sock")


# Batch drain mode


def test_read_events_batch(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"a>>1\nb>>2\n")

    events = EventSocket(BlockingUnixSocket.from_socket(local))
    records = events.read_events()
    assert len(records) == 3
    assert records[-1] == RawEvent(b"")
    assert [r.try_parse() for r in records[:2]] == [("a", "1"), ("b", "2")]


def test_read_events_after_next_event():
    events = EventSocket(ChunkedBackend(b"a>>1\nb>>", b"2\nc>>3\n"))
    assert events.next_event().data == b"a>>1"
    assert events.read_events() == [RawEvent(b"b>>2"), RawEvent(b"c>>3"), RawEvent(b"")]


def test_read_events_ends_the_socket(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"a>>1\n")

    events = EventSocket(BlockingUnixSocket.from_socket(local))
    assert events.read_events() == [RawEvent(b"a>>1"), RawEvent(b"")]
    assert events.state is SocketState.FAILED
    with pytest.raises(SocketStateError):
        events.read_events()
    with pytest.raises(SocketStateError):
        events.next_event()
    events.close()
    assert events.state is SocketState.CLOSED


# Asyncio


@pytest.mark.asyncio
async def test_async_next_event(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"activespecial>>special:term,DP-1\nmoveworkspace>>2,DP-1\n")

    async with AsyncEventSocket(await AsyncioUnixSocket.from_socket(local)) as events:
        assert (await events.next_event()).try_parse() == ("activespecial", "special:term,DP-1")
        assert (await events.next_event()).try_parse() == ("moveworkspace", "2,DP-1")
        with pytest.raises(StreamEndedError):
            await events.next_event()


@pytest.mark.asyncio
async def test_async_iterate(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"fullscreen>>1\nfullscreen>>0")

    events = AsyncEventSocket(await AsyncioUnixSocket.from_socket(local))
    records = [record async for record in events]
    await events.close()
    assert records == [RawEvent(b"fullscreen>>1"), RawEvent(b"fullscreen>>0")]


@pytest.mark.asyncio
async def test_async_read_events(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"a>>1\nb>>2\n")

    events = AsyncEventSocket(await AsyncioUnixSocket.from_socket(local))
    assert await events.read_events() == [RawEvent(b"a>>1"), RawEvent(b"b>>2"), RawEvent(b"")]
    await events.close()


@pytest.mark.asyncio
async def test_async_cancel_fails_the_socket(socket_pair):
    local, remote = socket_pair
    remote.sendall(b"workspace>>")  # the line never completes

    events = AsyncEventSocket(await AsyncioUnixSocket.from_socket(local))
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(events.next_event(), timeout=0.1)
    assert events.state is SocketState.FAILED

    remote.sendall(b"1\n")
    with pytest.raises(SocketStateError):
        await events.next_event()
    await events.close()
    assert events.state is SocketState.CLOSED


@pytest.mark.asyncio
async def test_async_task_cancelled(socket_pair):
    local, _ = socket_pair
    events = AsyncEventSocket(await AsyncioUnixSocket.from_socket(local))
    task = asyncio.create_task(events.next_event())
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert events.state is SocketState.FAILED
    await events.close()


@pytest.mark.asyncio
async def test_async_connect_missing_path(short_tmp):
    with pytest.raises(FileNotFoundError):
        await AsyncEventSocket.new_from_path(short_tmp / ".socket2.sock")


@pytest.mark.asyncio
async def test_async_read_events_ends_the_socket(socket_pair):
    local, remote = socket_pair
    compositor_reply(remote, b"a>>1\n")

    events = AsyncEventSocket(await AsyncioUnixSocket.from_socket(local))
    assert await events.read_events() == [RawEvent(b"a>>1"), RawEvent(b"")]
    assert events.state is SocketState.FAILED
    with pytest.raises(SocketStateError):
        await events.read_events()
    with pytest.raises(SocketStateError):
        await events.next_event()
    await events.close()
