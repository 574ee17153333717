"""Connection handle lifecycle shared by the control and event sockets."""

import contextlib
from collections.abc import Iterator
from logging import Logger

from .models import SocketState, SocketStateError

__all__ = ["ConnectionHandle"]


class ConnectionHandle:
    """Owns one connected backend and tracks its state.

    CONNECTED -> FAILED on any error (cancellation included), then CLOSED once
    the owner calls `close`. Requests are refused outside of CONNECTED.
    A handle must not be shared between concurrent tasks without external locking.
    """

    log: Logger

    def __init__(self) -> None:
        self.state = SocketState.CONNECTED

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.state.value}>"

    @property
    def connected(self) -> bool:
        """True while the handle accepts requests."""
        return self.state is SocketState.CONNECTED

    def ensure_connected(self) -> None:
        """Raise `SocketStateError` unless the handle can serve a request."""
        if self.state is not SocketState.CONNECTED:
            raise SocketStateError(self.state)

    @contextlib.contextmanager
    def guard(self) -> Iterator[None]:
        """Run one request, the handle becomes FAILED if anything interrupts it."""
        self.ensure_connected()
        try:
            yield
        except BaseException as e:
            self.state = SocketState.FAILED
            self.log.debug("%r failed: %r", self, e)
            raise

    def _mark_closed(self) -> bool:
        """Move to CLOSED, return False if it already was."""
        if self.state is SocketState.CLOSED:
            return False
        self.state = SocketState.CLOSED
        return True
