"""Channel lifecycle: open, close and error classification."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable

from moonsync._constants import ERROR_REQUEST_REJECTED, ERROR_SERVICE_UNAVAILABLE, ERROR_STATE
from moonsync.models.events import SocketClosed, SocketError, SocketOpened
from moonsync.scheduling import RetryTimer
from moonsync.state.store import PrinterStateStore

_logger = logging.getLogger(__name__)


class ConnectionStatus(enum.StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    ERROR = "error"


class ConnectionLifecycleManager:
    """Reacts to channel open/close/error.

    Parameters
    ----------
    state
        Shared printer state.
    request_info
        Issues the printer info request that starts initialization.
    retry_timer
        Shared timer that re-requests printer info.
    on_reset
        Called after volatile state was reset by a ``503``.
    """

    def __init__(
        self,
        state: PrinterStateStore,
        *,
        request_info: Callable[[], None],
        retry_timer: RetryTimer,
        on_reset: Callable[[], None] | None = None,
    ) -> None:
        self._state = state
        self._request_info = request_info
        self._retry_timer = retry_timer
        self._on_reset = on_reset
        self._status = ConnectionStatus.DISCONNECTED
        self._last_error: str | None = None

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def on_open(self, event: SocketOpened) -> None:
        _logger.debug("Socket opened")
        self._status = ConnectionStatus.CONNECTED
        self._last_error = None
        # A retry armed on the previous channel must not duplicate this request.
        self._retry_timer.cancel()
        self._request_info()

    def on_close(self, event: SocketClosed) -> None:
        # Reconnecting is the transport owner's decision; nothing is retried here.
        _logger.debug("Socket closed code=%s reason=%s", event.code, event.reason)
        self._retry_timer.cancel()
        self._status = ConnectionStatus.DISCONNECTED

    def on_error(self, event: SocketError) -> None:
        self._last_error = event.message or None

        if event.code == ERROR_REQUEST_REJECTED:
            self._handle_rejected(event)
            return
        if event.code == ERROR_SERVICE_UNAVAILABLE:
            self._handle_unavailable(event)
            return

        if event.code is None:
            self._status = ConnectionStatus.ERROR
        _logger.warning("Unhandled socket error code=%s message=%s", event.code, event.message)

    def _handle_rejected(self, event: SocketError) -> None:
        wait = event.request.wait if event.request is not None else None
        if wait is not None:
            removed = self._state.remove_wait(wait)
            _logger.debug("Request rejected; wait=%s removed=%s", wait, removed)
        _logger.debug("Request rejected: %s", event.message)

    def _handle_unavailable(self, event: SocketError) -> None:
        # Klippy is unreachable or misconfigured; restart initialization after the delay.
        _logger.debug("Service unavailable: %s; retrying in %.3fs", event.message, self._retry_timer.delay)
        self._state.reset()
        self._state.merge_info({"state": ERROR_STATE, "state_message": event.message})
        if self._on_reset is not None:
            self._on_reset()
        self._retry_timer.schedule()
