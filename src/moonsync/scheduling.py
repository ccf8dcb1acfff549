"""Single-slot retry timer on the asyncio loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

_logger = logging.getLogger(__name__)


class RetryTimer:
    """Runs *callback* once, *delay* seconds after the latest :meth:`schedule`.

    At most one call is ever pending: scheduling again cancels the pending
    handle and arms a new one.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], None],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "retry",
    ) -> None:
        self._delay = delay
        self._callback = callback
        self._loop = loop
        self._name = name
        self._handle: asyncio.TimerHandle | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        loop = self._loop or asyncio.get_running_loop()
        replaced = self._handle is not None
        self.cancel()
        self._handle = loop.call_later(self._delay, self._fire)
        _logger.debug("Timer %s scheduled in %.3fs replaced=%s", self._name, self._delay, replaced)

    def cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _fire(self) -> None:
        self._handle = None
        _logger.debug("Timer %s fired", self._name)
        try:
            self._callback()
        except Exception:
            _logger.warning("Timer %s callback failed", self._name, exc_info=True)
