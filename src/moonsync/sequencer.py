"""Initialization sequence.

``printer_info`` (repeated until Klippy reports ready) -> temperature store
-> object list -> subscription -> streaming.  Each stage commits its result
before it issues the request for the next one.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Collection
from datetime import UTC, datetime

from moonsync._constants import READY_STATE
from moonsync.charts import seed_history
from moonsync.config import SyncConfig
from moonsync.models.events import ObjectList, PrinterInfo, SubscriptionAck, TemperatureStore
from moonsync.outbound import RequestSender
from moonsync.router import NotificationRouter
from moonsync.scheduling import RetryTimer
from moonsync.state.store import PrinterStateStore
from moonsync.subscriptions import SubscriptionRegistry

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InitPhase(enum.StrEnum):
    IDLE = "idle"
    QUERYING = "querying"
    LOADING_HISTORY = "loading_history"
    LISTING_OBJECTS = "listing_objects"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"


class InitializationSequencer:
    """Drives the startup handshake one stage at a time.

    Parameters
    ----------
    config
        Chart window and history length used to seed charts.
    state
        Shared printer state.
    sender
        Issues the request for each next stage.
    registry, router
        Handle the object list and the first status snapshot.
    retry_timer
        Shared timer that re-requests printer info while Klippy is not ready.
    hidden_macros
        Returns the macro names that start hidden.
    on_ready
        Called each time the printer reports ready.
    clock
        Capture time for seeded history.
    """

    def __init__(
        self,
        config: SyncConfig,
        state: PrinterStateStore,
        sender: RequestSender,
        *,
        registry: SubscriptionRegistry,
        router: NotificationRouter,
        retry_timer: RetryTimer,
        hidden_macros: Callable[[], Collection[str]] = lambda: (),
        on_ready: Callable[[], None] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._state = state
        self._sender = sender
        self._registry = registry
        self._router = router
        self._retry_timer = retry_timer
        self._hidden_macros = hidden_macros
        self._on_ready = on_ready
        self._clock = clock
        self._phase = InitPhase.IDLE

    @property
    def phase(self) -> InitPhase:
        return self._phase

    def reset(self) -> None:
        self._phase = InitPhase.IDLE

    def request_info(self) -> None:
        """Ask the controller for its identity and readiness."""
        self._phase = InitPhase.QUERYING
        self._sender.printer_info()

    def _expect(self, phase: InitPhase, stage: str) -> bool:
        if self._phase == phase:
            return True
        _logger.debug("Ignoring %s response in phase=%s (expected %s)", stage, self._phase, phase)
        return False

    def on_printer_info(self, event: PrinterInfo) -> None:
        self._state.merge_info(event.raw)

        if event.state != READY_STATE:
            # No retry ceiling: keep asking until Klippy is ready.
            _logger.debug("Printer not ready state=%s message=%s", event.state, event.state_message)
            self._phase = InitPhase.QUERYING
            self._retry_timer.schedule()
            return

        self._retry_timer.cancel()
        self._phase = InitPhase.LOADING_HISTORY
        if self._on_ready is not None:
            self._on_ready()
        self._sender.server_temperature_store()

    def on_temperature_store(self, event: TemperatureStore) -> None:
        if not self._expect(InitPhase.LOADING_HISTORY, "temperature store"):
            return
        pairs = seed_history(
            event.sensors,
            captured_at=self._clock(),
            window=self._config.chart_window,
            full_length=self._config.history_length,
        )
        self._state.charts.seed(pairs)
        self._phase = InitPhase.LISTING_OBJECTS
        self._sender.printer_objects_list()

    def on_object_list(self, event: ObjectList) -> None:
        if not self._expect(InitPhase.LISTING_OBJECTS, "object list"):
            return
        self._phase = InitPhase.SUBSCRIBING
        self._registry.register_objects(event.objects, self._hidden_macros())

    def on_subscribed(self, event: SubscriptionAck) -> None:
        if not self._expect(InitPhase.SUBSCRIBING, "subscription"):
            return
        groups = self._registry.acknowledge(event.status)
        self._phase = InitPhase.STREAMING
        _logger.debug("Streaming; sensor groups=%s", groups)
        # The snapshot is the first notification batch.
        self._router.route(event.status)
