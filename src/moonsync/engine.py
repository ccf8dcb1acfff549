"""Synchronization engine.

Usage::

    engine = SyncEngine(SyncConfig(), sender, storage=JsonFileStorage(path))
    engine.start(api_url="http://printer", socket_url="ws://printer/websocket")
    engine.handle("open")
    engine.handle("printer_info", {"state": "ready"})

All handlers run to completion on the caller's thread (normally the asyncio
loop).  Delayed work goes through the shared :class:`RetryTimer`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from moonsync._constants import ERROR_STATE
from moonsync.config import SyncConfig
from moonsync.exceptions import MoonsyncEventError
from moonsync.lifecycle import ConnectionLifecycleManager
from moonsync.models.events import (
    EventModel,
    FilelistChanged,
    FilesMetadata,
    GcodeResponse,
    GcodeScriptResult,
    KlippyDisconnected,
    KlippyReady,
    MetadataUpdate,
    ObjectList,
    PrintCancelled,
    PrinterInfo,
    PrintPaused,
    PrintResumed,
    SocketClosed,
    SocketError,
    SocketOpened,
    StatusUpdate,
    SubscriptionAck,
    TemperatureStore,
    parse_event,
)
from moonsync.instances import InstancePersistenceStore
from moonsync.outbound import RequestSender
from moonsync.router import NotificationRouter
from moonsync.scheduling import RetryTimer
from moonsync.sequencer import InitializationSequencer
from moonsync.settings import ConfigStateStore
from moonsync.state.store import PrinterStateStore
from moonsync.storage import KeyValueStorage, MemoryStorage
from moonsync.subscriptions import SubscriptionRegistry

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncEngine:
    """Owns the state containers and routes every inbound event."""

    def __init__(
        self,
        config: SyncConfig,
        sender: RequestSender,
        *,
        storage: KeyValueStorage | None = None,
        clock: Callable[[], datetime] = _utcnow,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config
        self._sender = sender
        self._storage = storage if storage is not None else MemoryStorage()

        self._state = PrinterStateStore(
            chart_window=config.chart_window,
            console_retention=config.console_retention,
        )
        self._settings = ConfigStateStore(
            config,
            self._storage,
            InstancePersistenceStore(self._storage, config.instances_key),
        )
        self._retry_timer = RetryTimer(config.retry_delay, self._on_retry, loop=loop, name="printer_info")
        self._router = NotificationRouter(self._state, clock=clock)
        self._registry = SubscriptionRegistry(self._state, sender)
        self._sequencer = InitializationSequencer(
            config,
            self._state,
            sender,
            registry=self._registry,
            router=self._router,
            retry_timer=self._retry_timer,
            hidden_macros=lambda: self._settings.hidden_macros,
            on_ready=self._on_ready,
            clock=clock,
        )
        self._lifecycle = ConnectionLifecycleManager(
            self._state,
            request_info=self._sequencer.request_info,
            retry_timer=self._retry_timer,
            on_reset=self._sequencer.reset,
        )
        self._handlers: dict[type[EventModel], Callable[[Any], None]] = {
            SocketOpened: self._lifecycle.on_open,
            SocketClosed: self._lifecycle.on_close,
            SocketError: self._lifecycle.on_error,
            PrinterInfo: self._sequencer.on_printer_info,
            TemperatureStore: self._sequencer.on_temperature_store,
            ObjectList: self._sequencer.on_object_list,
            SubscriptionAck: self._sequencer.on_subscribed,
            StatusUpdate: self._on_status_update,
            GcodeResponse: self._on_gcode_response,
            GcodeScriptResult: self._on_gcode_script,
            KlippyDisconnected: self._on_klippy_disconnected,
            KlippyReady: self._on_klippy_ready,
            FilesMetadata: self._on_files_metadata,
            FilelistChanged: self._on_filelist_changed,
            MetadataUpdate: self._on_metadata_update,
            PrintCancelled: self._on_print_cancelled,
            PrintPaused: self._on_print_paused,
            PrintResumed: self._on_print_resumed,
        }

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def state(self) -> PrinterStateStore:
        return self._state

    @property
    def settings(self) -> ConfigStateStore:
        return self._settings

    @property
    def lifecycle(self) -> ConnectionLifecycleManager:
        return self._lifecycle

    @property
    def sequencer(self) -> InitializationSequencer:
        return self._sequencer

    @property
    def retry_timer(self) -> RetryTimer:
        return self._retry_timer

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    def start(
        self,
        *,
        api_url: str,
        socket_url: str,
        ui_settings: Mapping[str, Any] | None = None,
        file_config: Mapping[str, Any] | None = None,
    ) -> None:
        """Load persisted client state before the channel opens."""
        self._settings.init_ui_settings(ui_settings)
        if file_config is not None:
            self._settings.set_file_config(file_config)
        self._settings.init_local()
        self._settings.init_api_config(api_url, socket_url)

    def close(self) -> None:
        self._retry_timer.cancel()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, name: str, payload: dict[str, Any] | None = None) -> None:
        """Parse and dispatch one inbound event; unusable events are logged and dropped."""
        try:
            event = parse_event(name, payload)
        except MoonsyncEventError as exc:
            _logger.warning("Dropping event %s: %s", exc.name, exc)
            return
        self.dispatch(event)

    def dispatch(self, event: EventModel) -> None:
        handler = self._handlers.get(type(event))
        if handler is None:
            _logger.warning("No handler for event type %s", type(event).__name__)
            return
        handler(event)

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    def add_wait(self, wait: str) -> None:
        self._state.add_wait(wait)

    def remove_wait(self, wait: str) -> bool:
        return self._state.remove_wait(wait)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _on_retry(self) -> None:
        self._sequencer.request_info()

    def _on_ready(self) -> None:
        self._settings.init_instances()

    def _on_status_update(self, event: StatusUpdate) -> None:
        self._router.route(event.status)

    def _on_gcode_response(self, event: GcodeResponse) -> None:
        self._state.add_console_entry(f"Recv: {event.line}")

    def _on_gcode_script(self, event: GcodeScriptResult) -> None:
        if event.result == "ok":
            self._state.add_console_entry("Recv: Ok")
        if event.request is not None and event.request.wait:
            self._state.remove_wait(event.request.wait)

    def _on_klippy_disconnected(self, event: KlippyDisconnected) -> None:
        _logger.debug("Klippy disconnected")
        self._state.reset()
        self._sequencer.reset()
        self._state.merge_info({"state": ERROR_STATE})

    def _on_klippy_ready(self, event: KlippyReady) -> None:
        _logger.debug("Klippy ready; restarting initialization")
        self._sequencer.request_info()

    def _on_files_metadata(self, event: FilesMetadata) -> None:
        self._state.merge("current_file", event.raw)

    def _on_filelist_changed(self, event: FilelistChanged) -> None:
        _logger.debug("File list changed action=%s item=%s", event.action, event.item)

    def _on_metadata_update(self, event: MetadataUpdate) -> None:
        _logger.debug("Metadata update %s", event.raw)

    def _on_print_cancelled(self, event: PrintCancelled) -> None:
        _logger.info("Print cancelled")

    def _on_print_paused(self, event: PrintPaused) -> None:
        _logger.info("Print paused")

    def _on_print_resumed(self, event: PrintResumed) -> None:
        _logger.info("Print resumed")
