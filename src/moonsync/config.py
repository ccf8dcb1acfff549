"""Engine configuration for moonsync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from moonsync._constants import CARD_LAYOUT_STORAGE_KEY, CARD_STATE_STORAGE_KEY, INSTANCES_STORAGE_KEY
from moonsync.exceptions import MoonsyncConfigError


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise MoonsyncConfigError(f"{env_key} must be a number, got {value!r}") from exc


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise MoonsyncConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Engine configuration.

    Parameters
    ----------
    retry_delay : float
        Seconds to wait before re-requesting printer info, both while
        Klippy reports a non-ready state and after a ``503`` error.
    chart_window : int
        Number of points retained per chart series.
    history_length : int
        Number of history entries the controller is expected to provide
        per sensor.  Shorter histories are left-padded to this length.
    console_retention : int
        Maximum number of console lines kept in memory.
    instances_key : str
        Storage key of the known-instance list.
    card_state_key : str
        Storage key of the opaque card-state blob.
    card_layout_key : str
        Storage key of the opaque card-layout blob.
    ws_heartbeat : float
        Websocket ping interval in seconds used by the transport.
    """

    retry_delay: float = 1.5
    chart_window: int = 600
    history_length: int = 1200
    console_retention: int = 1000
    instances_key: str = INSTANCES_STORAGE_KEY
    card_state_key: str = CARD_STATE_STORAGE_KEY
    card_layout_key: str = CARD_LAYOUT_STORAGE_KEY
    ws_heartbeat: float = 30.0

    def __post_init__(self) -> None:
        if self.retry_delay < 0:
            raise MoonsyncConfigError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.chart_window <= 0:
            raise MoonsyncConfigError(f"chart_window must be > 0, got {self.chart_window}")
        if self.history_length < self.chart_window:
            raise MoonsyncConfigError(
                f"history_length ({self.history_length}) must be >= chart_window ({self.chart_window})"
            )
        if self.console_retention <= 0:
            raise MoonsyncConfigError(f"console_retention must be > 0, got {self.console_retention}")

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads optional ``MOONSYNC_*`` variables.  Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SyncConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_FLOAT_MAP = {
            "MOONSYNC_RETRY_DELAY": "retry_delay",
            "MOONSYNC_WS_HEARTBEAT": "ws_heartbeat",
        }
        _ENV_INT_MAP = {
            "MOONSYNC_CHART_WINDOW": "chart_window",
            "MOONSYNC_HISTORY_LENGTH": "history_length",
            "MOONSYNC_CONSOLE_RETENTION": "console_retention",
        }
        _ENV_STR_MAP = {
            "MOONSYNC_INSTANCES_KEY": "instances_key",
            "MOONSYNC_CARD_STATE_KEY": "card_state_key",
            "MOONSYNC_CARD_LAYOUT_KEY": "card_layout_key",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
