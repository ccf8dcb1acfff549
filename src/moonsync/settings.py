"""Client-side configuration state.

Holds the UI settings, device file configuration, opaque card blobs, host
configuration and the instance registry handle.  Unlike printer state this
survives a ``503`` reset.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from moonsync._constants import DEFAULT_INSTANCE_NAME, NEW_PRESET_ID
from moonsync.config import SyncConfig
from moonsync.exceptions import MoonsyncConfigError
from moonsync.instances import InstancePersistenceStore
from moonsync.models.instance import Instance
from moonsync.state.paths import StatePath, deep_merge
from moonsync.storage import KeyValueStorage, load_json

_logger = logging.getLogger(__name__)

_INSTANCE_NAME_PATH = StatePath(("general", "instanceName"))
_PRESETS_PATH = StatePath(("dashboard", "tempPresets"))
_HIDDEN_MACROS_PATH = StatePath(("dashboard", "hiddenMacros"))

#: First segment of a settings path -> attribute holding that part of the config state.
_SAVE_ROOTS: dict[str, str] = {
    "uiSettings": "_ui_settings",
    "fileConfig": "_file_config",
    "hostConfig": "_host_config",
    "cardState": "card_state",
    "cardLayout": "card_layout",
    "layoutMode": "layout_mode",
}
_DICT_ROOTS = frozenset({"_ui_settings", "_file_config", "_host_config"})


def default_ui_settings() -> dict[str, Any]:
    return {
        "general": {"instanceName": DEFAULT_INSTANCE_NAME},
        "dashboard": {"tempPresets": []},
    }


def default_host_config() -> dict[str, Any]:
    return {"blacklist": [], "endpoints": [], "hosted": False}


class ConfigStateStore:
    """Client-side configuration that survives printer state resets.

    Parameters
    ----------
    config
        Engine configuration; supplies the storage keys.
    storage
        Backing store for the card blobs.
    instances
        Registry of known endpoints.
    """

    def __init__(self, config: SyncConfig, storage: KeyValueStorage, instances: InstancePersistenceStore) -> None:
        self._config = config
        self._storage = storage
        self._instance_store = instances
        self._set_defaults()

    def _set_defaults(self) -> None:
        self.api_url = ""
        self.socket_url = ""
        self._ui_settings = default_ui_settings()
        self._ui_settings_loaded = False
        self._file_config: dict[str, Any] = {}
        self._host_config = default_host_config()
        self.card_state: Any = None
        self.card_layout: Any = None
        self.layout_mode = False

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def init_ui_settings(self, payload: Mapping[str, Any] | None) -> None:
        """Merge persisted UI settings over the defaults.

        A ``None`` payload still marks settings as loaded: the server simply
        has none stored yet.
        """
        if payload is not None:
            deep_merge(self._ui_settings, payload)
        self._ui_settings_loaded = True

    def init_local(self) -> None:
        """Load the opaque card-state and card-layout blobs."""
        card_state = load_json(self._storage, self._config.card_state_key)
        if card_state is not None:
            self.card_state = card_state
        card_layout = load_json(self._storage, self._config.card_layout_key)
        if card_layout is not None:
            self.card_layout = card_layout

    def init_api_config(self, api_url: str, socket_url: str) -> None:
        self.api_url = api_url
        self.socket_url = socket_url

    def init_host_config(
        self,
        *,
        blacklist: list[str] | None = None,
        endpoints: list[str] | None = None,
        hosted: bool = False,
    ) -> None:
        self._host_config = {
            "blacklist": list(blacklist or []),
            "endpoints": list(endpoints or []),
            "hosted": hosted,
        }

    def set_file_config(self, payload: Mapping[str, Any]) -> None:
        """Replace the device-persisted file configuration."""
        self._file_config = copy.deepcopy(dict(payload))

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def ui_settings(self) -> dict[str, Any]:
        return copy.deepcopy(self._ui_settings)

    @property
    def ui_settings_loaded(self) -> bool:
        return self._ui_settings_loaded

    @property
    def host_config(self) -> dict[str, Any]:
        return copy.deepcopy(self._host_config)

    @property
    def instance_name(self) -> str | None:
        name = _INSTANCE_NAME_PATH.get(self._ui_settings)
        return name if isinstance(name, str) else None

    @property
    def hidden_macros(self) -> list[str]:
        hidden = _HIDDEN_MACROS_PATH.get(self._file_config, [])
        if not isinstance(hidden, list):
            return []
        return [name for name in hidden if isinstance(name, str)]

    @property
    def presets(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._preset_list())

    def _resolve(self, path: str) -> tuple[str, str, tuple[str, ...]]:
        try:
            state_path = StatePath.parse(path)
        except ValueError as exc:
            raise MoonsyncConfigError(f"Invalid settings path {path!r}") from exc
        root, *rest = state_path.segments
        attr = _SAVE_ROOTS.get(root)
        if attr is None:
            raise MoonsyncConfigError(f"Unknown settings root {root!r} in {path!r}")
        return root, attr, tuple(rest)

    def get_by_path(self, path: str, default: Any = None) -> Any:
        """Read a value addressed the same way as :meth:`save_by_path`."""
        _, attr, rest = self._resolve(path)
        container = getattr(self, attr)
        if not rest:
            return copy.deepcopy(container)
        if not isinstance(container, dict):
            return default
        return copy.deepcopy(StatePath(rest).get(container, default))

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    @property
    def instances(self) -> list[Instance]:
        return self._instance_store.instances

    def init_instances(self) -> list[Instance]:
        """Record the current endpoint in the instance registry."""
        return self._instance_store.upsert(
            self.api_url,
            self.socket_url,
            self.instance_name,
            settings_loaded=self._ui_settings_loaded,
        )

    def update_instance_name(self, api_url: str, name: str | None) -> bool:
        return self._instance_store.rename(api_url, name)

    def remove_instance(self, api_url: str) -> bool:
        return self._instance_store.remove(api_url)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save_by_path(self, path: str, value: Any) -> None:
        """Set a value addressed by a dotted path into the config state.

        The first segment names the root (``uiSettings``, ``fileConfig``,
        ``hostConfig``, ``cardState``, ``cardLayout`` or ``layoutMode``), e.g.
        ``"uiSettings.general.instanceName"``.

        Raises
        ------
        MoonsyncConfigError
            The path is empty or its root is unknown.
        """
        root, attr, rest = self._resolve(path)
        if not rest:
            if attr in _DICT_ROOTS and not isinstance(value, Mapping):
                raise MoonsyncConfigError(f"{root} must be an object, got {type(value).__name__}")
            setattr(self, attr, copy.deepcopy(dict(value) if attr in _DICT_ROOTS else value))
            return

        container = getattr(self, attr)
        if not isinstance(container, dict):
            container = {}
            setattr(self, attr, container)
        StatePath(rest).set(container, value)

    def _preset_list(self) -> list[dict[str, Any]]:
        presets = _PRESETS_PATH.get(self._ui_settings)
        if not isinstance(presets, list):
            presets = []
            _PRESETS_PATH.set(self._ui_settings, presets)
            presets = _PRESETS_PATH.get(self._ui_settings)
        return presets

    def set_preset(self, preset: Mapping[str, Any]) -> dict[str, Any] | None:
        """Add a preset (``id == -1``) or replace the one with the same id.

        Returns the stored preset, or ``None`` when the id is unknown.
        """
        stored = copy.deepcopy(dict(preset))
        presets = self._preset_list()
        if stored.get("id") == NEW_PRESET_ID:
            stored["id"] = str(uuid.uuid4())
            presets.append(stored)
            return copy.deepcopy(stored)

        for index, existing in enumerate(presets):
            if existing.get("id") == stored.get("id"):
                presets[index] = stored
                return copy.deepcopy(stored)
        _logger.debug("Ignoring update for unknown preset id=%s", stored.get("id"))
        return None

    def remove_preset(self, preset_id: Any) -> bool:
        presets = self._preset_list()
        for index, existing in enumerate(presets):
            if existing.get("id") == preset_id:
                del presets[index]
                return True
        return False

    def set_layout_mode(self, enabled: bool) -> None:
        self.layout_mode = enabled

    def reset(self) -> None:
        """Return every field to its default; storage is left untouched."""
        self._set_defaults()
