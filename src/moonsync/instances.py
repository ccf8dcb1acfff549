"""Registry of previously connected controller endpoints.

At most one instance is active.  Every mutation is written through to
storage as a JSON array of camelCase instance objects.
"""

from __future__ import annotations

import logging

from pydantic import TypeAdapter, ValidationError

from moonsync.exceptions import MoonsyncStorageError
from moonsync.models.instance import Instance
from moonsync.storage import KeyValueStorage, dump_json, load_json

_logger = logging.getLogger(__name__)

_INSTANCE_LIST = TypeAdapter(list[Instance])


class InstancePersistenceStore:
    """Persisted list of known endpoints.

    Parameters
    ----------
    storage
        Key/value backing store.
    key
        Storage key of the JSON instance array.
    """

    def __init__(self, storage: KeyValueStorage, key: str) -> None:
        self._storage = storage
        self._key = key
        self._instances: list[Instance] = []

    @property
    def instances(self) -> list[Instance]:
        return list(self._instances)

    def active(self) -> Instance | None:
        return next((instance for instance in self._instances if instance.active), None)

    def load(self) -> list[Instance]:
        """Read the persisted list; unreadable data counts as empty."""
        try:
            raw = load_json(self._storage, self._key)
        except MoonsyncStorageError:
            _logger.warning("Discarding unreadable instance list key=%s", self._key, exc_info=True)
            return []
        if raw is None:
            return []
        try:
            return _INSTANCE_LIST.validate_python(raw)
        except ValidationError:
            _logger.warning("Discarding invalid instance list key=%s", self._key, exc_info=True)
            return []

    def _persist(self) -> None:
        dump_json(self._storage, self._key, [instance.to_storage() for instance in self._instances])

    def _index(self, api_url: str) -> int | None:
        return next(
            (index for index, instance in enumerate(self._instances) if instance.api_url == api_url),
            None,
        )

    def upsert(
        self,
        api_url: str,
        socket_url: str,
        name: str | None,
        *,
        settings_loaded: bool = True,
    ) -> list[Instance]:
        """Record a successful connection and make it the active instance.

        A new ``api_url`` is appended (all others deactivated) only once
        settings have loaded; a known one is reactivated in place and
        renamed.  Order is preserved either way.
        """
        self._instances = self.load()
        if not api_url or not socket_url:
            return self.instances

        index = self._index(api_url)
        if index is None:
            if not settings_loaded:
                _logger.debug("Settings not loaded; not recording instance api_url=%s", api_url)
                return self.instances
            self._instances = [instance.model_copy(update={"active": False}) for instance in self._instances]
            self._instances.append(Instance(api_url=api_url, socket_url=socket_url, name=name, active=True))
            _logger.debug("Added instance api_url=%s", api_url)
        else:
            self._instances = [
                instance.model_copy(update={"active": True, "name": name})
                if position == index
                else instance.model_copy(update={"active": False})
                for position, instance in enumerate(self._instances)
            ]
            _logger.debug("Reactivated instance api_url=%s", api_url)

        self._persist()
        return self.instances

    def rename(self, api_url: str, name: str | None) -> bool:
        self._instances = self.load()
        index = self._index(api_url)
        if index is None:
            return False
        self._instances[index] = self._instances[index].model_copy(update={"name": name})
        self._persist()
        return True

    def remove(self, api_url: str) -> bool:
        self._instances = self.load()
        index = self._index(api_url)
        if index is None:
            return False
        del self._instances[index]
        self._persist()
        return True
