"""Typed paths into nested state dicts.

Printer objects arrive under compound keys such as ``"temperature_fan fan0"``
and UI settings are addressed with dotted strings such as
``"general.instanceName"``.  Both are turned into a :class:`StatePath` so
state code never builds or splits key strings by hand.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from typing import Any


def deep_merge(target: MutableMapping[str, Any], patch: Mapping[str, Any]) -> None:
    """Merge *patch* into *target* in place.

    Nested dicts are merged key by key; any other value overwrites.
    """
    for key, value in patch.items():
        existing = target.get(key)
        if isinstance(value, Mapping) and isinstance(existing, MutableMapping):
            deep_merge(existing, value)
        else:
            target[key] = copy.deepcopy(value)


@dataclass(frozen=True, slots=True)
class StatePath:
    """An immutable path of dict keys."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments or any(not segment for segment in self.segments):
            raise ValueError(f"invalid state path: {self.segments!r}")

    @classmethod
    def parse(cls, dotted: str) -> StatePath:
        """Parse ``"a.b.c"`` into a path."""
        return cls(tuple(dotted.split(".")))

    @classmethod
    def from_object_key(cls, key: str) -> StatePath:
        """Map a printer object key to its state location.

        ``"temperature_fan fan0"`` becomes ``("temperature_fan", "fan0")``;
        only the first space separates category from member.
        """
        if " " in key:
            category, member = key.split(" ", 1)
            return cls((category, member))
        return cls((key,))

    @property
    def dotted(self) -> str:
        return ".".join(self.segments)

    @property
    def leaf(self) -> str:
        return self.segments[-1]

    def get(self, root: Mapping[str, Any], default: Any = None) -> Any:
        node: Any = root
        for segment in self.segments:
            if not isinstance(node, Mapping) or segment not in node:
                return default
            node = node[segment]
        return node

    def _parent(self, root: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        node = root
        for segment in self.segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, MutableMapping):
                child = {}
                node[segment] = child
            node = child
        return node

    def set(self, root: MutableMapping[str, Any], value: Any) -> None:
        """Replace the value at this path, creating intermediate dicts."""
        self._parent(root)[self.leaf] = copy.deepcopy(value)

    def merge(self, root: MutableMapping[str, Any], value: Any) -> None:
        """Deep-merge *value* at this path; non-dict values overwrite."""
        parent = self._parent(root)
        existing = parent.get(self.leaf)
        if isinstance(value, Mapping) and isinstance(existing, MutableMapping):
            deep_merge(existing, value)
        else:
            parent[self.leaf] = copy.deepcopy(value)

    def setdefault(self, root: MutableMapping[str, Any], value: Any) -> Any:
        parent = self._parent(root)
        if self.leaf not in parent:
            parent[self.leaf] = copy.deepcopy(value)
        return parent[self.leaf]
