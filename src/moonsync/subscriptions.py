"""Object classification and sensor grouping.

Runs once per initialization cycle: the full object list decides what is
subscribed and which macros exist, and the subscription snapshot decides
how sensor-like objects are grouped for enumeration.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from moonsync._constants import EXCLUDED_SUBSCRIPTION_MARKERS, MACRO_CATEGORY, SENSOR_CATEGORIES
from moonsync.models.macro import Macro
from moonsync.outbound import RequestSender
from moonsync.state.store import PrinterStateStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubscriptionPlan:
    """Result of classifying one object list."""

    subscriptions: dict[str, None] = field(default_factory=dict)
    macros: list[Macro] = field(default_factory=list)
    state_keys: list[str] = field(default_factory=list)


def wants_subscription(object_key: str) -> bool:
    """Menus are UI driven and macros are registered separately."""
    return not any(marker in object_key for marker in EXCLUDED_SUBSCRIPTION_MARKERS)


def classify_objects(objects: Iterable[str], hidden_macros: Collection[str] = ()) -> SubscriptionPlan:
    plan = SubscriptionPlan()
    for object_key in objects:
        if wants_subscription(object_key):
            plan.subscriptions[object_key] = None

        category, _, member = object_key.partition(" ")
        if category == MACRO_CATEGORY:
            if member:
                plan.macros.append(Macro(name=member, visible=member not in hidden_macros))
            continue
        plan.state_keys.append(object_key)
    return plan


def group_sensors(status_keys: Iterable[str]) -> dict[str, list[str]]:
    """Collect compound sensor keys under plural buckets.

    ``"temperature_fan fan0"`` lands in ``groups["temperature_fans"]``.
    """
    groups: dict[str, list[str]] = {}
    for key in status_keys:
        if " " not in key:
            continue
        category, member = key.split(" ", 1)
        if category not in SENSOR_CATEGORIES:
            continue
        groups.setdefault(f"{category}s", []).append(member)
    return groups


class SubscriptionRegistry:
    """Turns the object list into a subscription and keeps sensor groups current.

    Parameters
    ----------
    state
        Shared printer state; receives macros, object entries and groups.
    sender
        Issues the subscribe request.
    """

    def __init__(self, state: PrinterStateStore, sender: RequestSender) -> None:
        self._state = state
        self._sender = sender

    def register_objects(self, objects: Iterable[str], hidden_macros: Collection[str] = ()) -> SubscriptionPlan:
        """Commit the object list to state, register macros, then subscribe."""
        plan = classify_objects(objects, hidden_macros)
        for macro in plan.macros:
            self._state.add_macro(macro)
        for key in plan.state_keys:
            try:
                self._state.ensure_object(key)
            except ValueError:
                _logger.warning("Skipping object with invalid key=%r", key)
        _logger.debug(
            "Subscribing objects=%d macros=%d",
            len(plan.subscriptions),
            len(plan.macros),
        )
        self._sender.printer_objects_subscribe(plan.subscriptions)
        return plan

    def acknowledge(self, status: Mapping[str, Any]) -> dict[str, list[str]]:
        """Rebuild the sensor grouping from a subscription snapshot."""
        groups = group_sensors(status.keys())
        self._state.set_sensor_groups(groups)
        return groups
