from __future__ import annotations

import pytest

from moonsync.instances import InstancePersistenceStore
from moonsync.lifecycle import ConnectionLifecycleManager
from moonsync.router import NotificationRouter
from moonsync.sequencer import InitializationSequencer
from moonsync.settings import ConfigStateStore
from moonsync.subscriptions import SubscriptionRegistry


@pytest.mark.parametrize(
    "component",
    [
        ConnectionLifecycleManager,
        InitializationSequencer,
        SubscriptionRegistry,
        NotificationRouter,
        InstancePersistenceStore,
        ConfigStateStore,
    ],
)
def test_engine_components_are_documented(component: type) -> None:
    assert component.__doc__
    assert component.__doc__.strip().splitlines()[0].endswith(".")
