"""Known controller endpoint model."""

from __future__ import annotations

from moonsync.models._base import MoonsyncBaseModel


class Instance(MoonsyncBaseModel):
    """A previously connected controller endpoint.

    Stored as ``{"apiUrl", "socketUrl", "name", "active"}``.
    """

    api_url: str
    socket_url: str
    name: str | None = None
    active: bool = False
