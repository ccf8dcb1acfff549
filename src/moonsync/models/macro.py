"""Gcode macro model."""

from __future__ import annotations

from moonsync.models._base import MoonsyncBaseModel


class Macro(MoonsyncBaseModel):
    name: str
    visible: bool = True
