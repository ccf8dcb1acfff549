"""Base models for moonsync payloads.

Persisted models inherit from :class:`MoonsyncBaseModel` which provides
``alias_generator=to_camel`` so the stored JSON uses the same camelCase
keys as the browser client (``apiUrl``, ``socketUrl``) while Python code
uses snake_case fields.

Inbound channel events inherit from :class:`EventModel` which ignores
unknown keys and stashes the original payload in ``raw``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MoonsyncBaseModel(BaseModel):
    """Base for persisted, camelCase-keyed models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_storage(self) -> dict[str, Any]:
        """Dump with camelCase keys, the shape written to storage."""
        return self.model_dump(by_alias=True)


class EventModel(BaseModel):
    """Base for inbound channel events.

    Handles:
    * unknown payload keys are ignored rather than rejected
    * the original payload dict is kept in ``raw``
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original event payload."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        # Keep the caller's raw when constructing with kwargs.
        if "raw" in values:
            return values
        merged = dict(values)
        merged["raw"] = dict(values)
        return merged
