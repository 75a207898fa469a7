"""Per-entity field configuration.

Each entity declares which fields it reads and how a write payload is built
from caller data. A ``FieldSpec`` describes one payload key:

- ``coerce``: always sent, value passed through the coercion (``None`` when
  it cannot be parsed).
- ``default``: sent as the caller value, or the default when the caller value
  is falsy.
- ``optional``: sent (coerced) only when the caller value is truthy.
- ``stamp``: set to the current UTC timestamp, caller value ignored.
- none of the above: copied through only when the caller supplied the key.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

_MISSING = object()

_INT_PREFIX = re.compile(r"\s*[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def utc_now_iso() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_int(value: Any) -> int | None:
    """Leading-integer parse: ``"12abc"`` -> 12, ``"7.9"`` -> 7, ``"abc"`` -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _INT_PREFIX.match(str(value))
    return int(match.group()) if match else None


def to_float(value: Any) -> float | None:
    """Leading-number parse: ``"1500.50 USD"`` -> 1500.5, ``"x"`` -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _FLOAT_PREFIX.match(str(value))
    return float(match.group()) if match else None


@dataclass(frozen=True)
class FieldSpec:
    name: str
    coerce: Callable[[Any], Any] | None = None
    default: Any = _MISSING
    optional: bool = False
    stamp: bool = False

    def apply(self, data: dict[str, Any], payload: dict[str, Any]) -> None:
        if self.stamp:
            payload[self.name] = utc_now_iso()
            return

        value = data.get(self.name)
        if self.optional:
            if value:
                payload[self.name] = self.coerce(value) if self.coerce else value
            return
        if self.default is not _MISSING:
            payload[self.name] = value or self.default
            return
        if self.coerce is not None:
            payload[self.name] = self.coerce(value)
            return
        if self.name in data:
            payload[self.name] = value


@dataclass(frozen=True)
class EntitySchema:
    """Table name, readable fields and write-payload rules for one entity."""

    table: str
    label: str
    plural: str
    fields: tuple[str, ...]
    references: tuple[str, ...]
    create_fields: tuple[FieldSpec, ...]
    update_fields: tuple[FieldSpec, ...]

    def field_selection(self) -> list[dict[str, Any]]:
        """The ``fields`` list sent with every read."""
        selection: list[dict[str, Any]] = [{"field": {"Name": "Name"}}]
        selection.extend({"field": {"Name": name}} for name in self.fields)
        selection.extend(
            {"field": {"name": name}, "referenceField": {"field": {"Name": "Name"}}}
            for name in self.references
        )
        return selection

    def create_payload(self, data: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for spec in self.create_fields:
            spec.apply(data, payload)
        return payload

    def update_payload(self, record_id: Any, data: dict[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {"Id": to_int(record_id)}
        for spec in self.update_fields:
            spec.apply(data, payload)
        return payload
