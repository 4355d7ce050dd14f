"""STIX 2.1 objects produced by the normalizer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Mapping

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_JSON_ESCAPES = {"<": "\\u003c", ">": "\\u003e", "&": "\\u0026", "\u2028": "\\u2028", "\u2029": "\\u2029"}


def format_time(value: datetime) -> str:
    """Format a timestamp as RFC 3339 with trailing fractional zeros trimmed."""
    value = _utc(value)
    text = value.replace(tzinfo=None, microsecond=0).isoformat()
    if value.microsecond:
        text += f".{value.microsecond:06d}".rstrip("0")
    return text + ("Z" if not value.utcoffset() else value.isoformat()[-6:])


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _plain(value: Any) -> Any:
    if isinstance(value, _StixObject):
        return value.to_dict()
    if isinstance(value, datetime):
        return format_time(value)
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class _StixObject:
    """Base for STIX dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        """Return the object as a JSON-ready mapping in wire field order."""
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(kw_only=True)
class Bundle(_StixObject):
    """A STIX 2.1 bundle."""

    type: str = "bundle"
    id: str = ""
    objects: list[Any] = field(default_factory=list)
    spec_version: str = "2.1"
    created: datetime = ZERO_TIME

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()

    def to_json(self) -> str:
        """Return the bundle as compact JSON with HTML-sensitive characters escaped."""
        text = json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
        for char, escaped in _JSON_ESCAPES.items():
            text = text.replace(char, escaped)
        return text


@dataclass(kw_only=True)
class Indicator(_StixObject):
    """A STIX 2.1 indicator."""

    type: str = "indicator"
    id: str = ""
    created: datetime = ZERO_TIME
    modified: datetime = ZERO_TIME
    pattern: str = ""
    pattern_type: str = "stix"
    valid_from: datetime = ZERO_TIME
    labels: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


@dataclass(kw_only=True)
class ObservedData(_StixObject):
    """A STIX 2.1 observed-data object."""

    type: str = "observed-data"
    id: str = ""
    created: datetime = ZERO_TIME
    modified: datetime = ZERO_TIME
    first_observed: datetime = ZERO_TIME
    last_observed: datetime = ZERO_TIME
    number_observed: int = 0
    object_refs: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


@dataclass(kw_only=True)
class Relationship(_StixObject):
    """A STIX 2.1 relationship."""

    type: str = "relationship"
    id: str = ""
    created: datetime = ZERO_TIME
    modified: datetime = ZERO_TIME
    source_ref: str = ""
    target_ref: str = ""
    relationship_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


@dataclass(kw_only=True)
class DomainName(_StixObject):
    """A STIX 2.1 domain-name observable."""

    type: str = "domain-name"
    id: str = ""
    value: str = ""

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


@dataclass(kw_only=True)
class IPv4Addr(_StixObject):
    """A STIX 2.1 ipv4-addr observable."""

    type: str = "ipv4-addr"
    id: str = ""
    value: str = ""

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


@dataclass(kw_only=True)
class File(_StixObject):
    """A STIX 2.1 file observable."""

    type: str = "file"
    id: str = ""
    hashes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return super().to_dict()


def _decode(value: Any) -> Any:
    if isinstance(value, datetime):
        return _utc(value)
    if isinstance(value, Mapping):
        return {str(key): _decode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_decode(item) for item in value]
    return value


def _field(document: Mapping[str, Any], key: str, kind: type | tuple, default: Any) -> Any:
    value = document.get(key)
    if value is None or (kind is str and value == ""):
        return default
    if not isinstance(value, kind):
        raise ValueError(f"field {key!r} has the wrong type")
    return value


def bundle_from_document(document: Mapping[str, Any]) -> Bundle:
    """Build a bundle from a stored document; missing fields take zero values."""
    if not isinstance(document, Mapping):
        raise ValueError("document is not a mapping")
    return Bundle(
        type=_field(document, "type", str, ""),
        id=_field(document, "id", str, ""),
        objects=[_decode(item) for item in _field(document, "objects", (list, tuple), [])],
        spec_version=_field(document, "spec_version", str, ""),
        created=_utc(_field(document, "created", datetime, ZERO_TIME)),
    )