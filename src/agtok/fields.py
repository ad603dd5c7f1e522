"""Value types shared by providers and the preset store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Literal
from urllib.parse import urlsplit

from .errors import InvalidConfigError

ADDED_AT_FORMAT = "%Y%m%d-%H%M"


@dataclass(frozen=True)
class Fields:
    """The values managed per agent.

    Any of them may be empty, meaning "not configured".
    """

    url: str = ""
    token: str = ""
    model: str = ""

    def is_empty(self) -> bool:
        return not (self.url or self.token or self.model)


@dataclass
class Preset:
    alias: str
    url: str = ""
    token: str = ""
    model: str = ""
    added_at: str = ""

    @property
    def fields(self) -> Fields:
        return Fields(url=self.url, token=self.token, model=self.model)

    def to_dict(self) -> dict[str, str]:
        return {
            "alias": self.alias,
            "url": self.url,
            "token": self.token,
            "model": self.model,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Preset":
        return cls(
            alias=str(data.get("alias", "")),
            url=str(data.get("url") or ""),
            token=str(data.get("token") or ""),
            model=str(data.get("model") or ""),
            added_at=str(data.get("added_at") or ""),
        )


@dataclass
class Backup:
    """Result of a provider write.

    ``files`` maps every target that existed before the write to the
    ``.bak`` copy taken of it.
    """

    time: datetime = field(default_factory=datetime.now)
    files: dict[Path, Path] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldUpdate:
    """Tri-state instruction for a single field: unchanged, clear or set."""

    kind: Literal["unchanged", "clear", "set"] = "unchanged"
    value: str = ""

    @classmethod
    def set(cls, value: str) -> "FieldUpdate":
        return cls("set", value)

    @classmethod
    def from_optional(cls, value: str | None, clear: bool = False) -> "FieldUpdate":
        """Build an update from the optional-value/clear-flag form.

        ``clear`` wins over a supplied value.
        """
        if clear:
            return CLEAR
        if value is None:
            return UNCHANGED
        return cls.set(value)

    @classmethod
    def for_model(cls, model: str) -> "FieldUpdate":
        """Default model instruction for a write: set when non-empty."""
        return cls.set(model) if model else UNCHANGED

    @property
    def is_set(self) -> bool:
        return self.kind == "set"

    @property
    def is_clear(self) -> bool:
        return self.kind == "clear"

    def apply(self, current: str) -> str:
        if self.kind == "clear":
            return ""
        if self.kind == "set":
            return self.value
        return current


UNCHANGED = FieldUpdate("unchanged")
CLEAR = FieldUpdate("clear")


def validate_fields(fields: Fields) -> None:
    """Raise :class:`InvalidConfigError` unless ``fields.url`` is usable.

    The URL must be absolute with both a scheme and a host.  Token and
    model are never checked; empty is a legitimate state for both.
    """
    url = fields.url.strip()
    if not url:
        raise InvalidConfigError("url is required")
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError as exc:
        raise InvalidConfigError(f"invalid url: {fields.url!r}") from exc
    if not parts.scheme or not parts.netloc or not host:
        raise InvalidConfigError(f"invalid url: {fields.url!r}")


def timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now()).strftime(ADDED_AT_FORMAT)


__all__ = [
    "ADDED_AT_FORMAT",
    "Backup",
    "CLEAR",
    "FieldUpdate",
    "Fields",
    "Preset",
    "UNCHANGED",
    "timestamp",
    "validate_fields",
]
