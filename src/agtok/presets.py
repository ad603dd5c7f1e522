"""Per-agent preset documents.

Each agent owns one JSON document::

    {"version": 1, "config_version": "0.1.4", "presets": [{...}, ...]}

Every mutation loads the whole document, edits the list in memory and
writes the whole document back through :func:`~agtok.atomic.atomic_write`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .appinfo import DEFAULT_APP, AppInfo
from .atomic import atomic_write
from .errors import (
    AliasExistsError,
    InvalidConfigError,
    MalformedConfigError,
    PresetNotFoundError,
)
from .fields import FieldUpdate, Preset
from .paths import presets_dir

logger = logging.getLogger("agtok.presets")

# the oldest schema version still recognised; presets written under it may
# predate the ``model`` field
LEGACY_SCHEMA_VERSION = 1
CURRENT_SCHEMA_VERSION = 1


@dataclass
class PresetFile:
    version: int = CURRENT_SCHEMA_VERSION
    config_version: str = ""
    presets: list[Preset] = field(default_factory=list)

    def index(self, alias: str) -> int:
        for i, preset in enumerate(self.presets):
            if preset.alias == alias:
                return i
        return -1

    def to_dict(self) -> dict:
        data: dict = {"version": self.version}
        if self.config_version:
            data["config_version"] = self.config_version
        data["presets"] = [p.to_dict() for p in self.presets]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PresetFile":
        version = data.get("version") or LEGACY_SCHEMA_VERSION
        if not isinstance(version, int):
            raise ValueError(f"version must be an integer, got {version!r}")
        raw = data.get("presets") or []
        if not isinstance(raw, list) or not all(isinstance(p, dict) for p in raw):
            raise ValueError("presets must be a list of objects")
        return cls(
            version=version,
            config_version=str(data.get("config_version") or ""),
            presets=[Preset.from_dict(p) for p in raw],
        )


class PresetStore:
    """Named :class:`Preset` snapshots for a single agent."""

    def __init__(
        self,
        agent: str,
        *,
        directory: Path | None = None,
        app: AppInfo = DEFAULT_APP,
    ) -> None:
        self.agent = str(agent)
        self.directory = Path(directory) if directory is not None else presets_dir()
        self.app = app

    @property
    def path(self) -> Path:
        return self.directory / f"{self.agent}.json"

    # ----- document I/O -----
    def load(self) -> PresetFile:
        """Return the stored document.

        A missing document is an empty version-1 document.

        Raises
        ------
        MalformedConfigError
            If the document exists but cannot be parsed.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return PresetFile()
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("root must be a JSON object")
            return PresetFile.from_dict(data)
        except ValueError as exc:
            raise MalformedConfigError(self.path, str(exc)) from exc

    def save(self, doc: PresetFile) -> None:
        """Stamp *doc* with the running version and write it."""
        if not doc.version:
            doc.version = CURRENT_SCHEMA_VERSION
        doc.config_version = self.app.version
        text = json.dumps(doc.to_dict(), indent=2, ensure_ascii=False) + "\n"
        atomic_write(self.path, text)
        logger.debug("%s: saved %d presets", self.agent, len(doc.presets))

    # ----- queries -----
    def presets(self) -> list[Preset]:
        return self.load().presets

    def get(self, alias: str) -> Preset:
        """Raises :class:`PresetNotFoundError` if *alias* is absent."""
        doc = self.load()
        i = doc.index(alias)
        if i < 0:
            raise PresetNotFoundError(alias)
        return doc.presets[i]

    def exists(self, alias: str) -> bool:
        return self.load().index(alias) >= 0

    # ----- mutations -----
    def add(self, preset: Preset) -> None:
        """Append *preset*.

        Raises
        ------
        InvalidConfigError
            If the alias is blank.
        AliasExistsError
            If another preset already uses the alias.
        """
        if not preset.alias.strip():
            raise InvalidConfigError("alias is required")
        doc = self.load()
        if doc.index(preset.alias) >= 0:
            raise AliasExistsError(preset.alias)
        doc.presets.append(preset)
        self.save(doc)

    def remove(self, alias: str) -> None:
        doc = self.load()
        i = doc.index(alias)
        if i < 0:
            raise PresetNotFoundError(alias)
        del doc.presets[i]
        self.save(doc)

    def rename(self, old: str, new: str) -> None:
        """Rename *old* to *new*.

        Raises
        ------
        PresetNotFoundError
            If *old* is absent.
        AliasExistsError
            If a different preset already uses *new*.
        """
        if not new.strip():
            raise InvalidConfigError("alias is required")
        doc = self.load()
        i = doc.index(old)
        if i < 0:
            raise PresetNotFoundError(old)
        j = doc.index(new)
        if j >= 0 and j != i:
            raise AliasExistsError(new)
        doc.presets[i].alias = new
        self.save(doc)

    def update(
        self,
        old: str,
        new_alias: str = "",
        url: str | None = None,
        token: str | None = None,
        model: str | None = None,
        *,
        clear_token: bool = False,
        clear_model: bool = False,
    ) -> Preset:
        """Update the preset *old* field by field.

        ``None`` leaves a field unchanged, a string replaces it and the
        ``clear_*`` flags blank it regardless of any value also given.  The
        alias changes only when *new_alias* is non-empty.

        Raises
        ------
        PresetNotFoundError
            If *old* is absent.
        AliasExistsError
            If a different preset already uses *new_alias*.
        """
        doc = self.load()
        i = doc.index(old)
        if i < 0:
            raise PresetNotFoundError(old)
        if new_alias:
            j = doc.index(new_alias)
            if j >= 0 and j != i:
                raise AliasExistsError(new_alias)
        preset = doc.presets[i]
        if new_alias:
            preset.alias = new_alias
        if url is not None:
            preset.url = url
        preset.token = FieldUpdate.from_optional(token, clear_token).apply(preset.token)
        preset.model = FieldUpdate.from_optional(model, clear_model).apply(preset.model)
        self.save(doc)
        return preset

    def migrate_on_init(self, observed_model: str = "") -> PresetFile:
        """Upgrade the document once and stamp the running version.

        On a legacy-schema document every preset with a blank model gets
        *observed_model*.  The document is written back in all cases so
        ``config_version`` always advances.
        """
        doc = self.load()
        if doc.version == LEGACY_SCHEMA_VERSION and observed_model:
            filled = 0
            for preset in doc.presets:
                if not preset.model:
                    preset.model = observed_model
                    filled += 1
            if filled:
                logger.info("%s: back-filled model on %d presets", self.agent, filled)
        self.save(doc)
        return doc


__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "LEGACY_SCHEMA_VERSION",
    "PresetFile",
    "PresetStore",
]
