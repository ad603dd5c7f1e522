"""High level operations over providers and preset stores.

:class:`Switcher` is the UI agnostic layer a command line or terminal UI
talks to.  It resolves providers through the registry, keeps one
:class:`~agtok.presets.PresetStore` per agent and enforces the order
validate → read → write for every change applied to disk.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .appinfo import DEFAULT_APP, AppInfo
from .errors import AgtokError, InvalidConfigError
from .fields import Backup, FieldUpdate, Fields, Preset, timestamp
from .presets import PresetStore
from .providers import AgentKind, BaseProvider, available_agents, parse_agent, require_provider

logger = logging.getLogger("agtok")

DEFAULT_SNAPSHOT_ALIAS = "snap-default"


def diff(old: Fields, new: Fields) -> dict[str, tuple[str, str]]:
    """Return ``{field: (old, new)}`` for every field that differs."""
    changes: dict[str, tuple[str, str]] = {}
    for name in ("url", "token", "model"):
        before, after = getattr(old, name), getattr(new, name)
        if before != after:
            changes[name] = (before, after)
    return changes


def new_alias(now: datetime | None = None) -> str:
    """Default alias for a preset added without a name."""
    return timestamp(now)


@dataclass
class ApplyResult:
    agent: AgentKind
    previous: Fields
    fields: Fields
    changes: dict[str, tuple[str, str]]
    backup: Backup | None = None

    @property
    def dry_run(self) -> bool:
        return self.backup is None


@dataclass
class SnapshotResult:
    agent: AgentKind
    added: Preset | None = None
    duplicate_of: str | None = None
    skipped: str | None = None


@dataclass
class InitReport:
    snapshots: list[SnapshotResult] = field(default_factory=list)
    errors: dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


class Switcher:
    """Façade tying providers and preset stores together."""

    def __init__(
        self,
        *,
        home: Path | None = None,
        presets_dir: Path | None = None,
        app: AppInfo = DEFAULT_APP,
    ) -> None:
        self.home = home
        self.presets_dir = presets_dir
        self.app = app

    # ---- lookups ----
    def provider(self, agent: str | AgentKind) -> BaseProvider:
        """Raises :class:`AdapterUnavailableError` for unknown agents."""
        return require_provider(agent, home=self.home)

    def store(self, agent: str | AgentKind) -> PresetStore:
        kind = self.provider(agent).agent
        return PresetStore(kind.value, directory=self.presets_dir, app=self.app)

    def current(self, agent: str | AgentKind) -> Fields:
        return self.provider(agent).read()

    # ---- writes ----
    def apply(
        self,
        agent: str | AgentKind,
        fields: Fields,
        *,
        model: FieldUpdate | None = None,
        dry_run: bool = False,
    ) -> ApplyResult:
        """Validate *fields* and write them to the agent's files.

        Raises
        ------
        InvalidConfigError
            If *fields* fail validation; nothing is read or written.
        MalformedConfigError
            If an existing target cannot be parsed.
        WriteFailureError
            If a backup or the write itself fails.
        """
        prov = self.provider(agent)
        prov.validate(fields)
        previous = prov.read()
        result = ApplyResult(
            agent=prov.agent,
            previous=previous,
            fields=fields,
            changes=diff(previous, fields),
        )
        if dry_run:
            return result
        result.backup = prov.write(fields, model=model)
        logger.info("%s: applied %s", prov.agent, ", ".join(result.changes) or "no changes")
        return result

    def apply_preset(
        self, agent: str | AgentKind, alias: str, *, dry_run: bool = False
    ) -> ApplyResult:
        """Apply a stored preset.  A preset without a model leaves it alone."""
        preset = self.store(agent).get(alias)
        return self.apply(agent, preset.fields, dry_run=dry_run)

    # ---- presets from disk ----
    def snapshot(
        self,
        agent: str | AgentKind,
        alias: str = DEFAULT_SNAPSHOT_ALIAS,
        *,
        now: datetime | None = None,
    ) -> SnapshotResult:
        """Save the agent's current on-disk values as a preset.

        Invalid current values and values already saved under another
        alias are skipped.  A taken *alias* gets a timestamp suffix, plus
        ``-N`` if that is taken too.
        """
        prov = self.provider(agent)
        result = SnapshotResult(agent=prov.agent)
        current = prov.read()
        try:
            prov.validate(current)
        except InvalidConfigError as exc:
            logger.warning("%s: skip snapshot, current config invalid (%s)", prov.agent, exc)
            result.skipped = str(exc)
            return result
        store = self.store(prov.agent)
        presets = store.presets()
        for existing in presets:
            if existing.url == current.url and existing.token == current.token:
                result.duplicate_of = existing.alias
                return result
        taken = {p.alias for p in presets}
        name = alias
        if name in taken:
            stamped = f"{alias}-{timestamp(now)}"
            name = stamped
            n = 1
            while name in taken:
                name = f"{stamped}-{n}"
                n += 1
            logger.warning("%s: alias %s already exists, using %s", prov.agent, alias, name)
        preset = Preset(
            alias=name,
            url=current.url,
            token=current.token,
            model=current.model,
            added_at=timestamp(now),
        )
        store.add(preset)
        result.added = preset
        return result

    def init(
        self,
        agents: Iterable[str | AgentKind] | None = None,
        alias: str = DEFAULT_SNAPSHOT_ALIAS,
        *,
        now: datetime | None = None,
    ) -> InitReport:
        """Migrate each agent's presets and snapshot its current values.

        Failures are collected per agent; the remaining agents still run.
        """
        report = InitReport()
        kinds = list(available_agents()) if agents is None else list(agents)
        for agent in kinds:
            kind = parse_agent(agent)
            try:
                prov = self.provider(agent)
                store = self.store(prov.agent)
                current = prov.read()
                store.migrate_on_init(current.model)
                report.snapshots.append(self.snapshot(prov.agent, alias, now=now))
            except (AgtokError, OSError) as exc:
                logger.error("%s: init failed: %s", agent, exc)
                report.errors[str(kind or agent)] = exc
        return report


__all__ = [
    "ApplyResult",
    "DEFAULT_SNAPSHOT_ALIAS",
    "InitReport",
    "SnapshotResult",
    "Switcher",
    "diff",
    "new_alias",
]
