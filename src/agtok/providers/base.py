from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from ..atomic import atomic_write, backup_file
from ..errors import MalformedConfigError, WriteFailureError
from ..fields import CLEAR, Backup, FieldUpdate, Fields, validate_fields

logger = logging.getLogger("agtok.providers")


class AgentKind(str, Enum):
    CLAUDE = "claude"
    CODEX = "codex"
    GEMINI = "gemini"

    def __str__(self) -> str:
        return self.value


class BaseProvider(ABC):
    """Read/write translator between :class:`Fields` and one agent's files."""

    agent: AgentKind

    def __init__(self, home: Path | None = None) -> None:
        self.home = Path(home) if home is not None else None

    @property
    def id(self) -> AgentKind:
        return self.agent

    @abstractmethod
    def paths(self) -> list[Path]:
        """Files read and written, in a fixed order."""

    @abstractmethod
    def read(self) -> Fields:
        """Return the values currently on disk.

        Missing files read as empty :class:`Fields`.
        """

    @abstractmethod
    def write(self, fields: Fields, *, model: FieldUpdate | None = None) -> Backup:
        """Persist *fields*, backing up every existing target first."""

    def validate(self, fields: Fields) -> None:
        validate_fields(fields)

    # ----- helpers -----
    @staticmethod
    def _read_text(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            raise MalformedConfigError(path, str(exc)) from exc

    @classmethod
    def _read_json_object(cls, path: Path) -> dict | None:
        raw = cls._read_text(path)
        if raw is None:
            return None
        if raw.strip() == "":
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedConfigError(path, str(exc)) from exc
        if not isinstance(data, dict):
            raise MalformedConfigError(path, "root must be a JSON object")
        return data

    @staticmethod
    def _dump_json(data: dict) -> bytes:
        return (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")

    @staticmethod
    def _model_update(fields: Fields, model: FieldUpdate | None) -> FieldUpdate:
        if model is None:
            return FieldUpdate.for_model(fields.model)
        # setting an empty model is the same as removing it
        if model.is_set and not model.value:
            return CLEAR
        return model

    def _commit(self, writes: Sequence[tuple[Path, bytes]]) -> Backup:
        """Back up every target, then replace them in order.

        If a later file fails to be replaced, the files already replaced
        in this call are put back to their previous content.
        """
        backup = Backup()
        originals: dict[Path, bytes | None] = {}
        for path, _ in writes:
            try:
                current = path.read_bytes()
            except FileNotFoundError:
                originals[path] = None
                continue
            except OSError as exc:
                raise WriteFailureError(f"failed to read {path}: {exc}") from exc
            # the .bak and the rollback copy come from this one read
            originals[path] = current
            backup.files[path] = backup_file(path, backup.time, data=current)
        done: list[Path] = []
        for path, data in writes:
            try:
                atomic_write(path, data)
            except WriteFailureError:
                self._rollback(done, originals)
                raise
            done.append(path)
        logger.debug("%s: wrote %s", self.agent, ", ".join(str(p) for p in done))
        return backup

    def _rollback(self, done: Sequence[Path], originals: dict[Path, bytes | None]) -> None:
        for path in reversed(done):
            previous = originals.get(path)
            try:
                if previous is None:
                    path.unlink()
                else:
                    atomic_write(path, previous)
            except (OSError, WriteFailureError) as exc:
                logger.error("%s: could not restore %s: %s", self.agent, path, exc)
            else:
                logger.warning("%s: restored %s after failed write", self.agent, path)
