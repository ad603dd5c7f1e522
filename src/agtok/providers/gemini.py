from __future__ import annotations

from pathlib import Path

from ..fields import Backup, FieldUpdate, Fields
from ..paths import agent_path
from . import register_provider
from .base import AgentKind, BaseProvider

URL_KEY = "GOOGLE_GEMINI_BASE_URL"
TOKEN_KEY = "GEMINI_API_KEY"
MODEL_KEY = "GEMINI_MODEL"
MANAGED_KEYS = (URL_KEY, TOKEN_KEY, MODEL_KEY)


def parse_env(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines, skipping blanks and ``#`` comments.

    Later assignments win.  Values are kept verbatim apart from
    surrounding whitespace.
    """
    values: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip()
    return values


def render_env(values: dict[str, str]) -> str:
    """Serialise *values*; unmanaged keys first, then the managed ones."""
    out = [f"{k}={v}" for k, v in values.items() if k not in MANAGED_KEYS]
    out.extend(f"{k}={values[k]}" for k in MANAGED_KEYS if k in values)
    return "".join(line + "\n" for line in out)


@register_provider
class GeminiProvider(BaseProvider):
    """Flat ``.env`` file."""

    agent = AgentKind.GEMINI

    def paths(self) -> list[Path]:
        return [agent_path(".gemini", ".env", home=self.home)]

    def read(self) -> Fields:
        raw = self._read_text(self.paths()[0])
        if raw is None:
            return Fields()
        values = parse_env(raw)
        return Fields(
            url=values.get(URL_KEY, ""),
            token=values.get(TOKEN_KEY, ""),
            model=values.get(MODEL_KEY, ""),
        )

    def write(self, fields: Fields, *, model: FieldUpdate | None = None) -> Backup:
        path = self.paths()[0]
        values = parse_env(self._read_text(path) or "")
        if fields.url:
            values[URL_KEY] = fields.url
        if fields.token:
            values[TOKEN_KEY] = fields.token
        update = self._model_update(fields, model)
        if update.is_clear:
            values.pop(MODEL_KEY, None)
        elif update.is_set:
            values[MODEL_KEY] = update.value
        return self._commit([(path, render_env(values).encode("utf-8"))])
