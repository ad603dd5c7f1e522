from __future__ import annotations

from pathlib import Path

from ..errors import MalformedConfigError
from ..fields import Backup, FieldUpdate, Fields
from ..paths import agent_path
from . import register_provider
from .base import AgentKind, BaseProvider

URL_KEY = "ANTHROPIC_BASE_URL"
# read in this order; only the first is ever written
TOKEN_KEYS = ("ANTHROPIC_AUTH_TOKEN", "ANTHROPIC_API_TOKEN", "ANTHROPIC_API_KEY")
MODEL_KEY = "ANTHROPIC_MODEL"


def _env_map(path: Path, doc: dict) -> dict:
    env = doc.get("env")
    if env is None:
        return {}
    if not isinstance(env, dict):
        raise MalformedConfigError(path, "'env' must be an object")
    return env


def _str(value: object) -> str:
    return value if isinstance(value, str) else ""


@register_provider
class ClaudeProvider(BaseProvider):
    """``settings.json`` with an ``env`` map of environment variables."""

    agent = AgentKind.CLAUDE

    def paths(self) -> list[Path]:
        return [agent_path(".claude", "settings.json", home=self.home)]

    def read(self) -> Fields:
        path = self.paths()[0]
        doc = self._read_json_object(path)
        if doc is None:
            return Fields()
        env = _env_map(path, doc)
        token = ""
        for key in TOKEN_KEYS:
            token = _str(env.get(key))
            if token:
                break
        return Fields(
            url=_str(env.get(URL_KEY)),
            token=token,
            model=_str(env.get(MODEL_KEY)),
        )

    def write(self, fields: Fields, *, model: FieldUpdate | None = None) -> Backup:
        path = self.paths()[0]
        doc = self._read_json_object(path) or {}
        env = dict(_env_map(path, doc))
        env[URL_KEY] = fields.url
        # an empty token leaves whatever is there
        if fields.token:
            env[TOKEN_KEYS[0]] = fields.token
        update = self._model_update(fields, model)
        if update.is_clear:
            env.pop(MODEL_KEY, None)
        elif update.is_set:
            env[MODEL_KEY] = update.value
        doc["env"] = env
        return self._commit([(path, self._dump_json(doc))])
