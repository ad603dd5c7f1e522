"""Provider for ``config.toml`` plus the companion ``auth.json``.

``config.toml`` is edited as a list of lines rather than through a parsed
document so that comments, ordering and keys agtok does not manage survive
byte for byte.  tomlkit is only used to validate the file and to decode or
encode single values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from ..errors import MalformedConfigError, WriteFailureError
from ..fields import Backup, FieldUpdate, Fields
from ..paths import agent_path
from . import register_provider
from .base import AgentKind, BaseProvider

PROVIDERS_TABLE = "model_providers"
URL_KEY = "base_url"
SELECTED_KEY = "model_provider"
MODEL_KEY = "model"
TOKEN_KEY = "OPENAI_API_KEY"

_HEADER_RX = re.compile(r"^\s*(?P<open>\[\[?)\s*(?P<name>[^\[\]]+?)\s*\]\]?\s*(?:#.*)?$")
_KEY_RX = re.compile(
    r"^(?P<indent>\s*)(?P<key>[A-Za-z0-9_\-]+|\"[^\"]*\"|'[^']*')\s*=\s*(?P<value>.*)$"
)


@dataclass
class ProviderSection:
    name: str
    header: int
    url: str | None = None
    url_line: int | None = None


@dataclass
class Layout:
    """Where the managed keys live in a ``config.toml`` line list."""

    sections: list[ProviderSection] = field(default_factory=list)
    selected: str = ""
    model: str | None = None
    model_line: int | None = None
    last_root_key: int | None = None

    def section(self, name: str) -> ProviderSection | None:
        for sec in self.sections:
            if sec.name == name:
                return sec
        return None

    def target(self, own_name: str) -> ProviderSection | None:
        """Selected provider, else *own_name*, else the first section."""
        if self.selected:
            sec = self.section(self.selected)
            if sec is not None:
                return sec
        sec = self.section(own_name)
        if sec is not None:
            return sec
        return self.sections[0] if self.sections else None


def split_table_name(name: str) -> tuple[str, ...]:
    parts: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    for ch in name:
        if quote:
            if ch == quote:
                quote = None
            else:
                buf.append(ch)
        elif ch in "\"'":
            quote = ch
        elif ch == ".":
            parts.append("".join(buf).strip())
            buf = []
        else:
            buf.append(ch)
    parts.append("".join(buf).strip())
    return tuple(parts)


def decode_value(raw: str) -> str:
    try:
        value = tomlkit.parse(f"v = {raw}").get("v")
    except TOMLKitError:
        return raw.split("#", 1)[0].strip().strip("\"'")
    return "" if value is None else str(value)


def encode_value(value: str) -> str:
    return tomlkit.string(value).as_string()


def _unquote_key(key: str) -> str:
    if len(key) >= 2 and key[0] == key[-1] and key[0] in "\"'":
        return key[1:-1]
    return key


def track_value(text: str, depth: int = 0, quote: str | None = None) -> tuple[int, str | None]:
    """Follow a value across *text* and return ``(depth, quote)``.

    ``depth`` counts ``[``/``{`` still open outside strings and ``quote``
    is the delimiter of a multi-line string still open at the end of the
    line.  Pass the result back in for the next line of the same value.
    """
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if quote is not None:
            if ch == "\\" and quote in ('"', '"""'):
                i += 2
                continue
            if text.startswith(quote, i):
                i += len(quote)
                quote = None
                continue
            i += 1
            continue
        if ch == "#":
            break
        if ch in "\"'":
            quote = ch * 3 if text.startswith(ch * 3, i) else ch
            i += len(quote)
            continue
        if ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
        i += 1
    # single-line strings cannot continue onto the next line
    if quote in ('"', "'"):
        quote = None
    return max(depth, 0), quote


def scan(lines: list[str]) -> Layout:
    """Classify *lines* and record the positions of the managed keys.

    Continuation lines of multi-line arrays, inline tables and strings
    belong to the key that opened them and are never read as headers or
    keys.
    """
    layout = Layout()
    in_root = True
    current: ProviderSection | None = None
    depth = 0
    quote: str | None = None
    for i, line in enumerate(lines):
        if depth or quote is not None:
            depth, quote = track_value(line, depth, quote)
            if not depth and quote is None and in_root:
                layout.last_root_key = i
            continue
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        header = _HEADER_RX.match(line)
        if header:
            in_root = False
            current = None
            parts = split_table_name(header.group("name"))
            if header.group("open") == "[" and len(parts) == 2 and parts[0] == PROVIDERS_TABLE:
                current = ProviderSection(name=parts[1], header=i)
                layout.sections.append(current)
            continue
        match = _KEY_RX.match(line)
        if not match:
            continue
        key = _unquote_key(match.group("key"))
        value = match.group("value")
        depth, quote = track_value(value)
        if depth or quote is not None:
            continue
        if in_root:
            layout.last_root_key = i
            if key == SELECTED_KEY:
                layout.selected = decode_value(value)
            elif key == MODEL_KEY and layout.model_line is None:
                layout.model = decode_value(value)
                layout.model_line = i
        elif current is not None and key == URL_KEY and current.url_line is None:
            current.url = decode_value(value)
            current.url_line = i
    return layout


def _indent_of(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def apply_edits(
    lines: list[str], own_name: str, url: str, model: FieldUpdate
) -> list[str]:
    """Return a copy of *lines* with the URL and model instructions applied.

    Lines other than the target ``base_url`` line and the root ``model``
    line are never altered.
    """
    out = list(lines)
    layout = scan(out)
    url_line = f"{URL_KEY} = {encode_value(url)}"
    target = layout.target(own_name)
    # section edits sit after the root block, so do them first
    if target is None:
        if out and out[-1].strip():
            out.append("")
        out.append(f"[{PROVIDERS_TABLE}.{own_name}]")
        out.append(url_line)
    elif target.url_line is not None:
        out[target.url_line] = _indent_of(out[target.url_line]) + url_line
    else:
        out.insert(target.header + 1, url_line)

    if model.is_clear:
        if layout.model_line is not None:
            del out[layout.model_line]
    elif model.is_set:
        model_line = f"{MODEL_KEY} = {encode_value(model.value)}"
        if layout.model_line is not None:
            out[layout.model_line] = _indent_of(out[layout.model_line]) + model_line
        elif layout.last_root_key is not None:
            out.insert(layout.last_root_key + 1, model_line)
        else:
            out.insert(0, model_line)
    return out


@register_provider
class CodexProvider(BaseProvider):
    agent = AgentKind.CODEX

    def paths(self) -> list[Path]:
        return [
            agent_path(".codex", "config.toml", home=self.home),
            agent_path(".codex", "auth.json", home=self.home),
        ]

    def _load_toml(self, path: Path) -> str | None:
        text = self._read_text(path)
        if text is None:
            return None
        try:
            tomlkit.parse(text)
        except TOMLKitError as exc:
            raise MalformedConfigError(path, str(exc)) from exc
        return text

    def read(self) -> Fields:
        config_path, auth_path = self.paths()
        url = model = ""
        text = self._load_toml(config_path)
        if text is not None:
            layout = scan(text.splitlines())
            target = layout.target(self.agent.value)
            if target is not None and target.url is not None:
                url = target.url
            model = layout.model or ""
        auth = self._read_json_object(auth_path) or {}
        token = auth.get(TOKEN_KEY)
        return Fields(
            url=url,
            token=token if isinstance(token, str) else "",
            model=model,
        )

    def write(self, fields: Fields, *, model: FieldUpdate | None = None) -> Backup:
        config_path, auth_path = self.paths()
        text = self._load_toml(config_path) or ""
        lines = apply_edits(
            text.splitlines(),
            self.agent.value,
            fields.url,
            self._model_update(fields, model),
        )
        trailing = "\n" if (not text or text.endswith("\n")) else ""
        edited = "\n".join(lines) + trailing
        try:
            tomlkit.parse(edited)
        except TOMLKitError as exc:
            raise WriteFailureError(
                f"refusing to write {config_path}: edit produced invalid TOML: {exc}"
            ) from exc
        config_out = edited.encode("utf-8")

        auth = self._read_json_object(auth_path) or {}
        if fields.token:
            auth[TOKEN_KEY] = fields.token
        return self._commit([(config_path, config_out), (auth_path, self._dump_json(auth))])
