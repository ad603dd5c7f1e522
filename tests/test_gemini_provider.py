from __future__ import annotations

from pathlib import Path

from agtok.fields import CLEAR, Fields
from agtok.providers.gemini import GeminiProvider, parse_env


def _env(home: Path) -> Path:
    return home / ".gemini" / ".env"


def _write(home: Path, text: str) -> Path:
    path = _env(home)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_parse_env_skips_comments_and_blanks() -> None:
    text = "# comment\n\nA=1\n  B = two  \nnot a pair\nC=x=y\n"
    assert parse_env(text) == {"A": "1", "B": "two", "C": "x=y"}


def test_missing_file_reads_empty(tmp_path: Path) -> None:
    assert GeminiProvider(home=tmp_path).read() == Fields()


def test_read_ignores_unknown_keys(tmp_path: Path) -> None:
    _write(
        tmp_path,
        "# gemini\nOTHER=1\nGOOGLE_GEMINI_BASE_URL=https://g\nGEMINI_API_KEY=k\nGEMINI_MODEL=gemini-pro\n",
    )
    assert GeminiProvider(home=tmp_path).read() == Fields(
        url="https://g", token="k", model="gemini-pro"
    )


def test_roundtrip(tmp_path: Path) -> None:
    prov = GeminiProvider(home=tmp_path)
    fields = Fields(url="https://g.example", token="key", model="m")
    prov.write(fields)
    assert prov.read() == fields


def test_write_orders_managed_keys_last(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "FOO=1\nGEMINI_MODEL=old\nGOOGLE_GEMINI_BASE_URL=https://old\nBAR=2\n",
    )
    GeminiProvider(home=tmp_path).write(Fields(url="https://new", token="t"))
    assert path.read_text() == (
        "FOO=1\n"
        "BAR=2\n"
        "GOOGLE_GEMINI_BASE_URL=https://new\n"
        "GEMINI_API_KEY=t\n"
        "GEMINI_MODEL=old\n"
    )


def test_empty_token_leaves_existing(tmp_path: Path) -> None:
    _write(tmp_path, "GEMINI_API_KEY=keep\n")
    prov = GeminiProvider(home=tmp_path)
    prov.write(Fields(url="https://g"))
    assert prov.read().token == "keep"


def test_clear_model(tmp_path: Path) -> None:
    path = _write(tmp_path, "GEMINI_MODEL=old\n")
    GeminiProvider(home=tmp_path).write(Fields(url="https://g", token="t"), model=CLEAR)
    assert "GEMINI_MODEL" not in path.read_text()


def test_write_backs_up(tmp_path: Path) -> None:
    path = _write(tmp_path, "A=1\n")
    backup = GeminiProvider(home=tmp_path).write(Fields(url="https://g", token="t"))
    assert backup.files[path].read_text() == "A=1\n"
