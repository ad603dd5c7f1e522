from __future__ import annotations

import json
from pathlib import Path

import pytest

from agtok.appinfo import AppInfo
from agtok.errors import (
    AliasExistsError,
    InvalidConfigError,
    MalformedConfigError,
    PresetNotFoundError,
)
from agtok.fields import Preset
from agtok.presets import PresetFile, PresetStore

APP = AppInfo(name="agtok", version="9.9.9")


def _store(tmp_path: Path, agent: str = "gemini", app: AppInfo = APP) -> PresetStore:
    return PresetStore(agent, directory=tmp_path, app=app)


def _seed(tmp_path: Path, agent: str, doc: dict) -> Path:
    path = tmp_path / f"{agent}.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


def test_missing_document_is_empty_v1(tmp_path: Path) -> None:
    doc = _store(tmp_path).load()
    assert doc == PresetFile(version=1, config_version="", presets=[])
    assert not (tmp_path / "gemini.json").exists()


def test_default_directory_from_env(presets_dir: Path) -> None:
    assert PresetStore("claude").path == presets_dir / "claude.json"


def test_add_and_get(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="work", url="https://w", token="t", added_at="20240101-0000"))
    assert store.get("work").url == "https://w"
    data = json.loads((tmp_path / "gemini.json").read_text())
    assert data["version"] == 1
    assert data["config_version"] == "9.9.9"
    assert data["presets"] == [
        {"alias": "work", "url": "https://w", "token": "t", "model": "", "added_at": "20240101-0000"}
    ]


def test_add_duplicate_alias_leaves_store_unchanged(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="work", url="https://w"))
    before = store.path.read_bytes()
    with pytest.raises(AliasExistsError):
        store.add(Preset(alias="work", url="https://other"))
    assert store.path.read_bytes() == before


def test_add_blank_alias(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigError):
        _store(tmp_path).add(Preset(alias="  ", url="https://w"))


def test_get_missing(tmp_path: Path) -> None:
    with pytest.raises(PresetNotFoundError):
        _store(tmp_path).get("nope")


def test_remove(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="a", url="https://a"))
    store.add(Preset(alias="b", url="https://b"))
    store.remove("a")
    assert [p.alias for p in store.presets()] == ["b"]
    with pytest.raises(PresetNotFoundError):
        store.remove("a")


def test_rename(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="a", url="https://a"))
    store.add(Preset(alias="b", url="https://b"))
    store.rename("a", "c")
    assert [p.alias for p in store.presets()] == ["c", "b"]
    with pytest.raises(AliasExistsError):
        store.rename("c", "b")
    with pytest.raises(PresetNotFoundError):
        store.rename("a", "z")
    # renaming onto itself is not a collision
    store.rename("b", "b")
    assert [p.alias for p in store.presets()] == ["c", "b"]


def test_update_clear_model_keeps_other_fields(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="p", url="https://a", token="t1", model="m1"))
    store.update("p", token=None, clear_token=False, model=None, clear_model=True)
    preset = store.get("p")
    assert (preset.url, preset.token, preset.model) == ("https://a", "t1", "")


def test_update_clear_wins_over_value(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="p", url="https://a", token="t1", model="m1"))
    store.update("p", token="t2", clear_token=True, model="m2")
    preset = store.get("p")
    assert (preset.token, preset.model) == ("", "m2")


def test_update_sets_values_and_alias(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="p", url="https://a", token="t1", model="m1"))
    updated = store.update("p", "q", url="https://b", token="t2")
    assert updated.alias == "q"
    assert store.get("q").fields.url == "https://b"
    assert store.get("q").token == "t2"
    assert store.get("q").model == "m1"
    with pytest.raises(PresetNotFoundError):
        store.get("p")


def test_update_alias_collision(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="p", url="https://a"))
    store.add(Preset(alias="q", url="https://b"))
    with pytest.raises(AliasExistsError):
        store.update("p", "q", url="https://c")
    assert store.get("p").url == "https://a"


def test_update_missing(tmp_path: Path) -> None:
    with pytest.raises(PresetNotFoundError):
        _store(tmp_path).update("nope", url="https://x")


def test_malformed_document(tmp_path: Path) -> None:
    (tmp_path / "gemini.json").write_text("{ nope", encoding="utf-8")
    with pytest.raises(MalformedConfigError):
        _store(tmp_path).load()


def test_malformed_presets_list(tmp_path: Path) -> None:
    _seed(tmp_path, "gemini", {"version": 1, "presets": {"a": 1}})
    with pytest.raises(MalformedConfigError):
        _store(tmp_path).load()


def test_version_zero_loads_as_one(tmp_path: Path) -> None:
    _seed(tmp_path, "gemini", {"presets": []})
    assert _store(tmp_path).load().version == 1


def test_migrate_backfills_blank_models(tmp_path: Path) -> None:
    _seed(
        tmp_path,
        "gemini",
        {
            "version": 1,
            "presets": [
                {"alias": "a", "url": "https://a", "token": "t", "added_at": ""},
                {"alias": "b", "url": "https://b", "token": "t", "added_at": ""},
            ],
        },
    )
    store = _store(tmp_path, app=AppInfo(version="1.0.0"))
    store.migrate_on_init("gpt-x")
    doc = store.load()
    assert [p.model for p in doc.presets] == ["gpt-x", "gpt-x"]
    assert doc.config_version == "1.0.0"

    later = _store(tmp_path, app=AppInfo(version="1.1.0"))
    later.migrate_on_init("other-model")
    doc = later.load()
    assert [p.model for p in doc.presets] == ["gpt-x", "gpt-x"]
    assert doc.config_version == "1.1.0"


def test_migrate_keeps_existing_models(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add(Preset(alias="a", url="https://a", model="set"))
    store.add(Preset(alias="b", url="https://b"))
    store.migrate_on_init("observed")
    assert [p.model for p in store.presets()] == ["set", "observed"]


def test_migrate_newer_version_only_stamps(tmp_path: Path) -> None:
    _seed(
        tmp_path,
        "codex",
        {"version": 2, "config_version": "0.0.1", "presets": [{"alias": "a", "url": "https://a"}]},
    )
    store = _store(tmp_path, "codex")
    store.migrate_on_init("gpt-x")
    doc = store.load()
    assert doc.version == 2
    assert doc.presets[0].model == ""
    assert doc.config_version == "9.9.9"


def test_migrate_without_document_writes_stamped_v1(tmp_path: Path) -> None:
    _store(tmp_path).migrate_on_init("")
    data = json.loads((tmp_path / "gemini.json").read_text())
    assert data == {"version": 1, "config_version": "9.9.9", "presets": []}
