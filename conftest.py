import sys
from pathlib import Path

import pytest

# Ensure 'src' directory is on sys.path for tests
PROJECT_ROOT = Path(__file__).resolve().parent
SRC_DIR = PROJECT_ROOT / 'src'
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    """Isolated home directory that agent files resolve under."""
    path = tmp_path / "home"
    path.mkdir()
    monkeypatch.setenv("AGTOK_HOME", str(path))
    return path.resolve()


@pytest.fixture
def presets_dir(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "presets"
    monkeypatch.setenv("AGTOK_PRESETS_DIR", str(path))
    return path.resolve()
