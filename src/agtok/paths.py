from __future__ import annotations

import os
from pathlib import Path

from platformdirs import user_config_dir as _uc

CONFIG_APP_NAME = "token-switcher"

# ---------------------------------------------------------------------------
# Agent files
# ---------------------------------------------------------------------------

def home_dir() -> Path:
    """Return the directory agent config files are resolved under."""
    env = os.getenv("AGTOK_HOME")
    if env:
        return Path(env).expanduser().resolve()
    return Path.home()


def agent_path(*parts: str, home: Path | None = None) -> Path:
    base = Path(home) if home is not None else home_dir()
    return base.joinpath(*parts)

# ---------------------------------------------------------------------------
# Preset documents
# ---------------------------------------------------------------------------

def user_config_dir(app_name: str = CONFIG_APP_NAME) -> Path:
    return Path(_uc(appname=app_name)).resolve()


def presets_dir() -> Path:
    env = os.getenv("AGTOK_PRESETS_DIR")
    if env:
        return Path(env).expanduser().resolve()
    return user_config_dir() / "presets"
