from .appinfo import DEFAULT_APP, AppInfo, __version__
from .errors import (
    AdapterUnavailableError,
    AgtokError,
    AliasExistsError,
    InvalidConfigError,
    MalformedConfigError,
    PresetNotFoundError,
    WriteFailureError,
)
from .fields import CLEAR, UNCHANGED, Backup, FieldUpdate, Fields, Preset, validate_fields
from .orchestrator import Switcher
from .presets import PresetFile, PresetStore
from .providers import AgentKind, get_provider, require_provider


__all__ = [
    "AdapterUnavailableError",
    "AgentKind",
    "AgtokError",
    "AliasExistsError",
    "AppInfo",
    "Backup",
    "CLEAR",
    "DEFAULT_APP",
    "FieldUpdate",
    "Fields",
    "InvalidConfigError",
    "MalformedConfigError",
    "Preset",
    "PresetFile",
    "PresetNotFoundError",
    "PresetStore",
    "Switcher",
    "UNCHANGED",
    "WriteFailureError",
    "__version__",
    "get_provider",
    "require_provider",
    "validate_fields",
]
