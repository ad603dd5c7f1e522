from __future__ import annotations

from dataclasses import dataclass

__version__ = "0.1.4"


@dataclass(frozen=True)
class AppInfo:
    """Application identity, built once and passed to whatever needs it."""

    name: str = "agtok"
    version: str = __version__


DEFAULT_APP = AppInfo()
