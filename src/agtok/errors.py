class AgtokError(Exception):
    """Base class for agtok errors."""


class MalformedConfigError(AgtokError):
    """Raised when a config file exists but cannot be parsed."""

    def __init__(self, path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class InvalidConfigError(AgtokError):
    """Raised when values fail validation."""


class PresetNotFoundError(AgtokError):
    """Raised when a preset alias is not present for an agent."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"preset not found: {alias}")
        self.alias = alias


class AliasExistsError(AgtokError):
    """Raised when a preset alias is already taken."""

    def __init__(self, alias: str) -> None:
        super().__init__(f"alias already exists: {alias}")
        self.alias = alias


class AdapterUnavailableError(AgtokError):
    """Raised when no provider is registered for an agent."""


class WriteFailureError(AgtokError):
    """Raised when a backup or atomic write fails.

    The destination file is left as it was before the call.
    """
