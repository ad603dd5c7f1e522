"""Provider registry and factory."""
from __future__ import annotations

from pathlib import Path

from ..errors import AdapterUnavailableError
from .base import AgentKind, BaseProvider

_REGISTRY: dict[AgentKind, type[BaseProvider]] = {}

def register_provider(provider: type[BaseProvider]) -> type[BaseProvider]:
    """Register a provider class and return it for decorator use."""
    _REGISTRY[provider.agent] = provider
    return provider

def parse_agent(name: str | AgentKind) -> AgentKind | None:
    if isinstance(name, AgentKind):
        return name
    try:
        return AgentKind(str(name).strip().lower())
    except ValueError:
        return None

def available_agents() -> list[AgentKind]:
    return [kind for kind in AgentKind if kind in _REGISTRY]

def get_provider(agent: str | AgentKind, *, home: Path | None = None) -> BaseProvider | None:
    """Return the provider for *agent*, or ``None`` if there is none."""
    kind = parse_agent(agent)
    if kind is None:
        return None
    provider_cls = _REGISTRY.get(kind)
    if provider_cls is None:
        return None
    return provider_cls(home=home)

def require_provider(agent: str | AgentKind, *, home: Path | None = None) -> BaseProvider:
    provider = get_provider(agent, home=home)
    if provider is None:
        raise AdapterUnavailableError(f"no provider for agent {agent!r}")
    return provider

# register default providers
from . import claude, codex, gemini  # noqa: F401,E402

__all__ = [
    "AgentKind",
    "BaseProvider",
    "available_agents",
    "get_provider",
    "parse_agent",
    "register_provider",
    "require_provider",
]
