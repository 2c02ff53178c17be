"""Registry of source types addressable from configuration."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping

from modeldb._internal.exceptions import ConfigError
from modeldb.sources.base import Source
from modeldb.sources.config import ConfigSource
from modeldb.sources.local import LocalSource
from modeldb.sources.packaged import PackagedSource
from modeldb.sources.remote import RemoteSource
from modeldb.sources.runtime import RuntimeSource

SourceFactory = Callable[..., Source]

_REGISTRY: Dict[str, SourceFactory] = {}


def register_source_type(kind: str, factory: SourceFactory) -> None:
    """Register a factory for ``{"type": kind, ...}`` configuration entries."""

    _REGISTRY[kind] = factory


def get_source_type(kind: str) -> SourceFactory:
    try:
        return _REGISTRY[kind]
    except KeyError as exc:
        available = ", ".join(sorted(_REGISTRY)) or "<none>"
        raise ConfigError(
            f"Source type '{kind}' not registered. Known: {available}", context={"type": kind}
        ) from exc


def list_source_types() -> list[str]:
    return sorted(_REGISTRY)


def build_source(spec: Mapping[str, Any]) -> Source:
    """Instantiate a source from a configuration entry.

    Raises:
        ConfigError: Unknown type or options the factory does not accept.
    """
    options = dict(spec)
    kind = options.pop("type", None)
    if not isinstance(kind, str):
        raise ConfigError("Source entries need a 'type'", context={"entry": dict(spec)})
    factory = get_source_type(kind)
    try:
        return factory(**options)
    except TypeError as exc:
        raise ConfigError(f"Invalid options for source '{kind}': {exc}", context={"type": kind}) from exc


def build_sources(specs: Iterable[Mapping[str, Any]]) -> List[Source]:
    return [build_source(spec) for spec in specs]


register_source_type("packaged", PackagedSource)
register_source_type("local", LocalSource)
register_source_type("config", ConfigSource)
register_source_type("runtime", RuntimeSource)
register_source_type("remote", RemoteSource)


__all__ = [
    "build_source",
    "build_sources",
    "get_source_type",
    "list_source_types",
    "register_source_type",
]
