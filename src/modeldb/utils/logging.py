"""Logging utilities for modeldb.

The library itself only creates module loggers (``logging.getLogger(__name__)``)
and never installs handlers on import. Applications and the CLI call
:func:`configure_logging` once to get a consistent format; individual
components can be tuned afterwards with :func:`set_component_level`.

Examples:
    >>> configure_logging(verbose=True)
    >>> set_component_level("sources", "ERROR")
"""

from __future__ import annotations

import logging
from typing import Optional, Union

ROOT_LOGGER = "modeldb"

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_configured = False

# Short component names map onto subpackage loggers.
_COMPONENT_GROUPS = {
    "catalog": "modeldb.catalog",
    "engine": "modeldb.catalog.engine",
    "store": "modeldb.catalog.store",
    "sources": "modeldb.sources",
    "config": "modeldb.core.config",
}


def get_logger(name: str) -> logging.Logger:
    """Get a module logger by name (no prefixing).

    Args:
        name: Logger name (typically ``__name__``).

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)


def _coerce_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def configure_logging(verbose: bool = False, level: Optional[Union[str, int]] = None) -> None:
    """Configure the ``modeldb`` logger hierarchy.

    Safe to call repeatedly; the handler is installed only once and later
    calls just adjust the level.

    Args:
        verbose: Use DEBUG instead of WARNING when ``level`` is not given.
        level: Explicit level name or number; wins over ``verbose``.
    """
    global _configured

    if level is not None:
        resolved = _coerce_level(level)
    else:
        resolved = logging.DEBUG if verbose else logging.WARNING

    root = logging.getLogger(ROOT_LOGGER)
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        _configured = True
    root.setLevel(resolved)


def set_component_level(component: str, level: Union[str, int]) -> None:
    """Set log level for a specific component or group.

    Accepts either string levels (e.g., "INFO") or numeric constants.
    """
    name = _COMPONENT_GROUPS.get(component, component)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    logging.getLogger(name).setLevel(_coerce_level(level))


__all__ = ["configure_logging", "get_logger", "set_component_level", "ROOT_LOGGER"]
