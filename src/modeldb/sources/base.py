"""Protocol definitions for catalog sources."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

RawLayer = Mapping[str, Mapping[str, Any]]


@runtime_checkable
class Source(Protocol):
    """Minimal interface a catalog source must implement."""

    name: str  # label used in logs

    def load(self) -> RawLayer:
        """Return ``{provider_id: {...provider fields, "models": [...]}}``.

        Raises:
            SourceError: The layer could not be produced.
        """


def group_by_provider(
    providers: Iterable[Any] = (), models: Iterable[Any] = ()
) -> Dict[str, Dict[str, Any]]:
    """Fold flat provider and model lists into the raw layer shape.

    Models keep their own ``provider`` field, so records with a missing or
    malformed provider still reach validation and are reported there.
    """
    layer: Dict[str, Dict[str, Any]] = {}
    for provider in providers:
        if not isinstance(provider, Mapping):
            logger.warning("Ignoring non-mapping provider record: %r", provider)
            continue
        entry = layer.setdefault(str(provider.get("id", "")), {"models": []})
        entry.update({k: v for k, v in provider.items() if k != "models"})
    for model in models:
        if not isinstance(model, Mapping):
            logger.warning("Ignoring non-mapping model record: %r", model)
            continue
        entry = layer.setdefault(str(model.get("provider", "")), {"models": []})
        entry["models"].append(model)
    return layer


__all__ = ["RawLayer", "Source", "group_by_provider"]
