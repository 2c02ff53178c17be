"""Lookup indexes over a finalized provider/model set."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from modeldb.catalog.enrich import PROVIDER_ALIASES
from modeldb.catalog.schemas import Model, Provider
from modeldb.catalog.types import ModelKeyTuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogIndex:
    """Read-only maps answering every catalog lookup in O(1)."""

    providers_by_id: Mapping[str, Provider]
    models_by_key: Mapping[ModelKeyTuple, Model]
    models_by_provider: Mapping[str, Tuple[Model, ...]]
    aliases_by_key: Mapping[ModelKeyTuple, str]


def build_index(providers: Sequence[Provider], models: Sequence[Model]) -> CatalogIndex:
    """Index ``providers`` and ``models`` in one pass.

    Duplicate ``(provider, id)`` keys resolve last-write-wins with a warning.
    Aliases that collide with a canonical id of the same provider are
    ignored; an alias claimed by two models points at the later one. Models
    whose provider has no definition get a bare provider entry.
    """
    providers_by_id: Dict[str, Provider] = {}
    for provider in providers:
        if provider.id in providers_by_id:
            logger.warning("Duplicate provider '%s'; keeping the last definition", provider.id)
        providers_by_id[provider.id] = provider

    models_by_key: Dict[ModelKeyTuple, Model] = {}
    for model in models:
        if model.key in models_by_key:
            logger.warning(
                "Duplicate model '%s:%s'; keeping the last definition", model.provider, model.id
            )
        models_by_key[model.key] = model
        if model.provider not in providers_by_id:
            providers_by_id[model.provider] = Provider(
                id=model.provider, alias_of=PROVIDER_ALIASES.get(model.provider)
            )

    grouped: Dict[str, List[Model]] = {}
    for model in models_by_key.values():
        grouped.setdefault(model.provider, []).append(model)
    models_by_provider = {
        provider: tuple(sorted(items, key=lambda m: m.id)) for provider, items in grouped.items()
    }

    aliases_by_key: Dict[ModelKeyTuple, str] = {}
    for model in models_by_key.values():
        for alias in model.aliases:
            alias_key = (model.provider, alias)
            if alias == model.id:
                continue
            if alias_key in models_by_key:
                logger.warning(
                    "Alias '%s' of %s:%s shadows a canonical model id; ignoring",
                    alias,
                    model.provider,
                    model.id,
                )
                continue
            previous = aliases_by_key.get(alias_key)
            if previous is not None and previous != model.id:
                logger.warning(
                    "Alias '%s:%s' moved from '%s' to '%s'", model.provider, alias, previous, model.id
                )
            aliases_by_key[alias_key] = model.id

    return CatalogIndex(
        providers_by_id=MappingProxyType(dict(sorted(providers_by_id.items()))),
        models_by_key=MappingProxyType(models_by_key),
        models_by_provider=MappingProxyType(dict(sorted(models_by_provider.items()))),
        aliases_by_key=MappingProxyType(aliases_by_key),
    )


__all__ = ["CatalogIndex", "build_index"]
