"""Catalog build pipeline.

``run`` turns an ordered list of sources into a published-ready
:class:`~modeldb.catalog.snapshot.Snapshot`:

1. ingest: each source produces a raw provider-keyed layer; a failing source
   contributes nothing and is logged;
2. canonicalize and validate each layer independently, dropping bad records;
3. merge the layers (later sources win) and apply provider exclude tables;
4. enrich models and derive pricing components;
5. filter with the allow/deny policy and index.

Sources earlier in the list have lower precedence. The pipeline is
synchronous and either returns a complete snapshot or raises.

Examples:
    >>> from modeldb.sources import RuntimeSource
    >>> snap = run([RuntimeSource(models=[{"provider": "openai", "id": "gpt-4o-mini"}])])
    >>> snap.model("openai", "gpt-4o-mini").family
    'gpt-4o'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from modeldb._internal.exceptions import EmptyCatalogError, SourceError
from modeldb.catalog.canonical import normalize_models, normalize_providers
from modeldb.catalog.enrich import enrich, enrich_providers
from modeldb.catalog.filters import ALL, CompiledFilters, apply_filters, compile_filters
from modeldb.catalog.merge import merge
from modeldb.catalog.pricing import apply_cost_components, apply_provider_defaults
from modeldb.catalog.schemas import Model, Provider
from modeldb.catalog.snapshot import Snapshot, build_document_from
from modeldb.catalog.types import Layer
from modeldb.catalog.validate import validate_models, validate_providers

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadOptions:
    """Everything needed to rebuild the catalog; remembered for reload."""

    sources: Tuple[Any, ...] = ()
    allow: Any = ALL
    deny: Any = None
    prefer: Tuple[str, ...] = ()


@dataclass
class BuildStats:
    layers: int = 0
    failed_sources: int = 0
    dropped: Dict[str, int] = field(default_factory=dict)
    excluded: int = 0
    filtered: int = 0

    def drop(self, stage: str, count: int) -> None:
        if count:
            self.dropped[stage] = self.dropped.get(stage, 0) + count


# ----------------------------------------------------------------------
# Ingest
# ----------------------------------------------------------------------
def layer_from_raw(raw: Any, name: str) -> Layer:
    """Split a provider-keyed raw layer into provider and model records.

    The raw shape is ``{provider_id: {...provider fields, "models": [...]}}``
    where ``models`` may also be a mapping of model id to record.

    Raises:
        SourceError: ``raw`` does not have that shape.
    """
    if raw is None:
        return Layer(name=name)
    if not isinstance(raw, Mapping):
        raise SourceError(
            "Source layer must be a mapping of provider id to data",
            context={"source": name, "value_type": type(raw).__name__},
        )

    layer = Layer(name=name)
    for provider_key, entry in raw.items():
        if not isinstance(entry, Mapping):
            raise SourceError(
                "Provider entry must be a mapping",
                context={"source": name, "provider": provider_key},
            )
        provider = {k: v for k, v in entry.items() if k != "models"}
        provider.setdefault("id", provider_key)
        models = entry.get("models") or []
        if isinstance(models, Mapping):
            records = []
            for model_id, record in models.items():
                if isinstance(record, Mapping):
                    record = dict(record)
                    record.setdefault("id", model_id)
                records.append(record)
            models = records
        if not isinstance(models, (list, tuple)):
            raise SourceError(
                "Provider models must be a list or mapping",
                context={"source": name, "provider": provider_key},
            )
        layer.providers.append(provider)
        for record in models:
            if isinstance(record, Mapping):
                record = dict(record)
                record.setdefault("provider", provider["id"])
            layer.models.append(record)
    return layer


def ingest(source: Any, stats: Optional[BuildStats] = None) -> Layer:
    """Load one source; failures yield an empty layer."""

    name = getattr(source, "name", type(source).__name__)
    try:
        raw = source.load()
        return layer_from_raw(raw, name)
    except Exception as exc:
        logger.warning("Source '%s' failed; continuing without it: %s", name, exc)
        if stats is not None:
            stats.failed_sources += 1
        return Layer(name=name)


def prepare_layer(layer: Layer, stats: Optional[BuildStats] = None) -> Layer:
    """Canonicalize and validate one layer."""

    stats = stats or BuildStats()
    providers, bad_providers = normalize_providers(layer.providers)
    models, bad_models = normalize_models(layer.models)
    providers, invalid_providers = validate_providers(providers)
    models, invalid_models = validate_models(models)
    stats.drop("canonicalize", bad_providers + bad_models)
    stats.drop("validate", invalid_providers + invalid_models)
    dropped = bad_providers + bad_models + invalid_providers + invalid_models
    if dropped:
        logger.warning("Layer '%s': dropped %d invalid record(s)", layer.name, dropped)
    logger.debug(
        "Layer '%s': %d providers, %d models", layer.name, len(providers), len(models)
    )
    return Layer(name=layer.name, providers=providers, models=models)


# ----------------------------------------------------------------------
# Build
# ----------------------------------------------------------------------
def build_catalog(
    sources: Sequence[Any], stats: Optional[BuildStats] = None
) -> Tuple[List[Provider], List[Model]]:
    """Run every stage up to (not including) filtering.

    Returns:
        Materialized providers and models, with schema defaults applied.
    """
    stats = stats or BuildStats()
    layers = [prepare_layer(ingest(source, stats), stats) for source in sources]
    stats.layers = len(layers)
    merged = merge(layers)
    stats.excluded = merged.excluded

    models = enrich(merged.models)
    models = apply_cost_components(models)
    models = apply_provider_defaults(merged.providers, models)

    providers: List[Provider] = []
    for record in enrich_providers(merged.providers):
        try:
            providers.append(Provider.model_validate(record))
        except ValidationError as exc:
            stats.drop("materialize", 1)
            logger.warning("Dropping provider %s after merge: %s", record.get("id"), exc)

    materialized: List[Model] = []
    for record in models:
        try:
            materialized.append(Model.model_validate(record))
        except ValidationError as exc:
            stats.drop("materialize", 1)
            logger.warning(
                "Dropping %s:%s after merge: %s", record.get("provider"), record.get("id"), exc
            )
    logger.debug(
        "Merged %d layer(s) into %d providers and %d models",
        len(layers),
        len(providers),
        len(materialized),
    )
    return providers, materialized


def run(
    sources: Sequence[Any],
    filters: Optional[Mapping[str, Any]] = None,
    prefer: Sequence[str] = (),
    *,
    stats: Optional[BuildStats] = None,
) -> Snapshot:
    """Build a snapshot from ``sources``.

    Args:
        sources: Objects with a ``load()`` method, lowest precedence first.
        filters: ``{"allow": ..., "deny": ...}`` policy; allow-all when omitted.
        prefer: Provider ids to try first during selection.

    Raises:
        EmptyCatalogError: No model survives merge and filtering.
    """
    stats = stats or BuildStats()
    filters = filters or {}
    providers, models = build_catalog(sources, stats)

    compiled = compile_filters(
        filters.get("allow", ALL),
        filters.get("deny"),
        known_providers={p.id for p in providers} | {m.provider for m in models},
    )
    visible = apply_filters(models, compiled)
    stats.filtered = len(models) - len(visible)
    if not visible:
        raise EmptyCatalogError(
            "Catalog is empty after merge and filtering",
            context={"merged_models": len(models), "filtered": stats.filtered},
        )

    return Snapshot.build(
        providers,
        visible,
        base_models=models,
        filters=compiled,
        prefer=list(prefer),
    )


def run_options(options: LoadOptions, stats: Optional[BuildStats] = None) -> Snapshot:
    return run(
        options.sources,
        {"allow": options.allow, "deny": options.deny},
        options.prefer,
        stats=stats,
    )


def build_document(sources: Sequence[Any]) -> Dict[str, Any]:
    """Build the unfiltered persisted document from ``sources``."""

    providers, models = build_catalog(sources)
    return build_document_from(providers, models)


def recompile(snapshot: Snapshot, filters: Mapping[str, Any]) -> CompiledFilters:
    known = set(snapshot.providers_by_id) | {m.provider for m in snapshot.base_models}
    return compile_filters(filters.get("allow", ALL), filters.get("deny"), known_providers=known)


__all__ = [
    "BuildStats",
    "LoadOptions",
    "build_catalog",
    "build_document",
    "ingest",
    "layer_from_raw",
    "prepare_layer",
    "recompile",
    "run",
    "run_options",
]
