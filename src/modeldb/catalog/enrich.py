"""Derived defaults for merged models.

Enrichment is field-local and idempotent: it only fills fields that are
absent, so running it twice changes nothing.

Examples:
    >>> derive_family("gpt-4o-mini")
    'gpt-4o'
    >>> derive_family("gpt") is None
    True
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

# Providers served by another provider's implementation.
PROVIDER_ALIASES: Dict[str, str] = {
    "google_vertex_anthropic": "google_vertex",
}


def derive_family(model_id: str) -> Optional[str]:
    """Drop the last hyphen-delimited segment of ``model_id``."""

    segments = model_id.split("-")
    if len(segments) <= 1:
        return None
    return "-".join(segments[:-1])


def enrich_model(model: Mapping[str, Any]) -> Dict[str, Any]:
    enriched = dict(model)
    if enriched.get("family") is None:
        family = derive_family(enriched["id"])
        if family is not None:
            enriched["family"] = family
    if enriched.get("provider_model_id") is None:
        enriched["provider_model_id"] = enriched["id"]
    return enriched


def enrich(models: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [enrich_model(model) for model in models]


def enrich_providers(providers: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Fill ``alias_of`` for providers listed in :data:`PROVIDER_ALIASES`."""

    enriched: List[Dict[str, Any]] = []
    for provider in providers:
        record = dict(provider)
        primary = PROVIDER_ALIASES.get(record["id"])
        if primary is not None and record.get("alias_of") is None:
            record["alias_of"] = primary
        enriched.append(record)
    return enriched


__all__ = ["PROVIDER_ALIASES", "derive_family", "enrich", "enrich_model", "enrich_providers"]
