"""Pricing component derivation.

Legacy ``cost`` rates are expressed as pricing components so consumers only
need to read ``pricing.components``. Provider ``pricing_defaults`` are then
layered under each model's own pricing.

Examples:
    >>> model = {"id": "m", "provider": "p", "cost": {"input": 3.0}}
    >>> apply_cost_components([model])[0]["pricing"]["components"][0]["id"]
    'token.input'
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from modeldb.catalog.merge import merge_list_by_id

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY = "USD"
TOKENS_PER_UNIT = 1_000_000

# (component id, cost field(s), kind, per)
_COST_COMPONENTS = (
    ("token.input", ("input",), "token", TOKENS_PER_UNIT),
    ("token.output", ("output",), "token", TOKENS_PER_UNIT),
    ("token.cache_read", ("cache_read", "cached_input"), "token", TOKENS_PER_UNIT),
    ("token.cache_write", ("cache_write",), "token", TOKENS_PER_UNIT),
    ("token.reasoning", ("reasoning",), "token", TOKENS_PER_UNIT),
    ("image.generated", ("image",), "image", 1),
)


def cost_components(cost: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Translate a ``cost`` mapping into pricing components."""

    components: List[Dict[str, Any]] = []
    for component_id, fields, kind, per in _COST_COMPONENTS:
        rate = next((cost[f] for f in fields if cost.get(f) is not None), None)
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            continue
        components.append({"id": component_id, "kind": kind, "unit": kind, "per": per, "rate": rate})
    return components


def apply_cost_components(models: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Add components derived from ``cost``; explicit components win by id."""

    result: List[Dict[str, Any]] = []
    for model in models:
        cost = model.get("cost")
        if not isinstance(cost, Mapping) or not cost:
            result.append(dict(model))
            continue
        pricing = dict(model.get("pricing") or {})
        derived = cost_components(cost)
        if not derived:
            result.append(dict(model))
            continue
        pricing["components"] = merge_list_by_id(derived, pricing.get("components") or [])
        pricing["currency"] = pricing.get("currency") or DEFAULT_CURRENCY
        updated = dict(model)
        updated["pricing"] = pricing
        result.append(updated)
    return result


def merge_pricing(defaults: Mapping[str, Any], pricing: Mapping[str, Any]) -> Dict[str, Any]:
    """Layer a model's ``pricing`` over provider ``defaults``."""

    if pricing.get("merge") == "replace":
        return dict(pricing)
    merged = dict(pricing)
    merged["currency"] = pricing.get("currency") or defaults.get("currency")
    merged["components"] = merge_list_by_id(
        defaults.get("components") or [], pricing.get("components") or []
    )
    return merged


def apply_provider_defaults(
    providers: Sequence[Mapping[str, Any]], models: Iterable[Mapping[str, Any]]
) -> List[Dict[str, Any]]:
    """Merge each provider's ``pricing_defaults`` into its models."""

    defaults_by_provider = {
        provider["id"]: provider["pricing_defaults"]
        for provider in providers
        if provider.get("pricing_defaults")
    }
    result: List[Dict[str, Any]] = []
    for model in models:
        updated = dict(model)
        defaults = defaults_by_provider.get(model["provider"])
        if defaults:
            pricing = model.get("pricing")
            if pricing:
                updated["pricing"] = merge_pricing(defaults, pricing)
            else:
                updated["pricing"] = copy.deepcopy(dict(defaults))
        result.append(updated)
    return result


__all__ = [
    "DEFAULT_CURRENCY",
    "apply_cost_components",
    "apply_provider_defaults",
    "cost_components",
    "merge_pricing",
]
