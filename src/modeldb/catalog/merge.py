"""Layered merge of providers and models.

Layers are folded left to right; a later layer overrides an earlier one
field by field:

* scalars (and ``None``) from the override win outright;
* nested mappings are merged recursively, keeping untouched base keys;
* the accumulating lists (``aliases``, ``tags``, ``modalities.input`` and
  ``modalities.output``) are unioned, base order first, duplicates removed;
* every other list, and any shape mismatch, takes the override wholesale.

After folding, each provider's ``exclude_models`` table drops matching model
ids from that provider.

Examples:
    >>> base = {"id": "m", "cost": {"input": 1.0, "output": 2.0}, "tags": ["a"]}
    >>> deep_merge(base, {"cost": {"input": 0.5}, "tags": ["b", "a"]})
    {'id': 'm', 'cost': {'input': 0.5, 'output': 2.0}, 'tags': ['a', 'b']}
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from modeldb.catalog.patterns import compile_patterns, matches_any
from modeldb.catalog.types import Layer, MergeResult

logger = logging.getLogger(__name__)

ACCUMULATING_PATHS = frozenset(
    {
        ("aliases",),
        ("tags",),
        ("modalities", "input"),
        ("modalities", "output"),
    }
)


def deep_merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
    _path: Tuple[str, ...] = (),
) -> Dict[str, Any]:
    """Merge ``override`` onto ``base`` without mutating either."""

    result: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        path = _path + (key,)
        existing = result.get(key)
        if key not in result:
            result[key] = copy.deepcopy(value)
        elif isinstance(existing, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(existing, value, path)
        elif path in ACCUMULATING_PATHS and _is_list(existing) and _is_list(value):
            result[key] = union_unique(existing, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def union_unique(base: Sequence[Any], extra: Sequence[Any]) -> List[Any]:
    """Concatenate and de-duplicate, preserving first-seen order."""

    seen: List[Any] = []
    for item in list(base) + list(extra):
        if item not in seen:
            seen.append(item)
    return seen


def merge_list_by_id(
    base: Sequence[Mapping[str, Any]], override: Sequence[Mapping[str, Any]]
) -> List[Dict[str, Any]]:
    """Merge two lists of ``{"id": ...}`` maps.

    Base order is kept; base items whose id appears in ``override`` are
    replaced by the override item, and override-only items are appended.
    """
    replacements = {item.get("id"): item for item in override}
    merged: List[Dict[str, Any]] = []
    used = set()
    for item in base:
        item_id = item.get("id")
        if item_id in replacements:
            merged.append(dict(replacements[item_id]))
            used.add(item_id)
        else:
            merged.append(dict(item))
    for item in override:
        if item.get("id") not in used:
            merged.append(dict(item))
            used.add(item.get("id"))
    return merged


def merge_providers(layers: Iterable[Sequence[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    merged: Dict[str, Dict[str, Any]] = {}
    for records in layers:
        for record in records:
            key = record["id"]
            if key in merged:
                merged[key] = deep_merge(merged[key], record)
            else:
                merged[key] = copy.deepcopy(dict(record))
    return list(merged.values())


def merge_models(layers: Iterable[Sequence[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
    for records in layers:
        for record in records:
            key = (record["provider"], record["id"])
            if key in merged:
                merged[key] = deep_merge(merged[key], record)
            else:
                merged[key] = copy.deepcopy(dict(record))
    return list(merged.values())


def apply_exclusions(
    providers: Sequence[Mapping[str, Any]], models: Sequence[Dict[str, Any]]
) -> Tuple[List[Dict[str, Any]], int]:
    """Drop models matched by their provider's ``exclude_models`` table."""

    tables = {
        provider["id"]: compile_patterns(provider["exclude_models"])
        for provider in providers
        if provider.get("exclude_models")
    }
    if not tables:
        return list(models), 0

    kept: List[Dict[str, Any]] = []
    excluded = 0
    for model in models:
        patterns = tables.get(model["provider"])
        if patterns and matches_any(model["id"], patterns):
            excluded += 1
            logger.debug("Excluded %s:%s by provider exclude table", model["provider"], model["id"])
            continue
        kept.append(model)
    return kept, excluded


def merge(layers: Sequence[Layer]) -> MergeResult:
    """Fold ``layers`` (lowest precedence first) into one provider/model set."""

    providers = merge_providers(layer.providers for layer in layers)
    models = merge_models(layer.models for layer in layers)
    models, excluded = apply_exclusions(providers, models)
    if excluded:
        logger.info("Provider exclude tables removed %d model(s)", excluded)
    return MergeResult(providers=providers, models=models, excluded=excluded)


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


__all__ = [
    "ACCUMULATING_PATHS",
    "apply_exclusions",
    "deep_merge",
    "merge",
    "merge_list_by_id",
    "merge_models",
    "merge_providers",
    "union_unique",
]
