"""Capability-based model selection.

Capabilities are addressed by short names that map to fixed paths inside a
model's ``capabilities`` record. A model matches when every ``require`` entry
holds and no ``forbid`` entry does. Candidates are produced in a
deterministic order: preferred providers first (in the given order), then the
remaining providers by id; models by id within a provider.

Examples:
    >>> from modeldb.catalog.snapshot import Snapshot
    >>> from modeldb.catalog.schemas import Model
    >>> snap = Snapshot.build([], [
    ...     Model(id="a1", provider="a", capabilities={"tools": {"enabled": True}}),
    ...     Model(id="b1", provider="b", capabilities={"tools": {"enabled": True}}),
    ... ])
    >>> select(snap, require=["chat", "tools"], prefer=["b", "a"])
    ('b', 'b1')
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from modeldb._internal.exceptions import BadProviderError, InvalidArgumentError
from modeldb.catalog.canonical import normalize_provider_id
from modeldb.catalog.schemas import Model
from modeldb.catalog.snapshot import Snapshot
from modeldb.catalog.types import ModelKeyTuple

# Attribute paths into ``Model.capabilities``.
CAPABILITY_PATHS: Dict[str, Tuple[str, ...]] = {
    "chat": ("chat",),
    "embeddings": ("embeddings",),
    "reasoning": ("reasoning", "enabled"),
    "tools": ("tools", "enabled"),
    "tools_streaming": ("tools", "streaming"),
    "tools_strict": ("tools", "strict"),
    "tools_parallel": ("tools", "parallel"),
    "json_native": ("json_", "native"),
    "json_schema": ("json_", "schema_"),
    "json_strict": ("json_", "strict"),
    "streaming_text": ("streaming", "text"),
    "streaming_tool_calls": ("streaming", "tool_calls"),
}

Requirement = Union[Iterable[str], Mapping[str, Any], None]


def capability_value(model: Model, name: str) -> Any:
    """Read a named capability; ``None`` when the model declares none."""

    path = CAPABILITY_PATHS.get(name)
    if path is None:
        raise InvalidArgumentError(
            f"Unknown capability '{name}'",
            context={"capability": name, "known": sorted(CAPABILITY_PATHS)},
        )
    value: Any = model.capabilities
    for attr in path:
        if value is None:
            return None
        value = getattr(value, attr)
    return value


def _normalize_requirements(spec: Requirement) -> Dict[str, Any]:
    if spec is None:
        return {}
    if isinstance(spec, str):
        spec = [spec]
    if isinstance(spec, Mapping):
        pairs = dict(spec)
    else:
        pairs = {name: True for name in spec}
    for name in pairs:
        if name not in CAPABILITY_PATHS:
            raise InvalidArgumentError(
                f"Unknown capability '{name}'",
                context={"capability": name, "known": sorted(CAPABILITY_PATHS)},
            )
    return pairs


def matches(model: Model, require: Mapping[str, Any], forbid: Mapping[str, Any]) -> bool:
    for name, expected in require.items():
        if capability_value(model, name) != expected:
            return False
    for name, expected in forbid.items():
        if capability_value(model, name) == expected:
            return False
    return True


def _canonical(provider: Any) -> Optional[str]:
    try:
        return normalize_provider_id(provider)
    except BadProviderError:
        return None


def provider_order(
    snapshot: Snapshot, prefer: Sequence[str], scope: Optional[str] = None
) -> List[str]:
    """Providers to scan, in selection order.

    ``prefer`` and ``scope`` accept raw provider ids; malformed ones are
    skipped.
    """
    available = snapshot.models_by_provider
    if scope is not None:
        canonical = _canonical(scope)
        return [canonical] if canonical in available else []
    ordered: List[str] = []
    for provider in map(_canonical, prefer):
        if provider in available and provider not in ordered:
            ordered.append(provider)
    ordered.extend(sorted(p for p in available if p not in ordered))
    return ordered


def candidates(
    snapshot: Snapshot,
    *,
    require: Requirement = None,
    forbid: Requirement = None,
    prefer: Optional[Sequence[str]] = None,
    scope: Optional[str] = None,
) -> Iterator[ModelKeyTuple]:
    """Yield matching ``(provider, id)`` keys lazily, in selection order.

    Raises:
        InvalidArgumentError: ``require`` or ``forbid`` names an unknown
            capability. Raised on creation, before iteration starts.
    """
    required = _normalize_requirements(require)
    forbidden = _normalize_requirements(forbid)
    order = provider_order(snapshot, snapshot.prefer if prefer is None else list(prefer), scope)
    return _iter_candidates(snapshot, order, required, forbidden)


def _iter_candidates(
    snapshot: Snapshot,
    order: Sequence[str],
    required: Mapping[str, Any],
    forbidden: Mapping[str, Any],
) -> Iterator[ModelKeyTuple]:
    for provider in order:
        for model in snapshot.models_by_provider.get(provider, ()):
            if matches(model, required, forbidden):
                yield model.key


def select(
    snapshot: Snapshot,
    *,
    require: Requirement = None,
    forbid: Requirement = None,
    prefer: Optional[Sequence[str]] = None,
    scope: Optional[str] = None,
) -> Optional[ModelKeyTuple]:
    """Return the first matching ``(provider, id)``, or ``None`` when nothing matches."""

    return next(
        candidates(snapshot, require=require, forbid=forbid, prefer=prefer, scope=scope), None
    )


__all__ = [
    "CAPABILITY_PATHS",
    "candidates",
    "capability_value",
    "matches",
    "provider_order",
    "select",
]
