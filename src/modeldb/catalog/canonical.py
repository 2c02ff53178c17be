"""Canonical identity handling for providers and models.

Provider ids are plain validated strings. ``google-vertex`` and
``google_vertex`` name the same provider; the canonical spelling uses
underscores. Build-time (trusted) callers may intern the resulting strings;
runtime callers can pass the closed set of known providers so arbitrary input
never mints a new identifier.

Examples:
    >>> normalize_provider_id("google-vertex")
    'google_vertex'
    >>> normalize_model_identity({"provider": "openai", "id": "gpt-4"})
    ('openai', 'gpt-4')
    >>> normalize_date("2024/01/15")
    '2024-01-15'
"""

from __future__ import annotations

import logging
import re
import sys
from datetime import date
from typing import Any, Collection, Dict, List, Mapping, Optional, Tuple

from modeldb._internal.exceptions import (
    BadModelIdError,
    BadProviderError,
    IdentityError,
    InvalidModelError,
    MissingIdError,
    MissingProviderError,
    UnknownProviderError,
)

logger = logging.getLogger(__name__)

_PROVIDER_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_-]{0,254}$")
_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")

ModelKeyTuple = Tuple[str, str]


def normalize_provider_id(
    value: Any,
    *,
    known: Optional[Collection[str]] = None,
    trusted: bool = False,
) -> str:
    """Return the canonical provider id for ``value``.

    Args:
        value: Raw provider identifier.
        known: Closed set of canonical ids accepted at runtime. When given,
            ids outside the set raise :class:`UnknownProviderError`.
        trusted: Build-time caller; the result is interned.

    Raises:
        BadProviderError: ``value`` is not a string of the allowed shape.
        UnknownProviderError: ``known`` was given and does not contain the id.
    """
    if not isinstance(value, str) or not _PROVIDER_PATTERN.match(value):
        raise BadProviderError(
            "Invalid provider id",
            context={"value": _preview(value), "value_type": type(value).__name__},
        )
    canonical = value.replace("-", "_")
    if known is not None and canonical not in known:
        raise UnknownProviderError("Unknown provider", context={"provider": canonical})
    if trusted:
        canonical = sys.intern(canonical)
    return canonical


def normalize_model_identity(
    record: Any,
    *,
    known: Optional[Collection[str]] = None,
    trusted: bool = False,
) -> ModelKeyTuple:
    """Return the ``(provider, id)`` key of a raw model record.

    Raises:
        InvalidModelError: Record is not a mapping or has neither field.
        MissingIdError: ``id`` is absent.
        MissingProviderError: ``provider`` is absent.
        BadModelIdError: ``id`` is not a non-empty string.
        BadProviderError: ``provider`` cannot be canonicalized.
    """
    if not isinstance(record, Mapping):
        raise InvalidModelError(
            "Model record must be a mapping", context={"value_type": type(record).__name__}
        )
    has_id = record.get("id") is not None
    has_provider = record.get("provider") is not None
    if not has_id and not has_provider:
        raise InvalidModelError("Model record has neither id nor provider")
    if not has_id:
        raise MissingIdError("Model record is missing id", context={"provider": record.get("provider")})
    if not has_provider:
        raise MissingProviderError("Model record is missing provider", context={"id": record.get("id")})

    model_id = record["id"]
    if not isinstance(model_id, str) or not model_id:
        raise BadModelIdError(
            "Model id must be a non-empty string",
            context={"value": _preview(model_id), "value_type": type(model_id).__name__},
        )
    provider = normalize_provider_id(record["provider"], known=known, trusted=trusted)
    return provider, model_id


def normalize_date(value: Any) -> Any:
    """Normalize ``YYYY/MM/DD`` style dates to ``YYYY-MM-DD``.

    Values that do not parse as a calendar date are returned unchanged.
    """
    if not isinstance(value, str) or not value:
        return value
    match = _DATE_PATTERN.match(value.replace("/", "-"))
    if not match:
        return value
    try:
        parsed = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return value
    return parsed.isoformat()


def normalize_modalities(modalities: Any) -> Any:
    """Lowercase and strip modality names; non-list values pass through."""

    if not isinstance(modalities, Mapping):
        return modalities
    normalized: Dict[str, Any] = {}
    for direction, values in modalities.items():
        if isinstance(values, (list, tuple)):
            normalized[direction] = [
                v.strip().lower() if isinstance(v, str) else v for v in values
            ]
        else:
            normalized[direction] = values
    return normalized


def normalize_providers(records: List[Mapping[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    """Canonicalize provider ids of one layer.

    Returns:
        ``(records, dropped)`` where ``dropped`` counts records whose id could
        not be canonicalized.
    """
    normalized: List[Dict[str, Any]] = []
    dropped = 0
    for record in records:
        if not isinstance(record, Mapping):
            dropped += 1
            continue
        try:
            provider_id = normalize_provider_id(record.get("id"), trusted=True)
        except BadProviderError as exc:
            logger.warning("Dropping provider record: %s", exc)
            dropped += 1
            continue
        item = dict(record)
        item["id"] = provider_id
        normalized.append(item)
    return normalized, dropped


def normalize_models(records: List[Mapping[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    """Canonicalize identity, dates and modalities of one layer's models.

    Returns:
        ``(records, dropped)``; records with malformed identity are dropped.
    """
    normalized: List[Dict[str, Any]] = []
    dropped = 0
    for record in records:
        try:
            provider, model_id = normalize_model_identity(record, trusted=True)
        except IdentityError as exc:
            logger.warning("Dropping model record: %s", exc)
            dropped += 1
            continue
        item = dict(record)
        item["provider"] = provider
        item["id"] = model_id
        for field in ("release_date", "last_updated"):
            if field in item:
                item[field] = normalize_date(item[field])
        if "modalities" in item:
            item["modalities"] = normalize_modalities(item["modalities"])
        normalized.append(item)
    return normalized, dropped


def _preview(value: Any, limit: int = 64) -> Any:
    if isinstance(value, str) and len(value) > limit:
        return value[:limit] + "..."
    return value


__all__ = [
    "ModelKeyTuple",
    "normalize_date",
    "normalize_modalities",
    "normalize_model_identity",
    "normalize_models",
    "normalize_provider_id",
    "normalize_providers",
]
