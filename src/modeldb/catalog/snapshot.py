"""Immutable catalog snapshots.

A :class:`Snapshot` is the product of one successful pipeline run: indexed
providers and models, the filters and preference order that shaped it, and the
unfiltered model set so policy can be re-applied without re-running sources.
Snapshots are never mutated; the store swaps whole snapshots.

Examples:
    >>> snap = Snapshot.build([], [Model(id="gpt-4o", provider="openai", aliases=["4o"])])
    >>> snap.model("openai", "4o").id
    'gpt-4o'
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from modeldb._internal.exceptions import SourceError
from modeldb.catalog.filters import CompiledFilters
from modeldb.catalog.index import CatalogIndex, build_index
from modeldb.catalog.schemas import Model, Provider, dump_record
from modeldb.catalog.types import ModelKeyTuple

DOCUMENT_VERSION = 2


def utc_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Snapshot:
    """Versioned, read-only view of the catalog."""

    providers_by_id: Mapping[str, Provider]
    models_by_key: Mapping[ModelKeyTuple, Model]
    models_by_provider: Mapping[str, Tuple[Model, ...]]
    aliases_by_key: Mapping[ModelKeyTuple, str]
    filters: CompiledFilters = field(default_factory=CompiledFilters)
    prefer: Tuple[str, ...] = ()
    base_models: Tuple[Model, ...] = ()
    generated_at: str = ""
    digest: str = ""
    epoch: int = 0

    @classmethod
    def build(
        cls,
        providers: Sequence[Provider],
        models: Sequence[Model],
        *,
        base_models: Optional[Sequence[Model]] = None,
        filters: Optional[CompiledFilters] = None,
        prefer: Iterable[str] = (),
        generated_at: Optional[str] = None,
    ) -> "Snapshot":
        """Index ``providers``/``models`` into a new, unpublished snapshot."""

        index: CatalogIndex = build_index(providers, models)
        snapshot = cls(
            providers_by_id=index.providers_by_id,
            models_by_key=index.models_by_key,
            models_by_provider=index.models_by_provider,
            aliases_by_key=index.aliases_by_key,
            filters=filters or CompiledFilters(),
            prefer=tuple(prefer),
            base_models=tuple(models if base_models is None else base_models),
            generated_at=generated_at or utc_now(),
        )
        return dataclasses.replace(snapshot, digest=document_digest(to_document(snapshot)))

    def with_epoch(self, epoch: int) -> "Snapshot":
        return dataclasses.replace(self, epoch=epoch)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def providers(self) -> List[Provider]:
        return list(self.providers_by_id.values())

    def provider(self, provider_id: str) -> Optional[Provider]:
        return self.providers_by_id.get(provider_id)

    def models(self, provider: Optional[str] = None) -> List[Model]:
        """Visible models, ordered by provider then id."""

        if provider is not None:
            return list(self.models_by_provider.get(provider, ()))
        return [model for group in self.models_by_provider.values() for model in group]

    def resolve(self, provider: str, model_id: str) -> Optional[ModelKeyTuple]:
        """Return the canonical key for a model id or alias."""

        if (provider, model_id) in self.models_by_key:
            return (provider, model_id)
        canonical = self.aliases_by_key.get((provider, model_id))
        if canonical is None:
            return None
        return (provider, canonical)

    def model(self, provider: str, model_id: str) -> Optional[Model]:
        key = self.resolve(provider, model_id)
        if key is None:
            return None
        return self.models_by_key[key]

    def __len__(self) -> int:
        return len(self.models_by_key)


def to_document(snapshot: Snapshot) -> Dict[str, Any]:
    """Serialize the visible part of ``snapshot`` into the persisted shape."""

    return build_document_from(
        snapshot.providers_by_id.values(),
        snapshot.models_by_key.values(),
        generated_at=snapshot.generated_at,
    )


def build_document_from(
    providers: Iterable[Provider],
    models: Iterable[Model],
    *,
    generated_at: Optional[str] = None,
) -> Dict[str, Any]:
    """Build ``{version, generated_at, providers: {id: {..., models: {id: ...}}}}``."""

    sections: Dict[str, Dict[str, Any]] = {}
    for provider in sorted(providers, key=lambda p: p.id):
        entry = dump_record(provider)
        entry["models"] = {}
        sections[provider.id] = entry
    for model in sorted(models, key=lambda m: (m.provider, m.id)):
        section = sections.setdefault(model.provider, {"id": model.provider, "extra": {}, "models": {}})
        section["models"][model.id] = dump_record(model)
    return {
        "version": DOCUMENT_VERSION,
        "generated_at": generated_at or utc_now(),
        "providers": sections,
    }


def document_digest(document: Mapping[str, Any]) -> str:
    """Stable content hash of a document's providers section."""

    payload = json.dumps(document.get("providers", {}), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def write_document(document: Mapping[str, Any], path: Union[str, Path]) -> Path:
    """Write ``document`` as sorted, indented JSON, replacing ``path`` atomically."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(target.name + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, sort_keys=True)
        f.write("\n")
    os.replace(tmp, target)
    return target


def read_document(path: Union[str, Path]) -> Dict[str, Any]:
    """Read a persisted document.

    Raises:
        SourceError: The file is missing, is not JSON, or has the wrong shape.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except FileNotFoundError as exc:
        raise SourceError("Snapshot document not found", context={"path": str(path)}) from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise SourceError(f"Cannot read snapshot document: {exc}", context={"path": str(path)}) from exc
    if not isinstance(document, dict) or not isinstance(document.get("providers"), dict):
        raise SourceError("Snapshot document has no providers mapping", context={"path": str(path)})
    version = document.get("version", DOCUMENT_VERSION)
    if version != DOCUMENT_VERSION:
        raise SourceError(
            "Unsupported snapshot document version",
            context={"path": str(path), "version": version},
        )
    return document


__all__ = [
    "DOCUMENT_VERSION",
    "Snapshot",
    "build_document_from",
    "document_digest",
    "read_document",
    "to_document",
    "utc_now",
    "write_document",
]
