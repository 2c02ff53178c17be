"""Process-level catalog API.

These functions operate on a :class:`~modeldb.catalog.store.SnapshotStore`
(the process-wide default unless ``store=`` is passed). ``load`` builds and
publishes a snapshot; every query reads the current snapshot once, so a
concurrent reload never produces a mixed answer.

Examples:
    >>> import modeldb
    >>> from modeldb.sources import RuntimeSource
    >>> from modeldb.catalog.store import SnapshotStore
    >>> store = SnapshotStore()
    >>> _ = modeldb.load([RuntimeSource(models=[{"provider": "openai", "id": "gpt-4o"}])], store=store)
    >>> modeldb.model("openai:gpt-4o", store=store).id
    'gpt-4o'
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence, Union

from modeldb._internal.exceptions import (
    CatalogNotLoadedError,
    IdentityError,
    InvalidSpecError,
    ModelNotFoundError,
)
from modeldb.catalog import selector
from modeldb.catalog.canonical import normalize_provider_id
from modeldb.catalog.engine import LoadOptions, run_options
from modeldb.catalog.filters import ALL
from modeldb.catalog.model_spec import format_spec, parse_spec
from modeldb.catalog.runtime import apply_overrides
from modeldb.catalog.schemas import Capabilities, Model, Provider
from modeldb.catalog.snapshot import Snapshot
from modeldb.catalog.store import SnapshotStore, get_store
from modeldb.catalog.types import ModelKeyTuple
from modeldb.core.config.loader import load_config
from modeldb.core.config.schema import ModelDBConfig
from modeldb.sources.config import ConfigSource
from modeldb.sources.packaged import PackagedSource
from modeldb.sources.registry import build_sources

logger = logging.getLogger(__name__)

ModelRef = Union[str, ModelKeyTuple]


def options_from_config(config: ModelDBConfig) -> LoadOptions:
    """Translate the ``catalog`` configuration section into load options."""

    catalog = config.catalog
    sources: List[Any] = build_sources(catalog.sources)
    if catalog.custom:
        sources.append(ConfigSource(catalog.custom))
    return LoadOptions(
        sources=tuple(sources),
        allow=catalog.allow,
        deny=catalog.deny,
        prefer=tuple(catalog.prefer),
    )


def _store(store: Optional[SnapshotStore]) -> SnapshotStore:
    return store if store is not None else get_store()


def _current(store: Optional[SnapshotStore]) -> Snapshot:
    snap = _store(store).current()
    if snap is None:
        raise CatalogNotLoadedError("No catalog loaded; call modeldb.load() first")
    return snap


# ----------------------------------------------------------------------
# Lifecycle
# ----------------------------------------------------------------------
def load(
    sources: Optional[Sequence[Any]] = None,
    *,
    allow: Any = ALL,
    deny: Any = None,
    prefer: Sequence[str] = (),
    config: Union[ModelDBConfig, str, Path, None] = None,
    store: Optional[SnapshotStore] = None,
) -> Snapshot:
    """Build the catalog and publish it.

    Args:
        sources: Sources, lowest precedence first. Defaults to the packaged
            snapshot.
        allow: Allow policy (see :func:`modeldb.catalog.filters.compile_filters`).
        deny: Deny policy.
        prefer: Provider ids tried first by :func:`select`.
        config: A :class:`ModelDBConfig` or a path to a YAML file; when given
            it supplies every other option.
        store: Target store; the process-wide store by default.

    Returns:
        The published snapshot, carrying its epoch.

    Raises:
        EmptyCatalogError: Nothing survived merge and filtering. The previous
            snapshot stays current.
        ConfigError: ``config`` is invalid.
    """
    if config is not None:
        if not isinstance(config, ModelDBConfig):
            config = load_config(config)
        options = options_from_config(config)
    else:
        options = LoadOptions(
            sources=tuple(sources) if sources is not None else (PackagedSource(),),
            allow=allow,
            deny=deny,
            prefer=tuple(prefer),
        )
    return _publish(options, _store(store))


def reload(*, store: Optional[SnapshotStore] = None) -> None:
    """Rebuild with the options of the last successful load."""

    target = _store(store)
    options = target.last_options() or LoadOptions(sources=(PackagedSource(),))
    _publish(options, target)


def _publish(options: LoadOptions, store: SnapshotStore) -> Snapshot:
    return store.install(run_options(options), options=options)


def apply(
    *,
    allow: Any = None,
    deny: Any = None,
    prefer: Optional[Sequence[str]] = None,
    store: Optional[SnapshotStore] = None,
) -> Snapshot:
    """Re-filter the current catalog without reloading sources.

    Omitted arguments keep their current values. Passing ``allow`` or
    ``deny`` replaces both (the omitted one falls back to allow-all /
    deny-nothing).

    Raises:
        EmptyCatalogError: The new policy hides every model.
        StaleEpochError: Another writer published in the meantime.
    """
    target = _store(store)
    current = _current(store)
    filters = None
    if allow is not None or deny is not None:
        filters = {"allow": ALL if allow is None else allow, "deny": deny}
    updated = apply_overrides(current, filters, prefer)
    options = target.last_options()
    if options is not None:
        options = dataclasses.replace(
            options,
            allow=updated.filters.allow_spec,
            deny=updated.filters.deny_spec,
            prefer=updated.prefer,
        )
    return target.install(updated, options=options, expected_epoch=current.epoch)


def snapshot(*, store: Optional[SnapshotStore] = None) -> Optional[Snapshot]:
    return _store(store).current()


def epoch(*, store: Optional[SnapshotStore] = None) -> int:
    return _store(store).epoch()


# ----------------------------------------------------------------------
# Lookups
# ----------------------------------------------------------------------
def providers(*, store: Optional[SnapshotStore] = None) -> List[Provider]:
    return _current(store).providers()


def provider(provider_id: str, *, store: Optional[SnapshotStore] = None) -> Optional[Provider]:
    """Return a provider by id; unknown or malformed ids give ``None``."""

    snap = _current(store)
    try:
        canonical = normalize_provider_id(provider_id, known=snap.providers_by_id)
    except IdentityError:
        return None
    return snap.provider(canonical)


def models(provider: Optional[str] = None, *, store: Optional[SnapshotStore] = None) -> List[Model]:
    snap = _current(store)
    if provider is None:
        return snap.models()
    try:
        canonical = normalize_provider_id(provider, known=snap.providers_by_id)
    except IdentityError:
        return []
    return snap.models(canonical)


def _lookup(snap: Snapshot, ref: ModelRef, model_id: Optional[str]) -> Optional[Model]:
    if model_id is not None:
        ref = (ref, model_id)  # type: ignore[assignment]
    try:
        key = parse_spec(ref, known=snap.providers_by_id)
    except InvalidSpecError:
        return None
    return snap.model(*key)


def model(
    ref: ModelRef,
    model_id: Optional[str] = None,
    *,
    store: Optional[SnapshotStore] = None,
) -> Model:
    """Return a model by spec (``"openai:gpt-4o"``) or ``(provider, id)``.

    Aliases resolve to their canonical model.

    Raises:
        ModelNotFoundError: No visible model matches.
    """
    found = _lookup(_current(store), ref, model_id)
    if found is None:
        label = f"{ref}:{model_id}" if model_id is not None else str(ref)
        raise ModelNotFoundError(f"Model '{label}' not found", context={"model": label})
    return found


def allowed(ref: ModelRef, model_id: Optional[str] = None, *, store: Optional[SnapshotStore] = None) -> bool:
    """Whether the model is visible under the current policy."""

    return _lookup(_current(store), ref, model_id) is not None


def capabilities(
    ref: ModelRef, model_id: Optional[str] = None, *, store: Optional[SnapshotStore] = None
) -> Optional[Capabilities]:
    """Capabilities of a visible model; ``None`` when absent or unknown."""

    found = _lookup(_current(store), ref, model_id)
    return found.capabilities if found is not None else None


# ----------------------------------------------------------------------
# Selection
# ----------------------------------------------------------------------
def select(
    *,
    require: Any = None,
    forbid: Any = None,
    prefer: Optional[Sequence[str]] = None,
    scope: Optional[str] = None,
    store: Optional[SnapshotStore] = None,
) -> Optional[ModelKeyTuple]:
    """First matching ``(provider, id)`` or ``None``."""

    return selector.select(
        _current(store), require=require, forbid=forbid, prefer=prefer, scope=scope
    )


def candidates(
    *,
    require: Any = None,
    forbid: Any = None,
    prefer: Optional[Sequence[str]] = None,
    scope: Optional[str] = None,
    store: Optional[SnapshotStore] = None,
) -> Iterator[ModelKeyTuple]:
    return selector.candidates(
        _current(store), require=require, forbid=forbid, prefer=prefer, scope=scope
    )


__all__ = [
    "allowed",
    "apply",
    "candidates",
    "capabilities",
    "epoch",
    "format_spec",
    "load",
    "model",
    "models",
    "options_from_config",
    "parse_spec",
    "provider",
    "providers",
    "reload",
    "select",
    "snapshot",
]
