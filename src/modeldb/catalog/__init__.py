"""Catalog pipeline: canonicalize, validate, merge, enrich, filter, index.

The submodules are usable on their own; this package re-exports the pieces
most callers need.
"""

from modeldb.catalog.engine import LoadOptions, build_document, run
from modeldb.catalog.filters import ALL, CompiledFilters, compile_filters
from modeldb.catalog.model_spec import format_spec, parse_spec
from modeldb.catalog.runtime import apply_overrides
from modeldb.catalog.schemas import Capabilities, Model, Provider
from modeldb.catalog.selector import candidates, select
from modeldb.catalog.snapshot import Snapshot, read_document, to_document, write_document
from modeldb.catalog.store import SnapshotStore, get_store
from modeldb.catalog.types import Layer

__all__ = [
    "ALL",
    "Capabilities",
    "CompiledFilters",
    "Layer",
    "LoadOptions",
    "Model",
    "Provider",
    "Snapshot",
    "SnapshotStore",
    "apply_overrides",
    "build_document",
    "candidates",
    "compile_filters",
    "format_spec",
    "get_store",
    "parse_spec",
    "read_document",
    "run",
    "select",
    "to_document",
    "write_document",
]
