"""Catalog sources.

Each source turns some external representation into a raw, provider-keyed
layer. Sources do no validation of their own; the pipeline canonicalizes and
validates every layer.
"""

from modeldb.sources.base import RawLayer, Source, group_by_provider
from modeldb.sources.config import ConfigSource
from modeldb.sources.local import LocalSource
from modeldb.sources.packaged import PackagedSource
from modeldb.sources.registry import build_source, build_sources, register_source_type
from modeldb.sources.remote import RemoteSource
from modeldb.sources.runtime import RuntimeSource

__all__ = [
    "ConfigSource",
    "LocalSource",
    "PackagedSource",
    "RawLayer",
    "RemoteSource",
    "RuntimeSource",
    "Source",
    "build_source",
    "build_sources",
    "group_by_provider",
    "register_source_type",
]
