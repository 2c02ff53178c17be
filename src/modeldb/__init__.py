"""modeldb - a validated, queryable catalog of LLM providers and models.

Metadata from several sources (a packaged snapshot, local TOML/YAML files,
a models.dev cache, configuration overrides) is merged under explicit
precedence rules, filtered by allow/deny policy, and published as an
immutable snapshot that any number of threads can query.

Examples:
    >>> import modeldb
    >>> modeldb.load()                                     # doctest: +SKIP
    >>> modeldb.select(require=["chat", "tools"], prefer=["anthropic"])  # doctest: +SKIP
    ('anthropic', 'claude-3-5-sonnet-20241022')
"""

from modeldb._internal.exceptions import (
    CatalogNotLoadedError,
    ConfigError,
    EmptyCatalogError,
    InvalidArgumentError,
    InvalidSpecError,
    ModelDBError,
    ModelNotFoundError,
    SourceError,
    StaleEpochError,
)
from modeldb.api import (
    allowed,
    apply,
    candidates,
    capabilities,
    epoch,
    format_spec,
    load,
    model,
    models,
    parse_spec,
    provider,
    providers,
    reload,
    select,
    snapshot,
)
from modeldb.catalog.schemas import Capabilities, Model, Provider
from modeldb.catalog.snapshot import Snapshot

__version__ = "0.3.0"

__all__ = [
    "CatalogNotLoadedError",
    "Capabilities",
    "ConfigError",
    "EmptyCatalogError",
    "InvalidArgumentError",
    "InvalidSpecError",
    "Model",
    "ModelDBError",
    "ModelNotFoundError",
    "Provider",
    "Snapshot",
    "SourceError",
    "StaleEpochError",
    "allowed",
    "apply",
    "candidates",
    "capabilities",
    "epoch",
    "format_spec",
    "load",
    "model",
    "models",
    "parse_spec",
    "provider",
    "providers",
    "reload",
    "select",
    "snapshot",
]
