"""modeldb configuration system.

Configuration comes from a YAML file and ``MODELDB_*`` environment variables,
with ``${VAR}`` substitution and validation through Pydantic.

Example usage:
```python
from modeldb.core.config import load_config

config = load_config("modeldb.yaml")
config.catalog.prefer          # ["anthropic", "openai"]
config.logging.level           # "INFO"
```
"""

from modeldb._internal.exceptions import ConfigError
from modeldb.core.config.loader import load_config, load_from_env, merge_dicts, resolve_env_vars
from modeldb.core.config.schema import CatalogConfig, LoggingConfig, ModelDBConfig

__all__ = [
    "CatalogConfig",
    "ConfigError",
    "LoggingConfig",
    "ModelDBConfig",
    "load_config",
    "load_from_env",
    "merge_dicts",
    "resolve_env_vars",
]
