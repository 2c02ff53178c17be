"""Configuration schema module.

The schemas are minimal but extensible through Pydantic: unknown keys are
kept so applications can store their own settings next to modeldb's.
"""

from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field, field_validator


class CatalogConfig(BaseModel):
    """Which sources to load and which models to expose.

    Attributes:
        sources: Ordered source entries, lowest precedence first. Each entry
            is ``{"type": <registered type>, ...factory options}``.
        custom: Provider-keyed overrides applied after every source.
        allow: ``"all"``, a list of provider ids, or a provider -> patterns
            mapping.
        deny: A list of provider ids or a provider -> patterns mapping.
        prefer: Provider ids tried first during selection.
    """

    sources: List[Dict[str, Any]] = Field(default_factory=lambda: [{"type": "packaged"}])
    custom: Dict[str, Any] = Field(default_factory=dict)
    allow: Union[str, List[str], Dict[str, Any]] = "all"
    deny: Union[List[str], Dict[str, Any]] = Field(default_factory=dict)
    prefer: List[str] = Field(default_factory=list)

    # Allow arbitrary extension
    model_config = {"extra": "allow"}

    @field_validator("prefer", mode="before")
    @classmethod
    def _split_prefer(cls, value: Any) -> Any:
        # Environment overrides arrive as "openai,anthropic".
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("allow")
    @classmethod
    def _check_allow(cls, value: Any) -> Any:
        if isinstance(value, str) and value != "all":
            raise ValueError("allow must be 'all', a list of providers, or a mapping")
        return value


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Level of the ``modeldb`` logger (DEBUG, INFO, WARNING, ...).
        components: Per-component levels, e.g. ``{"sources": "ERROR"}``.
    """

    level: str = "WARNING"
    components: Dict[str, str] = Field(default_factory=dict)

    # Allow arbitrary extension
    model_config = {"extra": "allow"}


class ModelDBConfig(BaseModel):
    """Root configuration.

    Attributes:
        catalog: Catalog sources and policy.
        logging: Logging configuration.
    """

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Allow arbitrary extension
    model_config = {"extra": "allow"}
