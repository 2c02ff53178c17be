"""Structural schemas for providers and models.

The schemas serve two purposes. During ingest they validate each record of a
layer (see :mod:`modeldb.catalog.validate`), and at the end of a pipeline run
they materialize the frozen records stored in a snapshot, filling in the
capability defaults.

Unknown top-level keys never fail validation; they are folded into the
free-form ``extra`` mapping so no source data is silently lost.

Examples:
    >>> m = Model.model_validate({"id": "gpt-4o", "provider": "openai", "foo": 1})
    >>> m.extra
    {'foo': 1}
    >>> Model.model_validate({"id": "x", "provider": "p", "capabilities": {}}).capabilities.chat
    True
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Modality = Literal["text", "image", "audio", "video", "code", "document", "embedding", "pdf"]

PricingKind = Literal["token", "image", "request", "audio", "storage", "tool", "other"]
PricingMerge = Literal["replace", "merge_by_id"]


class _Record(BaseModel):
    """Base for nested value objects: frozen, unknown keys ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class _OpenRecord(BaseModel):
    """Base for top-level records; unknown keys are moved into ``extra``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    extra: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_extra(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = set()
        for name, field in cls.model_fields.items():
            known.add(name)
            if field.alias:
                known.add(field.alias)
        unknown = {key: value for key, value in data.items() if key not in known}
        if not unknown:
            return data
        cleaned = {key: value for key, value in data.items() if key in known}
        extra = dict(cleaned.get("extra") or {})
        extra.update(unknown)
        cleaned["extra"] = extra
        return cleaned


class Limits(_Record):
    context: Optional[int] = Field(default=None, ge=1)
    output: Optional[int] = Field(default=None, ge=1)


class Cost(_Record):
    """Legacy per-million-token (or per-unit) rates."""

    input: Optional[float] = None
    output: Optional[float] = None
    request: Optional[float] = None
    cache_read: Optional[float] = None
    cache_write: Optional[float] = None
    training: Optional[float] = None
    reasoning: Optional[float] = None
    image: Optional[float] = None
    audio: Optional[float] = None


class PricingComponent(BaseModel):
    """One billable dimension; keeps any additional descriptive keys."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(min_length=1)
    kind: Optional[PricingKind] = None
    unit: Optional[str] = None
    per: Optional[int] = Field(default=None, ge=1)
    rate: Optional[float] = None


class Pricing(_Record):
    currency: Optional[str] = None
    components: List[PricingComponent] = Field(default_factory=list)
    merge: Optional[PricingMerge] = None


class Modalities(_Record):
    input: Optional[List[Modality]] = None
    output: Optional[List[Modality]] = None


class ReasoningCapability(_Record):
    enabled: bool = False
    token_budget: Optional[int] = Field(default=None, ge=0)


class ToolsCapability(_Record):
    enabled: bool = False
    streaming: bool = False
    strict: bool = False
    parallel: bool = False


class JsonCapability(_Record):
    native: bool = False
    schema_: bool = Field(default=False, alias="schema")
    strict: bool = False


class StreamingCapability(_Record):
    text: bool = True
    tool_calls: bool = False


class Capabilities(_Record):
    chat: bool = True
    embeddings: bool = False
    reasoning: ReasoningCapability = Field(default_factory=ReasoningCapability)
    tools: ToolsCapability = Field(default_factory=ToolsCapability)
    json_: JsonCapability = Field(default_factory=JsonCapability, alias="json")
    streaming: StreamingCapability = Field(default_factory=StreamingCapability)


class Provider(_OpenRecord):
    """A model vendor or hosting endpoint."""

    id: str = Field(min_length=1)
    name: Optional[str] = None
    base_url: Optional[str] = None
    env: Optional[List[str]] = None
    doc: Optional[str] = None
    exclude_models: Optional[List[Annotated[str, Field(min_length=1)]]] = None
    pricing_defaults: Optional[Pricing] = None
    alias_of: Optional[str] = None


class Model(_OpenRecord):
    """A single model offered by a provider, keyed by ``(provider, id)``."""

    id: str = Field(min_length=1)
    provider: str = Field(min_length=1)
    provider_model_id: Optional[str] = None
    name: Optional[str] = None
    family: Optional[str] = None
    release_date: Optional[str] = None
    last_updated: Optional[str] = None
    knowledge: Optional[str] = None
    limits: Optional[Limits] = None
    cost: Optional[Cost] = None
    pricing: Optional[Pricing] = None
    modalities: Optional[Modalities] = None
    capabilities: Optional[Capabilities] = None
    tags: Optional[List[str]] = None
    deprecated: bool = False
    aliases: List[str] = Field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.provider, self.id)


def dump_record(
    record: BaseModel, *, exclude_unset: bool = False, exclude_none: bool = True
) -> Dict[str, Any]:
    """Serialize a schema record into plain JSON-compatible data."""

    return record.model_dump(
        mode="json", by_alias=True, exclude_unset=exclude_unset, exclude_none=exclude_none
    )


__all__ = [
    "Capabilities",
    "Cost",
    "JsonCapability",
    "Limits",
    "Modalities",
    "Modality",
    "Model",
    "Pricing",
    "PricingComponent",
    "Provider",
    "ReasoningCapability",
    "StreamingCapability",
    "ToolsCapability",
    "dump_record",
]
