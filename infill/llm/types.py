"""
Completion provider types.

WHAT: Model configuration records and the invocation request shape
WHY: Ensure consistent contracts across all completion providers
HOW: Frozen pydantic models for persisted configs, dataclasses for per-call values
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from .cancellation import CancellationSignal


class ModelConfig(BaseModel):
    """
    Persisted model configuration.

    Serialized with camelCase keys (providerId, contextWindow, ...). Unknown
    keys are kept so a record written by a newer provider survives a
    round trip through an older one.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    nickname: str
    provider_id: str
    model: str = ""
    context_window: int = Field(gt=0)

    @classmethod
    def from_record(cls, record: dict[str, Any]):
        return cls.model_validate(record)

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class LlamaCppModelConfig(ModelConfig):
    base_url: str


class DeepSeekModelConfig(ModelConfig):
    base_url: str
    api_key: str = Field(repr=False)


class OllamaModelConfig(ModelConfig):
    base_url: str


@dataclass(frozen=True)
class InfillMessages:
    """Text before and after the cursor."""
    prefix: str
    suffix: str = ""


@dataclass
class InvokeOptions:
    """One fill-in-middle completion request."""
    messages: InfillMessages
    max_tokens: int | None = None
    stop: list[str] = field(default_factory=list)
    temperature: float | None = None
    signal: "CancellationSignal | None" = None
