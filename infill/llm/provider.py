"""
Completion provider protocol definition.

WHAT: Abstract interface for fill-in-middle completion providers
WHY: Decouple the completion engine from specific backend implementations
HOW: Protocol with construction by nickname, async lifecycle, codec and invoke
"""

from typing import TYPE_CHECKING, ClassVar, Literal, Protocol, TypeVar

from pydantic import ValidationError

from .types import InvokeOptions, ModelConfig
from ..core.store import ModelConfigStore, get_model_store
from ..utils.exceptions import ConfigNotFoundError, InvalidConfigError

if TYPE_CHECKING:
    from .prompter import Prompter
    from .tokenizer_cache import TokenizerCache

ConfigT = TypeVar("ConfigT", bound=ModelConfig)


def load_model_config(
    nickname: str,
    config_cls: type[ConfigT],
    provider_id: str,
    store: ModelConfigStore | None = None,
) -> ConfigT:
    """
    Read and validate the stored config for nickname.

    A record stored by a different provider counts as absent.

    Raises:
        ConfigNotFoundError: No record for nickname, or one for another provider
        InvalidConfigError: Record is missing fields or has invalid values
    """
    record = (store or get_model_store()).get(nickname)
    if record is None or record.get("providerId") != provider_id:
        raise ConfigNotFoundError(nickname, provider_id)
    try:
        return config_cls.from_record(record)
    except ValidationError as e:
        raise InvalidConfigError(
            nickname, provider_id, e.errors(include_url=False, include_context=False, include_input=False)
        ) from e


class CompletionModelProvider(Protocol):
    """Protocol defining the interface all completion providers must implement."""

    provider_name: ClassVar[str]
    provider_id: ClassVar[str]
    provider_type: ClassVar[Literal["completion"]]

    nickname: str
    config: ModelConfig

    def __init__(
        self,
        nickname: str,
        *,
        store: ModelConfigStore | None = None,
        tokenizers: "TokenizerCache | None" = None,
    ) -> None:
        """Load the stored config for nickname; raise ConfigNotFoundError if absent."""
        ...

    async def initialize(self) -> None:
        """Prepare resources needed before the first encode/decode/invoke."""
        ...

    async def encode(self, text: str) -> list[int]:
        """Convert text to token ids."""
        ...

    async def decode(self, tokens: list[int]) -> str:
        """Convert token ids back to text."""
        ...

    async def invoke(self, options: InvokeOptions) -> str:
        """Generate the text between options.messages.prefix and suffix."""
        ...

    @classmethod
    async def configure(
        cls,
        nickname: str,
        *,
        prompter: "Prompter",
        store: ModelConfigStore | None = None,
        tokenizers: "TokenizerCache | None" = None,
    ) -> ModelConfig:
        """Interactively create and persist a config for nickname."""
        ...
