"""
DeepSeek provider implementation.

WHAT: Fill-in-middle completions from DeepSeek's hosted beta API
WHY: Cloud model when no local inference server is available
HOW: OpenAI-compatible /completions with bearer auth; local tokenizer for the codec
"""

from typing import ClassVar, Literal

from .http import compact, probe, request_json
from .prompter import Prompter, ask_api_key, ask_base_url
from .provider import load_model_config
from .provider_factory import register_provider
from .tokenizer_cache import TokenizerCache, TokenizerHandle, get_tokenizer_cache
from .types import DeepSeekModelConfig, InvokeOptions
from ..core.catalog import lookup
from ..core.store import ModelConfigStore, get_model_store
from ..utils.exceptions import MetadataNotFoundError, ProviderNotInitializedError
from ..utils.logger import get_logger, preview

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.deepseek.com/beta"
DEEPSEEK_MODEL = "deepseek-chat"
HELP_PROMPT = "See https://api-docs.deepseek.com/guides/fim_completion for API access"


def _auth_headers(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


@register_provider
class DeepSeekCompletionModelProvider:
    """DeepSeek completion provider."""

    provider_name: ClassVar[str] = "DeepSeek"
    provider_id: ClassVar[str] = "deepseek-completion"
    provider_type: ClassVar[Literal["completion"]] = "completion"

    def __init__(
        self,
        nickname: str,
        *,
        store: ModelConfigStore | None = None,
        tokenizers: TokenizerCache | None = None,
    ):
        logger.debug(f"Initializing DeepSeekCompletionModelProvider with nickname: {nickname}")
        self.nickname = nickname
        self.config: DeepSeekModelConfig = load_model_config(
            nickname, DeepSeekModelConfig, self.provider_id, store
        )
        self._tokenizers = tokenizers
        self._tokenizer: TokenizerHandle | None = None
        logger.info(f"DeepSeekCompletionModelProvider initialized for {nickname}")

    async def initialize(self) -> None:
        """Acquire the shared tokenizer for the configured model."""
        if self._tokenizer is not None:
            return
        cache = self._tokenizers or get_tokenizer_cache()
        self._tokenizer = await cache.acquire(self.config.model)

    def _require_tokenizer(self) -> TokenizerHandle:
        if self._tokenizer is None:
            raise ProviderNotInitializedError(self.nickname)
        return self._tokenizer

    async def encode(self, text: str) -> list[int]:
        logger.debug(f"Encoding text: {preview(text)}")
        return self._require_tokenizer().encode(text)

    async def decode(self, tokens: list[int]) -> str:
        logger.debug(f"Decoding {len(tokens)} tokens")
        return self._require_tokenizer().decode(tokens)

    async def invoke(self, options: InvokeOptions) -> str:
        """
        Invoke the DeepSeek model with the given options.

        Returns:
            choices[0].text, or "" when the API returned no choice

        Raises:
            BackendError: Non-2xx response
            NetworkError: API not reachable
            CancellationError: options.signal fired
        """
        logger.debug(f"Invoking DeepSeek model: {self.config.model}")

        result = await request_json(
            "POST",
            f"{self.config.base_url}/completions",
            action="invoke DeepSeek model",
            payload=compact({
                "prompt": options.messages.prefix,
                "model": self.config.model,
                "max_tokens": options.max_tokens,
                "stop": options.stop or None,
                "suffix": options.messages.suffix,
                "temperature": options.temperature,
            }),
            headers=_auth_headers(self.config.api_key),
            signal=options.signal,
        )

        choices = result.get("choices") or []
        output = (choices[0].get("text") if choices else None) or ""
        logger.debug(f"Model output: {preview(output)}")
        return output

    @classmethod
    async def configure(
        cls,
        nickname: str,
        *,
        prompter: Prompter,
        store: ModelConfigStore | None = None,
        tokenizers: TokenizerCache | None = None,
    ) -> DeepSeekModelConfig:
        """
        Configure a new DeepSeek model.

        Asks for the API key and base URL, downloads the tokenizer, tests the
        credentials and stores the config. Nothing is stored if any step fails.
        """
        logger.info(f"Configuring DeepSeek model with nickname: {nickname}")
        store = store or get_model_store()
        tokenizers = tokenizers or get_tokenizer_cache()
        existing = store.get(nickname) or {}

        api_key = await ask_api_key(
            prompter,
            provider_name=cls.provider_name,
            current=existing.get("apiKey"),
            placeholder="e.g., sk-...",
            help_prompt=HELP_PROMPT,
        )
        base_url = await ask_base_url(
            prompter,
            provider_name=cls.provider_name,
            current=existing.get("baseUrl"),
            default=DEFAULT_BASE_URL,
            help_prompt=HELP_PROMPT,
        )

        # DeepSeek FIM is only served by deepseek-chat
        model = DEEPSEEK_MODEL

        logger.info(f"Downloading tokenizer for model: {model}")
        await tokenizers.download(model)

        await probe(
            f"{base_url}/completions",
            {"model": model, "max_tokens": 3, "prompt": "How", "suffix": "are you?"},
            headers=_auth_headers(api_key),
        )

        metadata = lookup(model)
        if metadata is None:
            raise MetadataNotFoundError(model)

        config = DeepSeekModelConfig(
            nickname=nickname,
            provider_id=cls.provider_id,
            model=model,
            context_window=metadata.context_window,
            base_url=base_url,
            api_key=api_key,
        )
        logger.info(f"Saving model configuration for: {nickname}")
        await store.set(nickname, config.to_record())
        logger.info(f"Successfully configured DeepSeek model: {nickname}")
        return config
