"""
Ollama provider implementation.

WHAT: Fill-in-middle completions from a local Ollama server
WHY: Local inference with several models hosted side by side
HOW: /api/generate with prompt + suffix, /api/tags to list models, local tokenizer
"""

from typing import ClassVar, Literal

from .http import compact, probe, request_json
from .prompter import Prompter, ask_base_url
from .provider import load_model_config
from .provider_factory import register_provider
from .tokenizer_cache import TokenizerCache, TokenizerHandle, get_tokenizer_cache
from .types import InvokeOptions, OllamaModelConfig
from ..core.catalog import lookup
from ..core.config import settings
from ..core.store import ModelConfigStore, get_model_store
from ..utils.exceptions import NoModelsFoundError, ProviderNotInitializedError, UserCancelledError
from ..utils.logger import get_logger, preview

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
FALLBACK_CONTEXT_WINDOW = 4096
HELP_PROMPT = "See https://github.com/ollama/ollama/blob/main/docs/api.md for server setup"


async def list_models(base_url: str) -> list[str]:
    """
    Names of the models installed on an Ollama server.

    Raises:
        BackendError: Non-2xx response
        NetworkError: Server not reachable
    """
    data = await request_json("GET", f"{base_url}/api/tags", action="fetch models")
    return [m["name"] for m in data.get("models") or [] if m.get("name")]


@register_provider
class OllamaCompletionModelProvider:
    """Ollama completion provider."""

    provider_name: ClassVar[str] = "Ollama"
    provider_id: ClassVar[str] = "ollama-completion"
    provider_type: ClassVar[Literal["completion"]] = "completion"

    def __init__(
        self,
        nickname: str,
        *,
        store: ModelConfigStore | None = None,
        tokenizers: TokenizerCache | None = None,
    ):
        logger.info(f"Initializing OllamaCompletionModelProvider with nickname: {nickname}")
        self.nickname = nickname
        self.config: OllamaModelConfig = load_model_config(
            nickname, OllamaModelConfig, self.provider_id, store
        )
        self._tokenizers = tokenizers
        self._tokenizer: TokenizerHandle | None = None
        logger.debug(f"OllamaCompletionModelProvider initialized for {nickname}")

    async def initialize(self) -> None:
        """Set up the tokenizer for the configured model."""
        if self._tokenizer is not None:
            return
        logger.debug(f"Initializing tokenizer for model: {self.config.model}")
        cache = self._tokenizers or get_tokenizer_cache()
        self._tokenizer = await cache.acquire(self.config.model)
        logger.info(f"Tokenizer initialized for model: {self.config.model}")

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
        Invoke the Ollama model to generate text.

        Returns:
            The `response` field, "" when absent

        Raises:
            BackendError: Non-2xx response
            NetworkError: Server not reachable
            CancellationError: options.signal fired
        """
        logger.debug("Invoking Ollama completion model")
        messages = options.messages
        max_tokens = options.max_tokens if options.max_tokens is not None else settings.DEFAULT_MAX_TOKENS

        data = await request_json(
            "POST",
            f"{self.config.base_url}/api/generate",
            action="invoke Ollama model",
            payload=compact({
                "model": self.config.model,
                "prompt": messages.prefix,
                "options": {"num_predict": max_tokens},
                "suffix": messages.suffix or None,
                "stream": False,
            }),
            signal=options.signal,
        )

        eval_count = data.get("eval_count")
        eval_duration = data.get("eval_duration")
        if eval_count is not None and eval_duration is not None:
            # nanoseconds -> milliseconds
            duration_ms = eval_duration / 1_000_000
            logger.debug(f"Generation stats: {eval_count} tokens in {duration_ms:.2f}ms")

        output = data.get("response") or ""
        logger.debug(f"Response: {preview(output)}")
        return output

    @classmethod
    async def configure(
        cls,
        nickname: str,
        *,
        prompter: Prompter,
        store: ModelConfigStore | None = None,
        tokenizers: TokenizerCache | None = None,
    ) -> OllamaModelConfig:
        """
        Configure an Ollama model.

        Only models with catalog metadata are offered, since the provider needs
        a tokenizer for the selected model.

        Raises:
            UserCancelledError: A prompt was dismissed
            NoModelsFoundError: No installed model is known to the catalog
            ConnectivityTestFailedError: Test generation failed
        """
        logger.info(f"Configuring Ollama model with nickname: {nickname}")
        store = store or get_model_store()
        tokenizers = tokenizers or get_tokenizer_cache()
        existing = store.get(nickname) or {}

        base_url = await ask_base_url(
            prompter,
            provider_name=cls.provider_name,
            current=existing.get("baseUrl"),
            default=DEFAULT_BASE_URL,
            help_prompt=HELP_PROMPT,
        )

        installed = await list_models(base_url)

        context_windows: dict[str, int] = {}
        for name in installed:
            logger.debug(f"Checking model configuration for: {name}")
            metadata = lookup(name)
            if metadata is not None:
                context_windows[name] = metadata.context_window

        if not context_windows:
            raise NoModelsFoundError(base_url, installed)

        model = await prompter.quick_pick(
            list(context_windows),
            title="Select the completion model",
            placeholder="Select a completion model",
        )
        if model is None:
            raise UserCancelledError("model selection")

        logger.info(f"Downloading tokenizer for model: {model}")
        await tokenizers.download(model)

        await probe(
            f"{base_url}/api/generate",
            {"model": model, "options": {"num_predict": 3}, "prompt": "Hello", "stream": False},
        )

        config = OllamaModelConfig(
            nickname=nickname,
            provider_id=cls.provider_id,
            model=model,
            context_window=context_windows.get(model) or FALLBACK_CONTEXT_WINDOW,
            base_url=base_url,
        )
        logger.info(f"Saving model configuration for: {nickname}")
        await store.set(nickname, config.to_record())
        logger.info(f"Successfully configured Ollama model: {nickname}")
        return config
