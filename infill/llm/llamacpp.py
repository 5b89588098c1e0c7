"""
llama.cpp provider implementation.

WHAT: Fill-in-middle completions from a local llama.cpp HTTP server
WHY: Local-first inference; the server is already bound to one model
HOW: /infill for completions, /tokenize and /detokenize for the codec, no auth
"""

from typing import ClassVar, Literal

from .http import probe, request_json
from .prompter import Prompter, ask_base_url
from .provider import load_model_config
from .provider_factory import register_provider
from .types import InvokeOptions, LlamaCppModelConfig
from ..core.config import settings
from ..core.store import ModelConfigStore, get_model_store
from ..utils.logger import get_logger, preview

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8012"
DEFAULT_CONTEXT_WINDOW = 32768
HELP_PROMPT = "See https://github.com/ggml-org/llama.cpp/tree/master/tools/server for server setup"


@register_provider
class LlamaCppCompletionModelProvider:
    """llama.cpp completion provider. Every encode/decode is a server round trip."""

    provider_name: ClassVar[str] = "llama.cpp"
    provider_id: ClassVar[str] = "llama.cpp-completion"
    provider_type: ClassVar[Literal["completion"]] = "completion"

    def __init__(self, nickname: str, *, store: ModelConfigStore | None = None, tokenizers=None):
        logger.debug(f"Initializing llama.cpp Completion Model Provider with nickname: {nickname}")
        self.nickname = nickname
        self.config: LlamaCppModelConfig = load_model_config(
            nickname, LlamaCppModelConfig, self.provider_id, store
        )
        logger.info(f"llama.cpp Completion Model Provider initialized for {nickname}")

    async def initialize(self) -> None:
        # Tokenization happens on the server, nothing to prepare
        logger.info("Initializing llama.cpp")

    async def encode(self, text: str) -> list[int]:
        logger.debug(f"Encoding text: {preview(text)}")
        result = await request_json(
            "POST",
            f"{self.config.base_url}/tokenize",
            action="tokenize text",
            payload={"content": text, "add_special": False},
        )
        return list(result.get("tokens", []))

    async def decode(self, tokens: list[int]) -> str:
        logger.debug(f"Decoding {len(tokens)} tokens")
        result = await request_json(
            "POST",
            f"{self.config.base_url}/detokenize",
            action="detokenize tokens",
            payload={"tokens": list(tokens)},
        )
        return result.get("content", "")

    async def invoke(self, options: InvokeOptions) -> str:
        """
        Generate infill text.

        Args:
            options: Prefix/suffix, token budget, stop sequences, cancellation signal

        Returns:
            Generated text, "" when the server produced nothing

        Raises:
            BackendError: Non-2xx response
            NetworkError: Server not reachable
            CancellationError: options.signal fired
        """
        logger.debug("Generating text with llama.cpp")
        messages = options.messages
        max_tokens = options.max_tokens if options.max_tokens is not None else settings.DEFAULT_MAX_TOKENS

        result = await request_json(
            "POST",
            f"{self.config.base_url}/infill",
            action="invoke llama.cpp model",
            payload={
                "input_prefix": messages.prefix or "",
                "input_suffix": messages.suffix or "",
                "n_predict": max_tokens,
                "stop": list(options.stop or []),
                "stream": False,
            },
            signal=options.signal,
        )

        if result.get("truncated"):
            logger.warning("Response was truncated due to context length")

        timings = result.get("timings")
        if timings:
            per_second = timings.get("predicted_per_second")
            rate = f"{per_second:.2f}" if isinstance(per_second, (int, float)) else "?"
            logger.debug(
                f"Generation stats: {timings.get('predicted_n')} tokens in "
                f"{timings.get('predicted_ms')}ms ({rate} tokens/s)"
            )

        output = result.get("content") or ""
        logger.debug(f"Model output: {preview(output)}")
        return output

    @classmethod
    async def configure(
        cls,
        nickname: str,
        *,
        prompter: Prompter,
        store: ModelConfigStore | None = None,
        tokenizers=None,
    ) -> LlamaCppModelConfig:
        """
        Configure a llama.cpp model: ask for the server URL, probe it, persist.

        The model name is left empty; the server decides which model runs.
        """
        logger.info(f"Configuring llama.cpp model with nickname: {nickname}")
        store = store or get_model_store()
        existing = store.get(nickname) or {}

        base_url = await ask_base_url(
            prompter,
            provider_name=cls.provider_name,
            current=existing.get("baseUrl"),
            default=DEFAULT_BASE_URL,
            help_prompt=HELP_PROMPT,
        )

        await probe(
            f"{base_url}/completion",
            {"prompt": "Hello", "n_predict": 3, "stream": False},
        )

        config = LlamaCppModelConfig(
            nickname=nickname,
            provider_id=cls.provider_id,
            model="",
            context_window=DEFAULT_CONTEXT_WINDOW,
            base_url=base_url,
        )
        logger.info(f"Saving model configuration for: {nickname}")
        await store.set(nickname, config.to_record())
        logger.info(f"Successfully configured llama.cpp: {nickname}")
        return config
