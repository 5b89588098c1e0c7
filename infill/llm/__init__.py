"""Completion provider layer."""

from .cancellation import CancellationSignal, run_cancellable
from .provider import CompletionModelProvider
from .provider_factory import (
    available_providers,
    configure_provider,
    create_provider,
    discard_provider,
    get_provider,
    get_provider_class,
    register_provider,
    remove_provider,
    reset_providers,
)
from .tokenizer_cache import TokenizerCache, TokenizerHandle, get_tokenizer_cache, reset_tokenizer_cache
from .types import (
    DeepSeekModelConfig,
    InfillMessages,
    InvokeOptions,
    LlamaCppModelConfig,
    ModelConfig,
    OllamaModelConfig,
)

__all__ = [
    "CancellationSignal",
    "run_cancellable",
    "CompletionModelProvider",
    "available_providers",
    "configure_provider",
    "create_provider",
    "discard_provider",
    "get_provider",
    "get_provider_class",
    "register_provider",
    "remove_provider",
    "reset_providers",
    "TokenizerCache",
    "TokenizerHandle",
    "get_tokenizer_cache",
    "reset_tokenizer_cache",
    "DeepSeekModelConfig",
    "InfillMessages",
    "InvokeOptions",
    "LlamaCppModelConfig",
    "ModelConfig",
    "OllamaModelConfig",
]
