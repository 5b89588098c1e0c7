"""
Completion provider registry and factory.

WHAT: Maps stored providerId values to adapter classes and caches live instances
WHY: The completion engine only knows nicknames; the stored config says which
     backend serves them, and a new backend should only need to register itself
HOW: Decorator-based registry, lazy import of built-in adapters, one
     initialized instance per nickname
"""

import importlib
from typing import TYPE_CHECKING

from ..core.store import ModelConfigStore, get_model_store
from ..utils.exceptions import ConfigNotFoundError, UnknownProviderError
from ..utils.logger import get_logger

if TYPE_CHECKING:
    from .prompter import Prompter
    from .provider import CompletionModelProvider
    from .tokenizer_cache import TokenizerCache
    from .types import ModelConfig

logger = get_logger(__name__)

_BUILTIN_MODULES = (
    "infill.llm.llamacpp",
    "infill.llm.deepseek",
    "infill.llm.ollama",
)

_registry: dict[str, type] = {}

# Initialized provider instances keyed by nickname
_instances: dict[str, "CompletionModelProvider"] = {}

# Bumped on every discard or reset; a build that straddles a bump is not cached
_generation = 0


def register_provider(cls: type) -> type:
    """Class decorator adding an adapter to the registry under cls.provider_id."""
    provider_id = getattr(cls, "provider_id", None)
    if not provider_id:
        raise ValueError(f"{cls.__name__} has no provider_id")
    existing = _registry.get(provider_id)
    if existing is not None and existing is not cls:
        raise ValueError(f"Provider id {provider_id} already registered by {existing.__name__}")
    _registry[provider_id] = cls
    return cls


def _load_builtin_providers() -> None:
    # Import here to avoid circular dependencies
    for module in _BUILTIN_MODULES:
        importlib.import_module(module)


def available_providers() -> list[type]:
    """All registered adapter classes, in registration order."""
    _load_builtin_providers()
    return list(_registry.values())


def get_provider_class(provider_id: str) -> type:
    """
    Look up the adapter class for a provider id.

    Raises:
        UnknownProviderError: Nothing registered under provider_id
    """
    _load_builtin_providers()
    try:
        return _registry[provider_id]
    except KeyError:
        raise UnknownProviderError(provider_id) from None


async def create_provider(
    nickname: str,
    *,
    store: ModelConfigStore | None = None,
    tokenizers: "TokenizerCache | None" = None,
) -> "CompletionModelProvider":
    """
    Build and initialize a provider for nickname from its stored config.

    Raises:
        ConfigNotFoundError: Nothing stored for nickname
        UnknownProviderError: Stored providerId is not registered
    """
    store = store or get_model_store()
    record = store.get(nickname)
    if record is None:
        raise ConfigNotFoundError(nickname)

    provider_cls = get_provider_class(record.get("providerId", ""))
    provider = provider_cls(nickname, store=store, tokenizers=tokenizers)
    await provider.initialize()
    logger.info(f"Completion provider ready: {nickname} ({provider_cls.provider_id})")
    return provider


async def get_provider(
    nickname: str,
    *,
    store: ModelConfigStore | None = None,
    tokenizers: "TokenizerCache | None" = None,
) -> "CompletionModelProvider":
    """
    Get the initialized provider for nickname, creating it on first use.

    Args:
        nickname: Stored model nickname
        store: Config store (defaults to the process store)
        tokenizers: Tokenizer cache (defaults to the process cache)

    Returns:
        Cached provider instance. If the nickname is discarded while the
        instance is being built, the result is returned but not cached.
    """
    provider = _instances.get(nickname)
    if provider is None:
        generation = _generation
        provider = await create_provider(nickname, store=store, tokenizers=tokenizers)
        if _generation == generation:
            _instances[nickname] = provider
        else:
            logger.debug(f"Config for {nickname} changed during initialization, not caching")
    return provider


def discard_provider(nickname: str) -> None:
    """Forget the cached instance for nickname (config removed or replaced)."""
    global _generation
    _generation += 1
    if _instances.pop(nickname, None) is not None:
        logger.debug(f"Discarded completion provider: {nickname}")


def reset_providers() -> None:
    """Drop all cached instances (deactivation, tests)."""
    global _generation
    _generation += 1
    _instances.clear()


async def configure_provider(
    provider_id: str,
    nickname: str,
    *,
    prompter: "Prompter",
    store: ModelConfigStore | None = None,
    tokenizers: "TokenizerCache | None" = None,
) -> "ModelConfig":
    """
    Run the configure flow of provider_id for nickname.

    A cached instance for nickname is discarded afterwards so the next
    get_provider() picks up the new config.
    """
    provider_cls = get_provider_class(provider_id)
    config = await provider_cls.configure(
        nickname, prompter=prompter, store=store, tokenizers=tokenizers
    )
    discard_provider(nickname)
    return config


async def remove_provider(nickname: str, *, store: ModelConfigStore | None = None) -> bool:
    """Delete the stored config for nickname and discard its instance."""
    discard_provider(nickname)
    return await (store or get_model_store()).delete(nickname)
