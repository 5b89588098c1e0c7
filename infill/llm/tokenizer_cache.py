"""
Tokenizer cache.

WHAT: Loads and memoizes a text <-> token id codec per model id
WHY: DeepSeek and Ollama adapters count and trim prompt tokens locally,
     without a network round trip per encode/decode
HOW: tokenizer.json fetched with httpx into a cache directory on first use,
     loaded with HuggingFace `tokenizers`, kept for the process lifetime
"""

import asyncio
import re
from pathlib import Path
from typing import Callable, Protocol

import httpx
from tokenizers import Tokenizer

from .http import default_timeout
from ..core.catalog import ModelMetadata, lookup
from ..core.config import settings
from ..utils.exceptions import BackendError, MetadataNotFoundError, NetworkError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class TokenizerHandle(Protocol):
    """Codec for one model."""

    def encode(self, text: str) -> list[int]:
        ...

    def decode(self, tokens: list[int]) -> str:
        ...


class HuggingFaceTokenizer:
    """TokenizerHandle backed by a `tokenizers.Tokenizer`.

    Special tokens are neither added on encode nor stripped on decode, so
    FIM sentinels in user text survive a round trip.
    """

    def __init__(self, tokenizer: Tokenizer, model_id: str):
        self._tokenizer = tokenizer
        self.model_id = model_id

    @classmethod
    def from_file(cls, path: Path, model_id: str) -> "HuggingFaceTokenizer":
        return cls(Tokenizer.from_file(str(path)), model_id)

    def encode(self, text: str) -> list[int]:
        return self._tokenizer.encode(text, add_special_tokens=False).ids

    def decode(self, tokens: list[int]) -> str:
        return self._tokenizer.decode(list(tokens), skip_special_tokens=False)


class TokenizerCache:
    """
    Process-wide tokenizer handles keyed by model id.

    Handles are created once per model id and never evicted. Concurrent first
    acquisitions of the same model share one download and one load.
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        *,
        catalog_lookup: Callable[[str], ModelMetadata | None] = lookup,
        timeout: float | None = None,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else settings.tokenizer_cache_path
        self._lookup = catalog_lookup
        self._timeout = timeout if timeout is not None else settings.TOKENIZER_DOWNLOAD_TIMEOUT
        self._handles: dict[str, TokenizerHandle] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def path_for(self, model_id: str) -> Path:
        safe_name = re.sub(r"[^A-Za-z0-9._-]", "_", model_id)
        return self.cache_dir / f"{safe_name}.json"

    def is_downloaded(self, model_id: str) -> bool:
        return self.path_for(model_id).exists()

    def _lock_for(self, model_id: str) -> asyncio.Lock:
        lock = self._locks.get(model_id)
        if lock is None:
            lock = self._locks[model_id] = asyncio.Lock()
        return lock

    async def download(self, model_id: str, force: bool = False) -> Path:
        """
        Fetch tokenizer data for model_id into the cache directory.

        Args:
            model_id: Catalog model id
            force: Re-download even if a cached file exists

        Returns:
            Path of the cached tokenizer.json

        Raises:
            MetadataNotFoundError: Catalog has no entry for model_id
            BackendError: Tokenizer host answered non-2xx
            NetworkError: Tokenizer host not reachable
        """
        async with self._lock_for(model_id):
            return await self._fetch(model_id, force=force)

    async def _fetch(self, model_id: str, force: bool = False) -> Path:
        path = self.path_for(model_id)
        if path.exists() and not force:
            logger.debug(f"Tokenizer for {model_id} already cached at {path}")
            return path

        metadata = self._lookup(model_id)
        if metadata is None:
            raise MetadataNotFoundError(model_id)

        url = metadata.tokenizer_url
        logger.info(f"Downloading tokenizer for model: {model_id}")
        try:
            async with httpx.AsyncClient(
                timeout=default_timeout(read=self._timeout),
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
        except httpx.TransportError as e:
            raise NetworkError(f"Failed to download tokenizer for {model_id}: {e}", url=url) from e

        if not response.is_success:
            raise BackendError(
                f"Failed to download tokenizer for {model_id}: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        path.parent.mkdir(parents=True, exist_ok=True)
        partial = path.with_suffix(".json.part")
        partial.write_bytes(response.content)
        partial.replace(path)
        logger.info(f"Tokenizer for {model_id} saved to {path}")
        return path

    async def acquire(self, model_id: str) -> TokenizerHandle:
        """
        Return the shared handle for model_id, downloading and loading on first use.

        Raises:
            MetadataNotFoundError, BackendError, NetworkError: see download()
        """
        handle = self._handles.get(model_id)
        if handle is not None:
            return handle

        async with self._lock_for(model_id):
            handle = self._handles.get(model_id)
            if handle is None:
                path = await self._fetch(model_id)
                handle = await asyncio.to_thread(self._load, path, model_id)
                self._handles[model_id] = handle
                logger.info(f"Tokenizer loaded for model: {model_id}")
        return handle

    def _load(self, path: Path, model_id: str) -> TokenizerHandle:
        try:
            return HuggingFaceTokenizer.from_file(path, model_id)
        except Exception as e:
            # Drop the unreadable file so the next acquire downloads it again
            path.unlink(missing_ok=True)
            raise BackendError(f"Invalid tokenizer data for {model_id}: {e}") from e

    def put(self, model_id: str, handle: TokenizerHandle) -> None:
        """Register a handle directly (preloaded or stub codecs)."""
        self._handles[model_id] = handle

    def __contains__(self, model_id: str) -> bool:
        return model_id in self._handles


# Singleton instance
_cache_instance: TokenizerCache | None = None


def get_tokenizer_cache() -> TokenizerCache:
    """Get the process-wide tokenizer cache."""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = TokenizerCache()
    return _cache_instance


def reset_tokenizer_cache() -> None:
    """Reset the cache singleton (useful for testing)."""
    global _cache_instance
    _cache_instance = None
