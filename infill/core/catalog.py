"""
Static model metadata catalog.

WHAT: Context window and tokenizer location for known completion models
WHY: Providers need a context window at configure time and a tokenizer per model
HOW: Frozen dataclass entries in a module-level table, pure lookup function
"""

from dataclasses import dataclass

_HF = "https://huggingface.co"


@dataclass(frozen=True)
class ModelMetadata:
    """Static capabilities of one completion model."""
    context_window: int
    tokenizer_url: str


def _hf_tokenizer(repo: str) -> str:
    return f"{_HF}/{repo}/resolve/main/tokenizer.json"


_QWEN_CODER = ModelMetadata(32768, _hf_tokenizer("Qwen/Qwen2.5-Coder-1.5B"))
_STARCODER2 = ModelMetadata(16384, _hf_tokenizer("bigcode/starcoder2-3b"))
_CODELLAMA = ModelMetadata(16384, _hf_tokenizer("codellama/CodeLlama-7b-hf"))
_DEEPSEEK_CODER = ModelMetadata(16384, _hf_tokenizer("deepseek-ai/deepseek-coder-1.3b-base"))

MODEL_CATALOG: dict[str, ModelMetadata] = {
    # Hosted
    "deepseek-chat": ModelMetadata(65536, _hf_tokenizer("deepseek-ai/DeepSeek-V3")),
    # Ollama tags
    "qwen2.5-coder": _QWEN_CODER,
    "qwen2.5-coder:0.5b": _QWEN_CODER,
    "qwen2.5-coder:1.5b": _QWEN_CODER,
    "qwen2.5-coder:3b": _QWEN_CODER,
    "qwen2.5-coder:7b": _QWEN_CODER,
    "qwen2.5-coder:14b": _QWEN_CODER,
    "qwen2.5-coder:32b": _QWEN_CODER,
    "starcoder2": _STARCODER2,
    "starcoder2:3b": _STARCODER2,
    "starcoder2:7b": _STARCODER2,
    "starcoder2:15b": _STARCODER2,
    "codellama:code": _CODELLAMA,
    "codellama:7b-code": _CODELLAMA,
    "codellama:13b-code": _CODELLAMA,
    "codellama:34b-code": _CODELLAMA,
    "deepseek-coder:base": _DEEPSEEK_CODER,
    "deepseek-coder:1.3b-base": _DEEPSEEK_CODER,
    "deepseek-coder:6.7b-base": _DEEPSEEK_CODER,
}


def lookup(model_id: str) -> ModelMetadata | None:
    """
    Resolve a model identifier to its static metadata.

    Tries the exact id first, then the id without a trailing ``:latest`` tag,
    so Ollama's default tag resolves to the bare model family.
    """
    metadata = MODEL_CATALOG.get(model_id)
    if metadata is None and model_id.endswith(":latest"):
        metadata = MODEL_CATALOG.get(model_id[: -len(":latest")])
    return metadata
