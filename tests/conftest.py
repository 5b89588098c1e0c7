"""
Pytest configuration and shared fixtures.

WHAT: Markers, stored configs and injected collaborators for provider tests
WHY: Keep every test isolated from the process-wide store, cache and registry
HOW: Reset singletons around each test, hand out in-memory store and stub codec
"""

import pytest

from infill.core.store import InMemoryModelConfigStore, SqlModelConfigStore, reset_model_store
from infill.llm.provider_factory import reset_providers
from infill.llm.tokenizer_cache import reset_tokenizer_cache
from tests.fixtures.fakes import ScriptedPrompter, StubTokenizerCache


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset process-wide state before and after each test.

    WHAT: Clear provider instances, default store and default tokenizer cache
    WHY: Prevent test pollution
    """
    reset_providers()
    reset_model_store()
    reset_tokenizer_cache()
    yield
    reset_providers()
    reset_model_store()
    reset_tokenizer_cache()


LLAMACPP_CONFIG = {
    "nickname": "local-llama",
    "providerId": "llama.cpp-completion",
    "model": "",
    "contextWindow": 32768,
    "baseUrl": "http://localhost:8012",
}

DEEPSEEK_CONFIG = {
    "nickname": "deepseek",
    "providerId": "deepseek-completion",
    "model": "deepseek-chat",
    "contextWindow": 65536,
    "baseUrl": "https://api.deepseek.com/beta",
    "apiKey": "sk-test",
}

OLLAMA_CONFIG = {
    "nickname": "ollama-qwen",
    "providerId": "ollama-completion",
    "model": "qwen2.5-coder:1.5b",
    "contextWindow": 32768,
    "baseUrl": "http://localhost:11434",
}


@pytest.fixture
def store():
    """In-memory store preloaded with one config per provider."""
    return InMemoryModelConfigStore({
        LLAMACPP_CONFIG["nickname"]: LLAMACPP_CONFIG,
        DEEPSEEK_CONFIG["nickname"]: DEEPSEEK_CONFIG,
        OLLAMA_CONFIG["nickname"]: OLLAMA_CONFIG,
    })


@pytest.fixture
def empty_store():
    return InMemoryModelConfigStore()


@pytest.fixture
def sql_store(tmp_path):
    """SQLite store in a temporary directory."""
    store = SqlModelConfigStore.from_url(f"sqlite:///{tmp_path / 'models.db'}")
    yield store
    store.close()


@pytest.fixture
def tokenizers():
    return StubTokenizerCache()


@pytest.fixture
def make_prompter():
    def factory(inputs=None, picks=None):
        return ScriptedPrompter(inputs=inputs, picks=picks)
    return factory
