import pytest

from receptionist_core.domain.exceptions import ConfigurationError
from receptionist_core.providers import create_provider
from receptionist_core.providers.gemini_client import GeminiClient
from receptionist_core.providers.glm_client import GlmClient
from receptionist_core.providers.registry import (
    GEMINI_CONFIG,
    PROVIDER_REGISTRY,
    get_model_config,
    get_provider_config,
    resolve_base_url,
)


def test_create_provider_default(monkeypatch):
    class DummySettings:
        default_provider = "gemini"
        gemini_api_key = "gemini-test-key"
        http_timeout = 1.0
        glm_api_key = None

    monkeypatch.setattr("receptionist_core.providers.settings", DummySettings())
    provider = create_provider()
    assert isinstance(provider, GeminiClient)


def test_create_provider_explicit():
    class DummySettings:
        default_provider = "gemini"
        gemini_api_key = None
        glm_api_key = "glm-test-key"
        http_timeout = 1.0

    provider = create_provider("GLM", DummySettings())
    assert isinstance(provider, GlmClient)


def test_create_provider_unknown():
    class DummySettings:
        default_provider = "openai"

    with pytest.raises(ConfigurationError) as exc:
        create_provider(cfg=DummySettings())
    assert exc.value.code == "UNKNOWN_PROVIDER"


def test_registry_lookup_and_base_url():
    assert get_provider_config("Gemini") is GEMINI_CONFIG
    assert get_model_config(GEMINI_CONFIG, "receptionist-chat").provider_model == "gemini-3-flash-preview"
    with pytest.raises(ConfigurationError) as exc:
        get_model_config(GEMINI_CONFIG, "gpt-4")
    assert exc.value.code == "UNKNOWN_MODEL"

    class DummySettings:
        gemini_base_url = "https://proxy.example.com/v1beta/"

    assert resolve_base_url(DummySettings(), GEMINI_CONFIG) == "https://proxy.example.com/v1beta"
    assert resolve_base_url(object(), GEMINI_CONFIG) == GEMINI_CONFIG.base_url


def test_every_registered_provider_has_a_client():
    class DummySettings:
        gemini_api_key = "gemini-test-key"
        glm_api_key = "glm-test-key"
        http_timeout = 1.0

    for name in PROVIDER_REGISTRY:
        provider = create_provider(name, DummySettings())
        assert isinstance(provider, (GeminiClient, GlmClient))
