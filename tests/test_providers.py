import pytest

from llm_chat_kit.errors import UnknownProviderError
from llm_chat_kit.llm import AnthropicClient, GeminiClient, OllamaClient, OpenAIClient
from llm_chat_kit.providers import ModelHandle, ProviderName, ProviderRegistry

ALL_KEYS = {
    "OPENAI_API_KEY": "sk-openai",
    "ANTHROPIC_API_KEY": "sk-ant",
    "GOOGLE_GENERATIVE_AI_API_KEY": "g-key",
}
HOSTED = [
    ("openai", "OPENAI_API_KEY"),
    ("anthropic", "ANTHROPIC_API_KEY"),
    ("google", "GOOGLE_GENERATIVE_AI_API_KEY"),
]


def test_ollama_enabled_regardless_of_env(registry):
    assert registry.is_enabled("ollama", {}) is True
    assert registry.is_enabled("ollama", ALL_KEYS) is True
    assert registry.is_enabled(ProviderName.OLLAMA, {"OLLAMA_BASE_URL": ""}) is True


@pytest.mark.parametrize("provider,key_name", HOSTED)
def test_hosted_provider_enabled_iff_key_non_empty(registry, provider, key_name):
    assert registry.is_enabled(provider, {key_name: "secret"}) is True
    assert registry.is_enabled(provider, {key_name: ""}) is False
    assert registry.is_enabled(provider, {}) is False
    # Another provider's key does not count
    others = {k: v for k, v in ALL_KEYS.items() if k != key_name}
    assert registry.is_enabled(provider, others) is False


def test_enabled_providers_only_anthropic(registry):
    assert registry.enabled_providers({"ANTHROPIC_API_KEY": "sk-ant"}) == ["anthropic", "ollama"]


def test_enabled_providers_keeps_declaration_order(registry):
    assert registry.enabled_providers(ALL_KEYS) == ["openai", "anthropic", "google", "ollama"]
    assert registry.enabled_providers({"GOOGLE_GENERATIVE_AI_API_KEY": "g", "OPENAI_API_KEY": "o"}) == [
        "openai",
        "google",
        "ollama",
    ]


def test_enabled_providers_never_includes_missing_keys(registry):
    assert registry.enabled_providers({}) == ["ollama"]


def test_unknown_provider(registry):
    assert registry.is_enabled("mistral", ALL_KEYS) is False
    assert registry.get_config("mistral") is None
    with pytest.raises(UnknownProviderError, match="Unknown provider: unknown"):
        registry.get_model("unknown", "model-id")


def test_get_config_records(registry):
    ollama = registry.get_config("ollama")
    assert ollama.key_name is None
    assert "localhost:11434" in ollama.base_url
    for name in registry.names:
        assert registry.get_config(name).docs_url.startswith("https://")
    assert registry.get_config("openai").key_name == "OPENAI_API_KEY"


def test_ollama_base_url_from_env():
    reg = ProviderRegistry.load(env={"OLLAMA_BASE_URL": "http://gpu-box:11434/"})
    assert reg.get_config("ollama").base_url == "http://gpu-box:11434"


@pytest.mark.parametrize(
    "provider,client_cls",
    [
        ("openai", OpenAIClient),
        ("anthropic", AnthropicClient),
        ("google", GeminiClient),
        ("ollama", OllamaClient),
    ],
)
def test_get_model_binds_client_without_network(registry, no_network, provider, client_cls):
    handle = registry.get_model(provider, "test-model", env={})
    assert isinstance(handle, ModelHandle)
    assert handle.provider == ProviderName(provider)
    assert handle.model_id == "test-model"
    assert isinstance(handle.client, client_cls)
    assert handle.client.model == "test-model"


def test_get_model_passes_credential_from_env(registry):
    handle = registry.get_model("anthropic", "claude-x", env={"ANTHROPIC_API_KEY": "sk-ant"})
    assert handle.client.api_key == "sk-ant"


def test_defaults(registry):
    assert 0 <= registry.defaults.temperature <= 2
    assert registry.defaults.max_tokens > 0


def test_builtin_prompts_loaded(registry):
    ids = [p.id for p in registry.prompts]
    assert "default" in ids
    assert sum(1 for p in registry.prompts if p.is_default) == 1


def test_config_with_unknown_provider_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("providers:\n  mistral:\n    key_name: MISTRAL_API_KEY\n    docs_url: https://x\n")
    with pytest.raises(UnknownProviderError):
        ProviderRegistry.load(path=str(path), env={})
