import json

import requests

from llm_chat_kit.errors import ProviderError
from llm_chat_kit.providers import ProviderName, ProviderRegistry

from fakes import FakeFactory


def _events(response):
    return [json.loads(line) for line in response.text.splitlines() if line.strip()]


def _chat_body(provider="ollama", **overrides):
    body = {
        "provider": provider,
        "model": "llama3",
        "messages": [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "Hello"},
        ],
        "temperature": 0.7,
        "maxTokens": 2048,
    }
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# /providers
# ---------------------------------------------------------------------------


def test_providers_only_anthropic_key(make_client, registry):
    client = make_client(registry, {"ANTHROPIC_API_KEY": "sk-ant"})
    resp = client.get("/providers")
    assert resp.status_code == 200
    data = resp.json()
    assert [p["name"] for p in data["providers"]] == ["anthropic", "ollama"]
    assert data["providers"][0]["docsUrl"] == registry.get_config("anthropic").docs_url
    assert data["defaults"] == {"provider": "anthropic", "temperature": 0.7, "maxTokens": 2048}


def test_providers_no_keys_defaults_to_ollama(make_client, registry):
    data = make_client(registry, {}).get("/providers").json()
    assert [p["name"] for p in data["providers"]] == ["ollama"]
    assert data["defaults"]["provider"] == "ollama"


def test_providers_none_enabled(make_client, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("providers:\n  openai:\n    key_name: OPENAI_API_KEY\n    docs_url: https://x\n")
    registry = ProviderRegistry.load(path=str(path), env={})
    data = make_client(registry, {}).get("/providers").json()
    assert data["providers"] == []
    assert data["defaults"]["provider"] is None


# ---------------------------------------------------------------------------
# /models
# ---------------------------------------------------------------------------


def test_models_disabled_provider_is_400(make_client, registry, no_network):
    resp = make_client(registry, {}).get("/models/openai")
    assert resp.status_code == 400
    assert resp.json() == {"error": 'Provider "openai" is not enabled'}


def test_models_unknown_provider_is_400(make_client, registry, no_network):
    resp = make_client(registry, {}).get("/models/mistral")
    assert resp.status_code == 400
    assert resp.json() == {"error": 'Provider "mistral" is not enabled'}


def test_models_hosted_provider(make_client, registry, no_network):
    resp = make_client(registry, {"OPENAI_API_KEY": "sk"}).get("/models/openai")
    assert resp.status_code == 200
    assert resp.json() == {"supported": False, "docsUrl": registry.get_config("openai").docs_url}


def test_models_ollama_unreachable(make_client, registry, monkeypatch):
    client = make_client(registry, {})

    def refuse(url, timeout=None):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(requests, "get", refuse)
    resp = client.get("/models/ollama")
    assert resp.status_code == 200
    data = resp.json()
    assert data["supported"] is True
    assert data["models"] == []
    assert data["error"]


# ---------------------------------------------------------------------------
# /chat
# ---------------------------------------------------------------------------


def test_chat_rejects_disabled_provider_before_network(make_client, fake_registry, fake_factory, no_network):
    resp = make_client(fake_registry, {}).post("/chat", json=_chat_body("openai"))
    assert resp.status_code == 400
    assert resp.json() == {"error": 'Provider "openai" is not enabled'}
    assert fake_factory.clients == []


def test_chat_streams_ndjson_tokens(make_client, fake_registry, fake_factory):
    resp = make_client(fake_registry, {}).post("/chat", json=_chat_body(temperature=0.4, maxTokens=512))
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/x-ndjson")
    assert _events(resp) == [
        {"type": "token", "token": "Hel"},
        {"type": "token", "token": "lo"},
        {"type": "token", "token": "!"},
        {"type": "done"},
    ]
    call = fake_factory.clients[0].calls[0]
    assert call["temperature"] == 0.4
    assert call["max_tokens"] == 512
    assert [m["role"] for m in call["messages"]] == ["system", "user"]


def test_chat_error_mid_stream(make_client):
    factory = FakeFactory(fragments=["Part"], error=ProviderError("ollama error: model 'llama3' not found"))
    registry = ProviderRegistry.load(env={}, factories={ProviderName.OLLAMA: factory})
    resp = make_client(registry, {}).post("/chat", json=_chat_body())
    assert resp.status_code == 200
    assert _events(resp) == [
        {"type": "token", "token": "Part"},
        {"type": "error", "message": "ollama error: model 'llama3' not found"},
    ]


def test_chat_validation(make_client, fake_registry):
    client = make_client(fake_registry, {})
    assert client.post("/chat", json=_chat_body(temperature=3)).status_code == 422
    assert client.post("/chat", json=_chat_body(messages=[])).status_code == 422
    assert client.post("/chat", json=_chat_body(model="")).status_code == 422
    bad_role = _chat_body(messages=[{"role": "tool", "content": "x"}])
    assert client.post("/chat", json=bad_role).status_code == 422


# ---------------------------------------------------------------------------
# /prompts
# ---------------------------------------------------------------------------


def test_prompts_crud(make_client, registry):
    client = make_client(registry, {})

    prompts = client.get("/prompts").json()["prompts"]
    default = next(p for p in prompts if p["id"] == "default")
    assert default["isDefault"] is True

    created = client.post("/prompts", json={"name": "  Pirate ", "prompt": "Talk like a pirate."})
    assert created.status_code == 201
    prompt = created.json()["prompt"]
    assert prompt["id"].startswith("user-")
    assert prompt["name"] == "Pirate"
    assert prompt["isDefault"] is False
    assert prompt["id"] in [p["id"] for p in client.get("/prompts").json()["prompts"]]

    updated = client.put(f"/prompts/{prompt['id']}", json={"name": "Captain", "prompt": "Arr."})
    assert updated.status_code == 200
    assert updated.json()["prompt"] == {"id": prompt["id"], "name": "Captain", "prompt": "Arr.", "isDefault": False}

    deleted = client.delete(f"/prompts/{prompt['id']}")
    assert deleted.json() == {"success": True}
    assert prompt["id"] not in [p["id"] for p in client.get("/prompts").json()["prompts"]]
    assert client.delete(f"/prompts/{prompt['id']}").status_code == 404


def test_builtin_prompts_are_read_only(make_client, registry):
    client = make_client(registry, {})
    assert client.delete("/prompts/default").status_code == 403
    resp = client.put("/prompts/default", json={"name": "x", "prompt": "y"})
    assert resp.status_code == 403
    assert "built in" in resp.json()["error"]


def test_prompt_validation_and_missing(make_client, registry):
    client = make_client(registry, {})
    assert client.post("/prompts", json={"name": " ", "prompt": "text"}).status_code == 422
    assert client.put("/prompts/user-missing", json={"name": "a", "prompt": "b"}).status_code == 404
    assert client.delete("/prompts/not-a-user-prompt").status_code == 404


def test_health_and_root(make_client, registry):
    client = make_client(registry, {})
    assert client.get("/health").json() == {"status": "ok"}
    assert "running" in client.get("/").json()["message"]
