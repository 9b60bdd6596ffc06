from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from app.services.errors import ConfigurationError, ProviderError
from app.services.llm_client import GenerativeClient, collect_api_keys


def fake_openai(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def clear_gemini_env(monkeypatch):
    for var in ("GEMINI_API_KEY", "GEMINI_API_KEY_2", "GEMINI_API_KEY_3", "GEMINI_API_KEY_FILE"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def test_requires_at_least_one_key():
    with pytest.raises(ConfigurationError):
        GenerativeClient([])
    with pytest.raises(ConfigurationError):
        GenerativeClient(["", "   "])


def test_collect_api_keys_reads_numbered_variables(clear_gemini_env):
    clear_gemini_env.setenv("GEMINI_API_KEY", "first")
    clear_gemini_env.setenv("GEMINI_API_KEY_2", "second")
    clear_gemini_env.setenv("GEMINI_API_KEY_3", " ")
    clear_gemini_env.setenv("GEMINI_API_KEY_FILE", "/run/secrets/gemini")

    assert collect_api_keys("GEMINI_API_KEY") == ["first", "second"]


def test_from_env_without_keys_disables_tier(clear_gemini_env):
    assert GenerativeClient.from_env("gemini") is None


def test_from_env_unknown_service(clear_gemini_env):
    with pytest.raises(KeyError):
        GenerativeClient.from_env("groq")


def test_from_env_with_keys(clear_gemini_env):
    clear_gemini_env.setenv("GEMINI_API_KEY", "first")
    client = GenerativeClient.from_env("gemini")
    assert client is not None
    assert client.api_key == "first"
    assert client.base_url


def test_keys_rotate_between_calls():
    client = GenerativeClient(["a", "b"], base_url="http://localhost:9")

    first, second, third = client._next_client(), client._next_client(), client._next_client()

    assert first.api_key == "a"
    assert second.api_key == "b"
    assert third is first


def test_complete_returns_reply_text(monkeypatch):
    client = GenerativeClient(["a"])
    sent = {}

    async def create(**kwargs):
        sent.update(kwargs)
        return reply("[]")

    monkeypatch.setattr(client, "_next_client", lambda: fake_openai(create))

    assert asyncio.run(client.complete("prompt", system="be brief")) == "[]"
    assert [m["role"] for m in sent["messages"]] == ["system", "user"]
    assert sent["extra_body"] == {"top_k": 40}


def test_complete_times_out(monkeypatch):
    client = GenerativeClient(["a"], timeout=0.05)

    async def create(**kwargs):
        await asyncio.sleep(5)

    monkeypatch.setattr(client, "_next_client", lambda: fake_openai(create))

    with pytest.raises(ProviderError, match="timed out"):
        asyncio.run(client.complete("prompt"))


def test_complete_wraps_transport_errors(monkeypatch):
    client = GenerativeClient(["a"])

    async def create(**kwargs):
        raise ConnectionError("connection reset")

    monkeypatch.setattr(client, "_next_client", lambda: fake_openai(create))

    with pytest.raises(ProviderError):
        asyncio.run(client.complete("prompt"))


@pytest.mark.parametrize("response", [reply(""), reply(None), SimpleNamespace(choices=[])])
def test_complete_rejects_empty_replies(monkeypatch, response):
    client = GenerativeClient(["a"])

    async def create(**kwargs):
        return response

    monkeypatch.setattr(client, "_next_client", lambda: fake_openai(create))

    with pytest.raises(ProviderError):
        asyncio.run(client.complete("prompt"))
