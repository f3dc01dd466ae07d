"""Tests for the OpenAI wrapper using a fake SDK."""

import base64
import json
from types import SimpleNamespace

import pytest

from storyspark.ai import openai_client as openai_client_module
from storyspark.ai.openai_client import OpenAIClient, extract_content
from storyspark.errors import GenerationError, MissingCredentialError


class _FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.calls = []

    def create(self, messages, model, **kwargs):
        self.calls.append({"messages": messages, "model": model, **kwargs})
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


class _FakeImages:
    def __init__(self, data):
        self.data = data
        self.calls = []

    def edit(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(data=self.data)


class _FakeOpenAI:
    content = "ok"
    image_data = []
    instances = []

    def __init__(self, api_key, base_url=None):
        self.api_key = api_key
        self.base_url = base_url
        self.chat = SimpleNamespace(completions=_FakeCompletions(self.content))
        self.images = _FakeImages(self.image_data)
        _FakeOpenAI.instances.append(self)


@pytest.fixture
def fake_sdk(monkeypatch):
    _FakeOpenAI.instances = []
    _FakeOpenAI.content = "ok"
    _FakeOpenAI.image_data = []
    monkeypatch.setattr(openai_client_module, "OpenAI", _FakeOpenAI)
    return _FakeOpenAI


def test_complete_text_uses_default_model_and_strips(fake_sdk):
    fake_sdk.content = "  A brighter idea.  \n"
    client = OpenAIClient(api_key="sk-test", base_url=" https://example.test/v1 ", default_chat_model="chat-x")

    assert client.complete_text("hello") == "A brighter idea."
    sdk = fake_sdk.instances[0]
    assert sdk.base_url == "https://example.test/v1"
    assert sdk.chat.completions.calls[0]["model"] == "chat-x"


def test_generate_structured_requests_json_schema(fake_sdk):
    fake_sdk.content = json.dumps({"scenes": []})
    client = OpenAIClient(api_key="sk-test")

    result = client.generate_structured("sys", "user", {"type": "object"}, "story_scenes")

    assert result == {"scenes": []}
    call = fake_sdk.instances[0].chat.completions.calls[0]
    assert call["response_format"]["type"] == "json_schema"
    assert call["response_format"]["json_schema"]["name"] == "story_scenes"
    assert call["messages"][0] == {"role": "system", "content": "sys"}


def test_generate_structured_rejects_invalid_json(fake_sdk):
    fake_sdk.content = "not json"
    client = OpenAIClient(api_key="sk-test")

    with pytest.raises(GenerationError):
        client.generate_structured("sys", "user", {}, "story_scenes")


def test_edit_image_decodes_first_inline_image(fake_sdk):
    fake_sdk.image_data = [SimpleNamespace(b64_json=base64.b64encode(b"png-bytes").decode())]
    client = OpenAIClient(api_key="sk-test", default_image_model="img-x")

    assert client.edit_image([b"ref", b"prev"], "draw it") == b"png-bytes"
    call = fake_sdk.instances[0].images.calls[0]
    assert call["model"] == "img-x"
    assert [name for name, _data, _mime in call["image"]] == ["input_0.png", "input_1.png"]


def test_edit_image_returns_none_without_image(fake_sdk):
    client = OpenAIClient(api_key="sk-test")
    assert client.edit_image([b"ref"], "draw it") is None
    assert fake_sdk.instances[0].images.calls[0]["image"] == ("input_0.png", b"ref", "image/png")


def test_missing_key_blocks_every_call(fake_sdk):
    client = OpenAIClient(api_key="   ")

    assert not client.configured
    with pytest.raises(MissingCredentialError):
        client.complete_text("hello")
    with pytest.raises(MissingCredentialError):
        client.edit_image([b"ref"], "draw it")
    assert fake_sdk.instances == []


def test_extract_content_handles_dicts_and_part_lists():
    assert extract_content({"choices": [{"message": {"content": "hi"}}]}) == "hi"
    parts = [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]
    assert extract_content({"choices": [{"message": {"content": parts}}]}) == "a\nb"
    with pytest.raises(GenerationError):
        extract_content({"choices": []})
