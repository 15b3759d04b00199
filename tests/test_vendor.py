from __future__ import annotations

import base64
from types import SimpleNamespace

import pytest

from gemini_studio.vendor import (
    GeminiClient,
    NoImageError,
    VendorAuthError,
    VendorError,
    VendorQuotaError,
    classify_error,
)


class RecordingModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _client(models: RecordingModels) -> GeminiClient:
    return GeminiClient(
        "unused",
        chat_model="chat-model",
        image_model="image-model",
        client=SimpleNamespace(models=models),
    )


def _image_response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def test_chat_maps_assistant_turns_to_model_role():
    models = RecordingModels(response=SimpleNamespace(text="Hi there"))
    client = _client(models)

    reply = client.chat(
        "How are you?",
        [{"role": "user", "content": "Hello"}, {"role": "assistant", "content": "Hi"}],
    )

    assert reply == "Hi there"
    call = models.calls[0]
    assert call["model"] == "chat-model"
    contents = call["contents"]
    assert [c.role for c in contents] == ["user", "model", "user"]
    assert [c.parts[0].text for c in contents] == ["Hello", "Hi", "How are you?"]


def test_chat_wraps_sdk_errors():
    models = RecordingModels(error=RuntimeError("400 INVALID_ARGUMENT reason: API_KEY_INVALID"))
    with pytest.raises(VendorAuthError):
        _client(models).chat("Hello")


def test_image_becomes_data_url():
    text_part = SimpleNamespace(text="Here you go", inline_data=None)
    image_part = SimpleNamespace(text=None, inline_data=SimpleNamespace(mime_type="image/png", data=b"PNGDATA"))
    models = RecordingModels(response=_image_response(text_part, image_part))

    image = _client(models).generate_image("  a red cube ")

    assert image.model == "image-model"
    assert image.data_url == "data:image/png;base64," + base64.b64encode(b"PNGDATA").decode()
    assert models.calls[0]["contents"] == "Generate an image based on this prompt: a red cube"


def test_image_without_inline_part_raises():
    text_part = SimpleNamespace(text="I can't draw that", inline_data=None)
    models = RecordingModels(response=_image_response(text_part))

    with pytest.raises(NoImageError):
        _client(models).generate_image("a red cube")


def test_non_image_inline_data_is_ignored():
    audio = SimpleNamespace(inline_data=SimpleNamespace(mime_type="audio/wav", data=b"RIFF"))
    models = RecordingModels(response=_image_response(audio))

    with pytest.raises(NoImageError):
        _client(models).generate_image("a red cube")


def test_classify_error():
    assert isinstance(classify_error(Exception("API_KEY_INVALID")), VendorAuthError)
    assert isinstance(classify_error(Exception("QUOTA_EXCEEDED for project")), VendorQuotaError)
    assert isinstance(classify_error(Exception("429 RESOURCE_EXHAUSTED")), VendorQuotaError)

    rate_limited = Exception("too many requests")
    rate_limited.code = 429
    assert isinstance(classify_error(rate_limited), VendorQuotaError)

    other = classify_error(ValueError("boom"))
    assert type(other) is VendorError
    assert str(other) == "boom"

    already = NoImageError("x")
    assert classify_error(already) is already
