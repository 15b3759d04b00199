from __future__ import annotations

from fastapi.testclient import TestClient

from gemini_studio.server import create_app
from gemini_studio.vendor import NoImageError, VendorAuthError, VendorQuotaError


def _client(config, fake, key_calls=None) -> TestClient:
    def factory(api_key: str):
        if key_calls is not None:
            key_calls.append(api_key)
        return fake

    return TestClient(create_app(config=config, client_factory=factory))


# -----------------------------
# /chat
# -----------------------------
def test_chat_endpoint_roundtrip(api_key, config, fake_gemini):
    """Basic sanity check: /chat returns 200 and the vendor's reply."""
    fake_gemini.reply = "Hi there"
    keys = []
    client = _client(config, fake_gemini, keys)

    r = client.post("/chat", json={"message": "  Hello ", "history": []})
    assert r.status_code == 200
    assert r.json() == {"response": "Hi there", "success": True}
    assert fake_gemini.chat_calls == [("Hello", [])]
    assert keys == ["test-key"]


def test_chat_forwards_history_in_order(api_key, config, fake_gemini):
    client = _client(config, fake_gemini)
    history = [
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello!"},
        {"role": "user", "content": "Tell me a joke"},
        {"role": "assistant", "content": "No."},
    ]

    r = client.post("/chat", json={"message": "Please?", "history": history})
    assert r.status_code == 200
    assert fake_gemini.chat_calls == [("Please?", history)]


def test_chat_without_api_key_returns_setup_steps(clean_env, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/chat", json={"message": "Hello"})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Google AI API key not configured"
    assert len(body["setup"]["steps"]) == 3
    assert "GOOGLE_AI_API_KEY" in body["setup"]["steps"][1]
    assert fake_gemini.chat_calls == []


def test_chat_rejects_blank_message_before_vendor_call(api_key, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/chat", json={"message": "   ", "history": []})
    assert r.status_code == 400
    assert r.json() == {"error": "Message is required"}
    assert fake_gemini.chat_calls == []


def test_chat_invalid_key_maps_to_401(api_key, config, fake_gemini):
    fake_gemini.error = VendorAuthError("400 INVALID_ARGUMENT API_KEY_INVALID")
    client = _client(config, fake_gemini)

    r = client.post("/chat", json={"message": "Hello"})
    assert r.status_code == 401
    body = r.json()
    assert body["error"] == "Invalid Google AI API key"
    assert body["setup"]["steps"]


def test_chat_other_vendor_failure_maps_to_500_with_details(api_key, config, fake_gemini):
    fake_gemini.error = RuntimeError("upstream exploded")
    client = _client(config, fake_gemini)

    r = client.post("/chat", json={"message": "Hello"})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to get response from Gemini", "details": "upstream exploded"}


def test_chat_quota_is_reported_as_generic_failure(api_key, config, fake_gemini):
    fake_gemini.error = VendorQuotaError("429 RESOURCE_EXHAUSTED")
    client = _client(config, fake_gemini)

    r = client.post("/chat", json={"message": "Hello"})
    assert r.status_code == 500
    assert r.json()["details"] == "429 RESOURCE_EXHAUSTED"


def test_chat_malformed_body_is_an_envelope(api_key, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/chat", json={"message": "Hi", "history": [{"role": "robot", "content": "x"}]})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Invalid request body"
    assert "history" in body["details"]
    assert fake_gemini.chat_calls == []


# -----------------------------
# /generate-image
# -----------------------------
def test_image_generation_returns_data_url(api_key, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/generate-image", json={"prompt": " a red cube ", "size": "1024x1024"})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["model"] == "fake-image-model"
    assert body["imageUrl"].startswith("data:image/png;base64,")
    assert fake_gemini.image_calls == ["a red cube"]


def test_image_without_api_key(clean_env, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/generate-image", json={"prompt": "a red cube"})
    assert r.status_code == 400
    assert r.json()["error"] == "Google AI API key not configured"
    assert fake_gemini.image_calls == []


def test_image_requires_prompt(api_key, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/generate-image", json={"prompt": ""})
    assert r.status_code == 400
    assert r.json() == {"error": "Prompt is required"}
    assert fake_gemini.image_calls == []


def test_image_error_mapping(api_key, config, fake_gemini):
    client = _client(config, fake_gemini)
    cases = [
        (VendorAuthError("API_KEY_INVALID"), 401, "Invalid Google AI API key"),
        (VendorQuotaError("QUOTA_EXCEEDED"), 429, "API quota exceeded"),
        (NoImageError("Gemini did not return an image in the response"), 500, "No image generated"),
        (RuntimeError("boom"), 500, "Failed to generate image"),
    ]
    for error, status, headline in cases:
        fake_gemini.error = error
        r = client.post("/generate-image", json={"prompt": "a red cube"})
        assert r.status_code == status
        assert r.json()["error"] == headline

    fake_gemini.error = RuntimeError("boom")
    assert client.post("/generate-image", json={"prompt": "x"}).json()["details"] == "boom"


# -----------------------------
# /generate-video
# -----------------------------
def test_video_is_a_permanent_stub(api_key, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/generate-video", json={"prompt": "waves at sunset", "duration": 6})
    assert r.status_code == 501
    body = r.json()
    assert body["error"] == "Video generation not yet available"
    assert isinstance(body["details"], str)
    assert body["status"] == "coming_soon"
    assert body["request"] == {
        "prompt": "waves at sunset",
        "duration": 6,
        "aspectRatio": "16:9",
        "model": "veo-3-fast",
    }
    assert body["alternatives"]


def test_video_checks_key_then_prompt(clean_env, config, fake_gemini):
    client = _client(config, fake_gemini)

    r = client.post("/generate-video", json={"prompt": ""})
    assert r.status_code == 400
    assert r.json()["error"] == "Google AI API key not configured"

    clean_env.setenv("GOOGLE_AI_API_KEY", "k")
    r = client.post("/generate-video", json={"prompt": " "})
    assert r.status_code == 400
    assert r.json() == {"error": "Prompt is required"}


def test_health_reports_configuration(clean_env, config, fake_gemini):
    client = _client(config, fake_gemini)
    assert client.get("/health").json() == {"ok": True, "configured": False}

    clean_env.setenv("GOOGLE_AI_API_KEY", "k")
    assert client.get("/health").json() == {"ok": True, "configured": True}


def test_custom_key_variable(clean_env, config, fake_gemini):
    config["google"]["api_key_env"] = "MY_GEMINI_KEY"
    clean_env.setenv("MY_GEMINI_KEY", "abc")
    keys = []
    client = _client(config, fake_gemini, keys)

    assert client.post("/chat", json={"message": "Hi"}).status_code == 200
    assert keys == ["abc"]
