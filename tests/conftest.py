"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import copy
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Ensure src/ is on the import path (for local imports without installing as package)
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from gemini_studio.config import DEFAULTS  # noqa: E402
from gemini_studio.vendor import GeneratedImage  # noqa: E402

API_KEY_ENV = "GOOGLE_AI_API_KEY"


class FakeGemini:
    """Stands in for GeminiClient; records calls and replays scripted outcomes."""

    def __init__(self, reply: str = "ok", error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.image = GeneratedImage(mime_type="image/png", data=b"\x89PNG", model="fake-image-model")
        self.chat_calls: List[Tuple[str, List[Dict[str, str]]]] = []
        self.image_calls: List[str] = []

    def chat(self, message: str, history: Any = ()) -> str:
        self.chat_calls.append((message, list(history)))
        if self.error is not None:
            raise self.error
        return self.reply

    def generate_image(self, prompt: str) -> GeneratedImage:
        self.image_calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self.image


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the root directory of the project."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(scope="function")
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Ensure tests run with a clean environment (no leftover vars)."""
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    monkeypatch.delenv("GEMINI_STUDIO_CONFIG", raising=False)
    for var in list(os.environ):
        if var.startswith("GEMINI_STUDIO__"):
            monkeypatch.delenv(var, raising=False)
    yield monkeypatch


@pytest.fixture(scope="function")
def api_key(clean_env: pytest.MonkeyPatch) -> str:
    clean_env.setenv(API_KEY_ENV, "test-key")
    return "test-key"


@pytest.fixture(scope="function")
def config() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULTS)


@pytest.fixture(scope="function")
def fake_gemini() -> FakeGemini:
    return FakeGemini()
