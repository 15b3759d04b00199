"""Thin wrapper around the Google GenAI SDK for chat and image generation."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from google import genai
from google.genai import types

logger = logging.getLogger(__name__)

IMAGE_PROMPT_TEMPLATE = "Generate an image based on this prompt: {prompt}"


# -----------------------------
# Errors
# -----------------------------
class VendorError(Exception):
    """Any failure reported by (or while talking to) the vendor API."""


class VendorAuthError(VendorError):
    """The vendor rejected the API key."""


class VendorQuotaError(VendorError):
    """The vendor reported a rate or usage limit."""


class NoImageError(VendorError):
    """The vendor answered, but without an image part."""


def classify_error(exc: Exception) -> VendorError:
    """Map a raw SDK exception onto the vendor error taxonomy.

    The SDK embeds the error reason (``API_KEY_INVALID``, ``RESOURCE_EXHAUSTED``)
    in the exception text, so matching on the message covers both
    ``google.genai.errors.APIError`` and plain transport errors.
    """
    if isinstance(exc, VendorError):
        return exc
    text = str(exc)
    upper = text.upper()
    code = getattr(exc, "code", None)
    if "API_KEY_INVALID" in upper:
        return VendorAuthError(text)
    if code == 429 or "QUOTA_EXCEEDED" in upper or "RESOURCE_EXHAUSTED" in upper:
        return VendorQuotaError(text)
    return VendorError(text)


# -----------------------------
# Types
# -----------------------------
@dataclass
class GeneratedImage:
    mime_type: str
    data: bytes
    model: str

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


def _to_contents(history: Sequence[Dict[str, str]], message: str) -> List[types.Content]:
    contents: List[types.Content] = []
    for turn in history:
        role = "model" if turn.get("role") == "assistant" else "user"
        contents.append(types.Content(role=role, parts=[types.Part(text=str(turn.get("content", "")))]))
    contents.append(types.Content(role="user", parts=[types.Part(text=message)]))
    return contents


def _find_image_part(response: Any) -> Optional[Any]:
    for cand in getattr(response, "candidates", None) or []:
        content = getattr(cand, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            mime = getattr(inline, "mime_type", None) or ""
            if inline is not None and mime.startswith("image/") and getattr(inline, "data", None):
                return inline
    return None


# -----------------------------
# Client
# -----------------------------
class GeminiClient:
    """Chat and image calls against one API key.

    Every public method makes a single attempt; failures are raised as
    :class:`VendorError` subclasses via :func:`classify_error`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        chat_model: str = "gemini-2.5-flash",
        image_model: str = "gemini-2.5-flash-image",
        client: Any = None,
    ) -> None:
        self.chat_model = chat_model
        self.image_model = image_model
        self._client = client or genai.Client(api_key=api_key)

    def chat(self, message: str, history: Sequence[Dict[str, str]] = ()) -> str:
        """Send ``message`` after the prior ``history`` turns and return the reply text."""
        try:
            response = self._client.models.generate_content(
                model=self.chat_model,
                contents=_to_contents(history, message),
            )
        except Exception as e:
            raise classify_error(e) from e
        return getattr(response, "text", None) or ""

    def generate_image(self, prompt: str) -> GeneratedImage:
        try:
            response = self._client.models.generate_content(
                model=self.image_model,
                contents=IMAGE_PROMPT_TEMPLATE.format(prompt=prompt.strip()),
                config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
            )
        except Exception as e:
            raise classify_error(e) from e

        inline = _find_image_part(response)
        if inline is None:
            raise NoImageError("Gemini did not return an image in the response")

        data = inline.data
        if isinstance(data, str):
            # Some SDK builds hand back base64 text rather than raw bytes.
            data = base64.b64decode(data)
        logger.debug("Image generated: %s, %d bytes", inline.mime_type, len(data))
        return GeneratedImage(mime_type=inline.mime_type, data=data, model=self.image_model)


def create_from_config(api_key: str, cfg: Dict[str, Any]) -> GeminiClient:
    """Create a GeminiClient from a config dict (e.g., loaded YAML)."""
    return GeminiClient(
        api_key,
        chat_model=cfg.get("chat", {}).get("model", "gemini-2.5-flash"),
        image_model=cfg.get("image", {}).get("model", "gemini-2.5-flash-image"),
    )
