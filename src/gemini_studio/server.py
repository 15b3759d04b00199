"""FastAPI application forwarding prompts to Google's generative-AI API."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Literal, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import get_api_key, load_config
from .errors import ErrorEnvelope, invalid_key, not_configured
from .vendor import (
    GeminiClient,
    NoImageError,
    VendorAuthError,
    VendorQuotaError,
    create_from_config,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], GeminiClient]


# -----------------------------
# Pydantic request/response
# -----------------------------
class HistoryTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    # Emptiness is checked in the handler, after the credential check.
    message: str = ""
    history: List[HistoryTurn] = Field(default_factory=list)


class ChatResponse(BaseModel):
    response: str
    success: bool = True


class ImageRequest(BaseModel):
    prompt: str = ""
    size: Optional[str] = None
    quality: Optional[str] = None
    style: Optional[str] = None


class ImageResponse(BaseModel):
    imageUrl: str
    success: bool = True
    model: str


class VideoRequest(BaseModel):
    prompt: str = ""
    duration: Optional[float] = Field(default=None, ge=0)
    aspectRatio: Optional[str] = None
    model: Optional[str] = None


# -----------------------------
# Utilities
# -----------------------------
def _error(envelope: ErrorEnvelope, status: int) -> JSONResponse:
    return JSONResponse(envelope.to_payload(), status_code=status)


def _format_validation_errors(errors: List[Dict[str, Any]]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)


# -----------------------------
# App factory
# -----------------------------
def create_app(
    config_path: Optional[str] = None,
    client_factory: Optional[ClientFactory] = None,
    config: Optional[Dict[str, Any]] = None,
) -> FastAPI:
    cfg = config if config is not None else load_config(config_path)
    env_name = str(cfg.get("google", {}).get("api_key_env") or "GOOGLE_AI_API_KEY")
    video_cfg = cfg.get("video", {})

    def make_client(api_key: str) -> GeminiClient:
        if client_factory is not None:
            return client_factory(api_key)
        return create_from_config(api_key, cfg)

    cors_origins = cfg.get("server", {}).get("cors_origins", ["*"])

    app = FastAPI(title="Gemini Studio", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Rejected %s body: %s", request.url.path, exc.errors())
        envelope = ErrorEnvelope(
            error="Invalid request body",
            details=_format_validation_errors(list(exc.errors())),
        )
        return _error(envelope, 400)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True, "configured": get_api_key(cfg) is not None}

    @app.post("/chat", response_model=ChatResponse)
    def chat(req: ChatRequest):
        api_key = get_api_key(cfg)
        if not api_key:
            return _error(
                not_configured(
                    "Gemini chat functionality",
                    "https://makersuite.google.com/app/apikey",
                    env_name,
                ),
                400,
            )

        msg = req.message.strip()
        if not msg:
            return _error(ErrorEnvelope(error="Message is required"), 400)

        history = [turn.model_dump() for turn in req.history]
        try:
            text = make_client(api_key).chat(msg, history)
        except VendorAuthError:
            logger.exception("Gemini API error")
            return _error(
                invalid_key(
                    "Please check your API key configuration",
                    "Verify your API key at https://makersuite.google.com/app/apikey",
                ),
                401,
            )
        except Exception as e:
            logger.exception("Gemini API error")
            return _error(
                ErrorEnvelope(error="Failed to get response from Gemini", details=str(e)),
                500,
            )
        return ChatResponse(response=text)

    @app.post("/generate-image", response_model=ImageResponse)
    def generate_image(req: ImageRequest):
        api_key = get_api_key(cfg)
        if not api_key:
            return _error(
                not_configured(
                    "image generation with Gemini",
                    "https://aistudio.google.com/app/apikey",
                    env_name,
                ),
                400,
            )

        prompt = req.prompt.strip()
        if not prompt:
            return _error(ErrorEnvelope(error="Prompt is required"), 400)

        # size/quality/style are accepted for the gallery's sake; Gemini picks its own.
        try:
            image = make_client(api_key).generate_image(prompt)
        except NoImageError as e:
            logger.warning("Gemini returned no image for prompt %r", prompt)
            return _error(ErrorEnvelope(error="No image generated", details=str(e)), 500)
        except VendorAuthError:
            logger.exception("Gemini image generation error")
            return _error(
                invalid_key(
                    "Please check your Google AI API key",
                    "Verify your API key is correct and active",
                ),
                401,
            )
        except VendorQuotaError:
            logger.exception("Gemini image generation error")
            return _error(
                ErrorEnvelope(
                    error="API quota exceeded",
                    details="You've reached your Google AI API usage limit",
                ),
                429,
            )
        except Exception as e:
            logger.exception("Gemini image generation error")
            return _error(
                ErrorEnvelope(
                    error="Failed to generate image",
                    details=str(e) or "Unknown error occurred",
                ),
                500,
            )
        return ImageResponse(imageUrl=image.data_url, model=image.model)

    @app.post("/generate-video")
    def generate_video(req: VideoRequest):
        try:
            if not get_api_key(cfg):
                return _error(
                    not_configured(
                        "video generation with Google Gemini",
                        "https://aistudio.google.com/app/apikey",
                        env_name,
                    ),
                    400,
                )

            prompt = req.prompt.strip()
            if not prompt:
                return _error(ErrorEnvelope(error="Prompt is required"), 400)

            # The Gemini API has no video response modality; answer with a stub.
            envelope = ErrorEnvelope(
                error="Video generation not yet available",
                details=(
                    "Video generation through the Gemini API is currently not available "
                    "via the direct API. This feature is still in development."
                ),
                status="coming_soon",
                request={
                    "prompt": prompt,
                    "duration": req.duration if req.duration is not None else video_cfg.get("duration", 4),
                    "aspectRatio": req.aspectRatio or video_cfg.get("aspect_ratio", "16:9"),
                    "model": req.model or video_cfg.get("model", "veo-3-fast"),
                },
                alternatives=[
                    "Video generation may be available through Google Cloud Vertex AI",
                    "Check back for updates as Google continues to expand Gemini capabilities",
                ],
            )
            return _error(envelope, 501)
        except Exception as e:
            logger.exception("Video generation error")
            return _error(
                ErrorEnvelope(
                    error="Video generation service unavailable",
                    details=str(e) or "Unknown error occurred",
                    note="Video generation with Gemini is not yet supported through the direct API",
                ),
                503,
            )

    return app
