"""Image and video galleries: a result list plus at most one pending request."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..errors import ErrorEnvelope
from .api import ApiError, StudioClient
from .models import GenerationResult

logger = logging.getLogger(__name__)

IMAGE_EXAMPLE_PROMPTS = (
    "A futuristic cityscape at sunset with flying cars and neon lights",
    "A serene mountain landscape with a crystal clear lake reflecting the sky",
    "A cozy coffee shop interior with warm lighting and vintage furniture",
    "An abstract digital art piece with vibrant colors and geometric shapes",
)

VIDEO_EXAMPLE_PROMPTS = (
    "A time-lapse of a flower blooming in a garden with morning sunlight",
    "Ocean waves crashing against rocky cliffs during a dramatic sunset",
    "A bustling city street with people walking and cars passing by",
    "Clouds moving across a mountain landscape in fast motion",
    "A campfire crackling with sparks flying up into the night sky",
)

IMAGE_SIZES = ("1024x1024", "1792x1024", "1024x1792")
IMAGE_QUALITIES = ("standard", "hd")
IMAGE_STYLES = ("vivid", "natural")
VIDEO_ASPECT_RATIOS = ("16:9", "9:16", "1:1")
VIDEO_DURATION_RANGE = (2, 10)


@dataclass(frozen=True)
class PendingGeneration:
    prompt: str
    settings: Mapping[str, Any]


class GenerationGallery:
    """Results newest first, one in-flight request, one error slot.

    The list has no cap; nothing is ever evicted or mutated.
    """

    def __init__(self) -> None:
        self._results: List[GenerationResult] = []
        self.error: Optional[ErrorEnvelope] = None
        self._pending: Optional[PendingGeneration] = None

    @property
    def results(self) -> Tuple[GenerationResult, ...]:
        return tuple(self._results)

    @property
    def in_flight(self) -> bool:
        return self._pending is not None

    def begin(self, prompt: str, settings: Mapping[str, Any]) -> Optional[PendingGeneration]:
        prompt = (prompt or "").strip()
        if not prompt or self.in_flight:
            return None
        self.error = None
        self._pending = PendingGeneration(prompt=prompt, settings=dict(settings))
        return self._pending

    def complete(self, pending: PendingGeneration, url: str, **extra: Any) -> GenerationResult:
        result = GenerationResult(url=url, prompt=pending.prompt, settings=pending.settings, **extra)
        self._results.insert(0, result)
        self._pending = None
        return result

    def fail(self, pending: PendingGeneration, envelope: ErrorEnvelope) -> None:
        self.error = envelope
        self._pending = None


class Studio(ABC):
    kind = ""
    max_prompt_length = 1000
    example_prompts: Tuple[str, ...] = ()

    def __init__(self, api: StudioClient) -> None:
        self.api = api
        self.gallery = GenerationGallery()
        self._draft = ""

    @property
    def draft(self) -> str:
        return self._draft

    @draft.setter
    def draft(self, value: str) -> None:
        self._draft = (value or "")[: self.max_prompt_length]

    def use_example(self, index: int) -> str:
        self.draft = self.example_prompts[index]
        return self.draft

    @abstractmethod
    def settings(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def configure(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    async def _request(self, pending: PendingGeneration) -> Dict[str, Any]:
        ...

    @abstractmethod
    def _accept(self, pending: PendingGeneration, data: Dict[str, Any]) -> Optional[GenerationResult]:
        ...

    async def generate(self, prompt: Optional[str] = None) -> Optional[GenerationResult]:
        """Submit ``prompt`` (or the draft). A no-op while a request is pending."""
        text = self.draft if prompt is None else (prompt or "")
        pending = self.gallery.begin(text[: self.max_prompt_length], self.settings())
        if pending is None:
            return None
        try:
            data = await self._request(pending)
        except ApiError as e:
            logger.debug("%s generation failed: %s", self.kind, e)
            self.gallery.fail(pending, e.envelope)
            return None
        result = self._accept(pending, data)
        if result is not None:
            self.draft = ""
        return result


class ImageStudio(Studio):
    kind = "image"
    max_prompt_length = 1000
    example_prompts = IMAGE_EXAMPLE_PROMPTS

    def __init__(self, api: StudioClient) -> None:
        super().__init__(api)
        self.size = IMAGE_SIZES[0]
        self.quality = IMAGE_QUALITIES[0]
        self.style = IMAGE_STYLES[0]

    def settings(self) -> Dict[str, Any]:
        return {"size": self.size, "quality": self.quality, "style": self.style}

    def configure(self, key: str, value: str) -> None:
        choices = {"size": IMAGE_SIZES, "quality": IMAGE_QUALITIES, "style": IMAGE_STYLES}
        if key not in choices:
            raise KeyError(f"Unknown image setting: {key}")
        if value not in choices[key]:
            raise ValueError(f"{key} must be one of {', '.join(choices[key])}")
        setattr(self, key, value)

    async def _request(self, pending: PendingGeneration) -> Dict[str, Any]:
        return await self.api.generate_image(pending.prompt, **pending.settings)

    def _accept(self, pending: PendingGeneration, data: Dict[str, Any]) -> Optional[GenerationResult]:
        url = data.get("imageUrl")
        if not isinstance(url, str) or not url:
            self.gallery.fail(pending, ErrorEnvelope(error="No image generated"))
            return None
        return self.gallery.complete(
            pending, url, model=data.get("model"), revised_prompt=data.get("revisedPrompt"),
        )


class VideoStudio(Studio):
    kind = "video"
    max_prompt_length = 500
    example_prompts = VIDEO_EXAMPLE_PROMPTS

    def __init__(
        self,
        api: StudioClient,
        *,
        duration: int = 4,
        aspect_ratio: str = "16:9",
        model: str = "veo-3-fast",
    ) -> None:
        super().__init__(api)
        self.duration = duration
        self.aspect_ratio = aspect_ratio
        self.model = model

    def settings(self) -> Dict[str, Any]:
        return {"duration": self.duration, "aspectRatio": self.aspect_ratio, "model": self.model}

    def configure(self, key: str, value: str) -> None:
        if key == "duration":
            seconds = int(value)
            lo, hi = VIDEO_DURATION_RANGE
            if not lo <= seconds <= hi:
                raise ValueError(f"duration must be between {lo} and {hi} seconds")
            self.duration = seconds
        elif key in ("aspect_ratio", "aspectRatio"):
            if value not in VIDEO_ASPECT_RATIOS:
                raise ValueError(f"aspect ratio must be one of {', '.join(VIDEO_ASPECT_RATIOS)}")
            self.aspect_ratio = value
        elif key == "model":
            self.model = value
        else:
            raise KeyError(f"Unknown video setting: {key}")

    async def _request(self, pending: PendingGeneration) -> Dict[str, Any]:
        return await self.api.generate_video(pending.prompt, **pending.settings)

    def _accept(self, pending: PendingGeneration, data: Dict[str, Any]) -> Optional[GenerationResult]:
        message = data.get("message")
        if isinstance(message, str) and "coming soon" in message:
            self.gallery.fail(pending, ErrorEnvelope(error="Video Generation Coming Soon", details=message))
            return None
        if data.get("status") == "processing":
            self.gallery.fail(
                pending,
                ErrorEnvelope(
                    error="Video generation in progress",
                    details=message if isinstance(message, str) else "Your video is being processed",
                ),
            )
            return None
        url = data.get("videoUrl")
        if not isinstance(url, str) or not url:
            self.gallery.fail(pending, ErrorEnvelope(error="No video generated"))
            return None
        return self.gallery.complete(pending, url, task_id=data.get("taskId"))
