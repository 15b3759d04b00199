"""Front-end state machines for chat, image and video, plus their HTTP client."""

from .api import ApiError, StudioClient
from .conversation import ChatController, ChatState, Conversation
from .gallery import GenerationGallery, ImageStudio, VideoStudio
from .models import GenerationResult, Message
from .shell import Shell, Tool

__all__ = [
    "ApiError",
    "StudioClient",
    "ChatController",
    "ChatState",
    "Conversation",
    "GenerationGallery",
    "ImageStudio",
    "VideoStudio",
    "GenerationResult",
    "Message",
    "Shell",
    "Tool",
]
