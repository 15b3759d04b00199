"""Tool switcher: keeps the active selection and the one mounted controller."""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from .api import StudioClient
from .conversation import ChatController, Conversation
from .gallery import ImageStudio, VideoStudio

Controller = Union[ChatController, ImageStudio, VideoStudio]


class Tool(str, Enum):
    CHAT = "chat"
    IMAGE = "image"
    VIDEO = "video"


class Shell:
    """Mounts one controller at a time.

    Switching to another tool mounts a fresh controller, so the previous
    tool's transcript or gallery is dropped. Re-selecting the active tool
    keeps it.
    """

    def __init__(self, api: StudioClient, ui_cfg: Optional[Dict[str, Any]] = None,
                 video_cfg: Optional[Dict[str, Any]] = None) -> None:
        self.api = api
        ui_cfg = ui_cfg or {}
        video_cfg = video_cfg or {}
        self._factories: Dict[Tool, Callable[[], Controller]] = {
            Tool.CHAT: lambda: ChatController(
                api, Conversation(greeting=ui_cfg["greeting"]) if ui_cfg.get("greeting") else None
            ),
            Tool.IMAGE: lambda: ImageStudio(api),
            Tool.VIDEO: lambda: VideoStudio(
                api,
                duration=int(video_cfg.get("duration", 4)),
                aspect_ratio=str(video_cfg.get("aspect_ratio", "16:9")),
                model=str(video_cfg.get("model", "veo-3-fast")),
            ),
        }
        self.active = Tool.CHAT
        self.mounted: Controller = self._factories[Tool.CHAT]()

    def select(self, tool: Union[Tool, str]) -> Controller:
        tool = Tool(tool)
        if tool is not self.active:
            self.active = tool
            self.mounted = self._factories[tool]()
        return self.mounted
