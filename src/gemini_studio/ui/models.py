"""Value types held by the front-end state machines."""
from __future__ import annotations

import base64
import binascii
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Union

Role = Literal["user", "assistant"]

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.S)


def new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Message:
    """A single chat turn. Never mutated once created."""

    role: Role
    content: str
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=datetime.now)

    def as_history(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


def decode_data_url(url: str) -> tuple[str, bytes]:
    """Split a ``data:`` URL into (mime type, raw bytes)."""
    m = _DATA_URL.match(url)
    if not m:
        raise ValueError("Not a data URL")
    mime = m.group("mime") or "text/plain"
    payload = m.group("data")
    if m.group("b64"):
        try:
            return mime, base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload in data URL: {e}") from e
    return mime, payload.encode("utf-8")


@dataclass(frozen=True)
class GenerationResult:
    """One gallery entry (an image or a video)."""

    url: str
    prompt: str
    settings: Mapping[str, Any]
    timestamp: datetime = field(default_factory=datetime.now)
    model: Optional[str] = None
    revised_prompt: Optional[str] = None
    task_id: Optional[str] = None

    def save(self, path: Union[str, Path]) -> Path:
        """Write the result to ``path``. Only data URLs can be saved offline."""
        _, data = decode_data_url(self.url)
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
        return p
