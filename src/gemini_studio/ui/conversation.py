"""Chat session state machine and the controller that drives it over HTTP.

``Conversation`` owns the transcript, the in-flight flag and the error slot,
and only changes through its transitions:

    idle / error-displayed --send--> awaiting-response
    awaiting-response --complete--> idle
    awaiting-response --fail--> error-displayed
    any --reset--> idle (transcript back to the greeting)

Every reset bumps ``generation``. A dispatched turn remembers the generation
it was sent in, so a reply that lands after a reset is dropped instead of
being appended to the fresh transcript.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..config import DEFAULTS
from ..errors import ErrorEnvelope
from .api import ApiError, StudioClient
from .models import Message

logger = logging.getLogger(__name__)

DEFAULT_GREETING: str = DEFAULTS["ui"]["greeting"]


class ChatState(str, Enum):
    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting-response"
    ERROR_DISPLAYED = "error-displayed"


@dataclass(frozen=True)
class PendingTurn:
    generation: int
    message: Message
    history: Tuple[Dict[str, str], ...]


class Conversation:
    def __init__(self, greeting: str = DEFAULT_GREETING) -> None:
        self.greeting = greeting
        self.generation = 0
        self._transcript: List[Message] = [self._greeting_message()]
        self.error: Optional[ErrorEnvelope] = None
        self.state = ChatState.IDLE

    @property
    def transcript(self) -> Tuple[Message, ...]:
        return tuple(self._transcript)

    @property
    def in_flight(self) -> bool:
        return self.state is ChatState.AWAITING_RESPONSE

    def history(self) -> List[Dict[str, str]]:
        """Everything after the greeting, in order, as ``{role, content}`` dicts."""
        return [m.as_history() for m in self._transcript[1:]]

    # --------- transitions ----------
    def begin_send(self, text: str) -> Optional[PendingTurn]:
        """Append the user's message and enter awaiting-response.

        Returns None (and changes nothing) for blank input or while a reply
        is still outstanding.
        """
        content = (text or "").strip()
        if not content or self.in_flight:
            return None

        history = tuple(self.history())
        message = Message(role="user", content=content)
        self._transcript.append(message)
        self.error = None
        self.state = ChatState.AWAITING_RESPONSE
        return PendingTurn(generation=self.generation, message=message, history=history)

    def complete(self, turn: PendingTurn, reply: str) -> Optional[Message]:
        if self._is_stale(turn):
            return None
        message = Message(role="assistant", content=reply)
        self._transcript.append(message)
        self.state = ChatState.IDLE
        return message

    def fail(self, turn: PendingTurn, envelope: ErrorEnvelope) -> bool:
        if self._is_stale(turn):
            return False
        self.error = envelope
        self.state = ChatState.ERROR_DISPLAYED
        return True

    def reset(self) -> None:
        self.generation += 1
        self._transcript = [self._greeting_message()]
        self.error = None
        self.state = ChatState.IDLE

    def _greeting_message(self) -> Message:
        return Message(role="assistant", content=self.greeting, id="greeting")

    def _is_stale(self, turn: PendingTurn) -> bool:
        if turn.generation != self.generation:
            logger.info(
                "Discarding reply to %s from generation %d (now %d)",
                turn.message.id, turn.generation, self.generation,
            )
            return True
        return False


class ChatController:
    """Owns a :class:`Conversation` and performs its network round trips."""

    def __init__(self, api: StudioClient, conversation: Optional[Conversation] = None) -> None:
        self.api = api
        self.conversation = conversation or Conversation()
        self.draft = ""

    async def send(self, text: Optional[str] = None) -> Optional[Message]:
        """Send ``text`` (or the current draft). Returns the assistant reply, if any."""
        turn = self.conversation.begin_send(self.draft if text is None else text)
        if turn is None:
            return None
        self.draft = ""

        try:
            reply = await self.api.chat(turn.message.content, list(turn.history))
        except ApiError as e:
            logger.debug("Chat request failed: %s", e)
            self.conversation.fail(turn, e.envelope)
            return None
        return self.conversation.complete(turn, reply)

    def reset(self) -> None:
        self.conversation.reset()
