"""Uniform error envelope shared by the server routes and the API client."""
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

NETWORK_ERROR = "Network error occurred. Please check your connection and try again."


class SetupHelp(BaseModel):
    message: str
    steps: List[str] = Field(default_factory=list)


class ErrorEnvelope(BaseModel):
    """Structured error payload: a headline, optional details and setup steps.

    Extra keys are kept so route-specific fields (``status``, ``alternatives``)
    survive a round trip through the client.
    """

    model_config = ConfigDict(extra="allow")

    error: str
    details: Optional[str] = None
    setup: Optional[SetupHelp] = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_payload(cls, payload: Any) -> "ErrorEnvelope":
        """Build an envelope from whatever a failed response carried.

        Non-string ``error``/``details`` values are replaced. Details fall
        back to ``message`` and then to "Please try again".
        """
        if not isinstance(payload, dict):
            return cls(error="An error occurred", details="Please try again")

        error = payload.get("error")
        details = payload.get("details")
        if not isinstance(details, str):
            message = payload.get("message")
            details = message if isinstance(message, str) else "Please try again"

        try:
            setup = SetupHelp.model_validate(payload["setup"]) if payload.get("setup") else None
        except ValidationError:
            setup = None

        extra = {
            k: v for k, v in payload.items()
            if k not in {"error", "details", "setup", "message"}
        }
        return cls(
            error=error if isinstance(error, str) else "An error occurred",
            details=details,
            setup=setup,
            **extra,
        )


# -----------------------------
# Canned envelopes
# -----------------------------
def not_configured(purpose: str, key_url: str, env_name: str = "GOOGLE_AI_API_KEY") -> ErrorEnvelope:
    return ErrorEnvelope(
        error="Google AI API key not configured",
        setup=SetupHelp(
            message=f"To enable {purpose}, please:",
            steps=[
                f"1. Get a Google AI API key from {key_url}",
                f"2. Add {env_name} to your environment variables",
                "3. Restart your development server",
            ],
        ),
    )


def invalid_key(message: str, step: str) -> ErrorEnvelope:
    return ErrorEnvelope(
        error="Invalid Google AI API key",
        setup=SetupHelp(message=message, steps=[step]),
    )
