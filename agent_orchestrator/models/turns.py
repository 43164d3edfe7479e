"""Turn model for a step's interactive chat history."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TurnRole(str, Enum):
    """Who produced a turn."""

    USER = "user"
    MODEL = "model"


class Turn(BaseModel):
    """One side of a user-message/agent-response exchange.

    Attributes:
        role: USER or MODEL.
        text: Text as sent to (or received from) the model. For the
            opening turn of a step this is the composed goal prompt.
        message: The raw user message behind a USER turn; edit and
            regenerate re-send this, not ``text``.
        model_id: Model that produced a MODEL turn.
        created_at: When the turn was recorded.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    role: TurnRole
    text: str
    message: str | None = None
    model_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def user(cls, text: str, message: str | None = None) -> Turn:
        return cls(role=TurnRole.USER, text=text, message=message if message is not None else text)

    @classmethod
    def model(cls, text: str, model_id: str | None = None) -> Turn:
        return cls(role=TurnRole.MODEL, text=text, model_id=model_id)

    @property
    def is_user(self) -> bool:
        return self.role == TurnRole.USER


def latest_output(history: list[Turn]) -> str:
    """Return the text of the most recent MODEL turn, or '' if none."""
    for turn in reversed(history):
        if turn.role == TurnRole.MODEL:
            return turn.text
    return ""


__all__ = ["Turn", "TurnRole", "latest_output"]
