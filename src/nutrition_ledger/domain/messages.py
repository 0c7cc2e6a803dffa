"""Domain models for the chat transcript."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Literal

MessageRole = Literal["user", "assistant"]

USER: MessageRole = "user"
ASSISTANT: MessageRole = "assistant"


@dataclass(frozen=True)
class Message:
    """A single chat message in a day's transcript.

    ``response_to`` links an assistant message to the user message it
    answers. Transcripts stored before the link existed leave it empty and
    are paired by adjacency instead.
    """

    id: int
    role: MessageRole
    text: str
    timestamp: datetime
    image_ref: str | None = None
    response_to: int | None = None

    @property
    def is_user(self) -> bool:
        """Return true for user-authored messages."""
        return self.role == USER

    @property
    def is_assistant(self) -> bool:
        """Return true for assistant responses."""
        return self.role == ASSISTANT

    def edited(self, text: str, image_ref: str | None) -> "Message":
        """Return a copy with replaced text and image."""
        return replace(self, text=text, image_ref=image_ref)
