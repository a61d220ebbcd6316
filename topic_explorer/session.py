"""Multi-turn conversation state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ChatSession:
    """Append-only conversation log bound to one backend and model.

    Insertion order is conversational order; nothing is ever removed or reordered.
    Chat requests against an empty session are the caller's business.
    """

    def __init__(self, base_url: str, model: str) -> None:
        self._base_url = base_url
        self._model = model
        self._messages: list[Message] = []

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def model(self) -> str:
        return self._model

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def add_system(self, content: str) -> None:
        self._messages.append(Message(Role.SYSTEM, content))

    def add_user(self, content: str) -> None:
        self._messages.append(Message(Role.USER, content))

    def add_assistant(self, content: str) -> None:
        self._messages.append(Message(Role.ASSISTANT, content))

    def to_messages(self) -> list[dict[str, str]]:
        """Wire projection for ``/api/chat``; a fresh list on every call."""
        return [message.to_dict() for message in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return (
            f"ChatSession(base_url={self._base_url!r}, model={self._model!r}, "
            f"messages={len(self._messages)})"
        )
