"""Data models for the ragchat service."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal, TypedDict


class PromptMessage(TypedDict):
    """A single chat message as sent to the completion endpoint."""

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class RetrievedDocument:
    """A document returned by the vector store for one request."""

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float = 0.0


@dataclass
class Answer:
    """Plain-text answer with the labels of the documents it was grounded on."""

    text: str
    sources: list[str] = field(default_factory=list)


@dataclass
class StoredMessage:
    """A conversation message read back from the memory store."""

    id: str
    role: str
    content: str
    created_at: str | None = None


@dataclass
class StoreAck:
    """Acknowledgement of a conversation store call."""

    success: bool
    count: int
    session_uuid: str
    title: str = ""


@dataclass
class ConversationHistory:
    """Messages of a conversation, with a soft error flag on read failure."""

    messages: list[StoredMessage] = field(default_factory=list)
    error: str | None = None


class OutcomeKind(StrEnum):
    """Terminal states of one chat turn."""

    ANSWERED = "answered"
    NO_CONTEXT = "no_context"
    RETRIEVAL_UNAVAILABLE = "retrieval_unavailable"
    EMBEDDING_FAILED = "embedding_failed"
    COMPLETION_TIMED_OUT = "completion_timed_out"
    COMPLETION_FAILED = "completion_failed"


@dataclass
class ChatOutcome:
    """Result of one pass through the RAG pipeline."""

    kind: OutcomeKind
    body: str
    sources: list[str] = field(default_factory=list)
    details: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the outcome is delivered to the user as a plain-text reply."""
        return self.kind in {OutcomeKind.ANSWERED, OutcomeKind.NO_CONTEXT}
