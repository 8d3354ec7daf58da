"""Request and response bodies for the HTTP API."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessageIn(BaseModel):
    """A chat message as sent by the UI; extra client fields are ignored."""

    model_config = ConfigDict(extra="ignore")

    role: Literal["system", "user", "assistant"]
    content: str = ""


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessageIn] = Field(min_length=1)
    use_rag: bool = Field(default=True, alias="useRag")
    llm: str | None = None
    similarity_metric: str | None = Field(default=None, alias="similarityMetric")


class ConversationMessageIn(BaseModel):
    """A conversation message to persist."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    role: str
    content: str = ""


class ConversationRequest(BaseModel):
    """Body of ``POST /api/conversations``."""

    model_config = ConfigDict(populate_by_name=True)

    action: str
    conversation_id: str = Field(alias="conversationId")
    messages: list[ConversationMessageIn] = Field(default_factory=list)


class StoreResponse(BaseModel):
    """Acknowledgement returned after storing a conversation."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    count: int
    session_uuid: str = Field(alias="sessionUuid")
    title: str


class ConversationMessageOut(BaseModel):
    """A stored message as returned to the UI."""

    id: str
    role: str
    content: str


class ConversationResponse(BaseModel):
    """Messages of a conversation, with an error flag when loading failed."""

    messages: list[ConversationMessageOut]
    error: str | None = None
