"""HTTP interface using FastAPI."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import config
from .memory import ConversationStore
from .models import OutcomeKind
from .pipeline import RAGPipeline
from .schemas import (
    ChatRequest,
    ConversationMessageOut,
    ConversationRequest,
    ConversationResponse,
    StoreResponse,
)

config.setup_logging()
logger = config.get_logger(__name__)

ERROR_STATUS: dict[OutcomeKind, int] = {
    OutcomeKind.RETRIEVAL_UNAVAILABLE: 503,
    OutcomeKind.EMBEDDING_FAILED: 500,
    OutcomeKind.COMPLETION_TIMED_OUT: 504,
    OutcomeKind.COMPLETION_FAILED: 502,
}


@lru_cache(maxsize=1)
def get_pipeline() -> RAGPipeline:
    """Return the process-wide RAG pipeline."""  # noqa: DOC201
    return RAGPipeline()


@lru_cache(maxsize=1)
def get_conversation_store() -> ConversationStore:
    """Return the process-wide conversation store."""  # noqa: DOC201
    return ConversationStore()


app = FastAPI(title="ragchat")


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe."""  # noqa: DOC201
    return {"status": "ok"}


@app.post("/api/chat")
def chat(
    request: ChatRequest,
    pipeline: Annotated[RAGPipeline, Depends(get_pipeline)],
) -> Response:
    """Answer the latest message, grounded in the knowledge base.

    Returns:
        Plain text on success or when nothing relevant was found, otherwise
        a JSON error with a status matching the failed stage.
    """
    outcome = pipeline.respond(
        request.messages,
        use_rag=request.use_rag,
        llm=request.llm,
        similarity_metric=request.similarity_metric,
    )
    if outcome.ok:
        return PlainTextResponse(outcome.body)

    content = {"error": outcome.body}
    if outcome.kind is OutcomeKind.COMPLETION_FAILED and outcome.details:
        content["details"] = outcome.details
    return JSONResponse(content, status_code=ERROR_STATUS[outcome.kind])


@app.post("/api/conversations", response_model=StoreResponse)
def store_conversation(
    request: ConversationRequest,
    store: Annotated[ConversationStore, Depends(get_conversation_store)],
) -> StoreResponse | JSONResponse:
    """Persist a conversation's messages.

    Returns:
        The store acknowledgement, or 400 for an unknown action.
    """
    if request.action != "store":
        return JSONResponse({"error": "Invalid action"}, status_code=400)

    ack = store.store(
        request.conversation_id,
        [message.model_dump() for message in request.messages],
    )
    return StoreResponse(
        success=ack.success,
        count=ack.count,
        session_uuid=ack.session_uuid,
        title=ack.title,
    )


@app.get(
    "/api/conversations",
    response_model=ConversationResponse,
    response_model_exclude_none=True,
)
def load_conversation(
    store: Annotated[ConversationStore, Depends(get_conversation_store)],
    conversation_id: Annotated[str | None, Query(alias="conversationId")] = None,
) -> ConversationResponse | JSONResponse:
    """Load a conversation's messages; failures still answer 200.

    Returns:
        The messages in creation order, or 400 when no id was given.
    """
    if not conversation_id:
        return JSONResponse({"error": "Missing conversationId"}, status_code=400)

    history = store.fetch(conversation_id)
    return ConversationResponse(
        messages=[
            ConversationMessageOut(id=m.id, role=m.role, content=m.content)
            for m in history.messages
        ],
        error="Failed to fetch conversation" if history.error else None,
    )
