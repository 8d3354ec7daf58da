"""RAG pipeline orchestrating Embed -> Retrieve -> Prompt -> Complete."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .answers import package_answer
from .completion import CompletionClient
from .config import config
from .embeddings import EmbeddingService
from .errors import (
    CompletionError,
    CompletionTimeoutError,
    EmbeddingError,
    RetrievalUnavailableError,
)
from .models import ChatOutcome, OutcomeKind, RetrievedDocument
from .prompts import assemble_prompt
from .retriever import VectorSearchClient
from .sources import extract_sources

logger = config.get_logger(__name__)

KNOWLEDGE_BASE_UNAVAILABLE = (
    "Knowledge base unavailable. I can only answer questions based on spiritual "
    "wisdom teachings from my knowledge base. Please try again in a moment."
)
NO_RELEVANT_CONTEXT = (
    "I apologize, but I couldn't find any relevant teachings in my knowledge "
    "base to answer your question. My responses are based solely on the "
    "spiritual wisdom teachings I have access to. Please try rephrasing your "
    "question or ask about topics related to meditation, self-inquiry, "
    "consciousness, or spiritual practice."
)
EMBEDDING_UNAVAILABLE = (
    "I couldn't process your question right now. Please try again in a moment."
)
COMPLETION_TIMED_OUT = (
    "The language model took too long to respond. Please try again."
)
COMPLETION_FAILED = "The language model failed to respond."


def _latest_content(messages: Sequence[Mapping[str, Any] | Any]) -> str:
    if not messages:
        return ""
    last = messages[-1]
    content = last.get("content") if isinstance(last, Mapping) else getattr(last, "content", "")
    return content or ""


class RAGPipeline:
    """Answers one chat turn strictly from retrieved context."""

    def __init__(  # noqa: PLR0913
        self,
        embedding_service: EmbeddingService | None = None,
        search_client: VectorSearchClient | None = None,
        completion_client: CompletionClient | None = None,
        namespace: str | None = None,
        top_k: int | None = None,
        threshold: float | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            embedding_service: Query embedder. Defaults to EmbeddingService().
            search_client: Vector search client. Defaults to
                VectorSearchClient().
            completion_client: Completion client. Defaults to
                CompletionClient().
            namespace: Vector namespace. If None, uses config.VECTOR_NAMESPACE.
            top_k: Documents to retrieve. If None, uses config.VECTOR_TOP_K.
            threshold: Minimum similarity. If None, uses
                config.VECTOR_SIMILARITY_THRESHOLD.
        """
        self.embedding_service = embedding_service or EmbeddingService()
        self.search_client = search_client or VectorSearchClient()
        self.completion_client = completion_client or CompletionClient()
        self.namespace = namespace or config.VECTOR_NAMESPACE
        self.top_k = top_k or config.VECTOR_TOP_K
        self.threshold = (
            threshold if threshold is not None else config.VECTOR_SIMILARITY_THRESHOLD
        )

    def retrieve(
        self, question: str, similarity_metric: str | None = None
    ) -> list[RetrievedDocument]:
        """Embed the question and search the knowledge base.

        Returns:
            Ranked documents, possibly empty.

        Raises:
            EmbeddingError: If the query cannot be embedded.
            RetrievalUnavailableError: If the vector store call fails.
        """
        logger.info("Processing query: %s", question)
        query_vector = self.embedding_service.embed(question)
        metadata_filter = (
            {"similarity_metric": similarity_metric} if similarity_metric else None
        )
        return self.search_client.search(
            query_vector,
            top_k=self.top_k,
            threshold=self.threshold,
            namespace=self.namespace,
            metadata_filter=metadata_filter,
        )

    def respond(
        self,
        messages: Sequence[Mapping[str, Any] | Any],
        *,
        use_rag: bool = True,
        llm: str | None = None,
        similarity_metric: str | None = None,
    ) -> ChatOutcome:
        """Run one chat turn through the pipeline.

        Args:
            messages: Conversation so far; the last message is the question.
            use_rag: Whether to ground the answer in retrieved context.
            llm: Optional model override for this turn.
            similarity_metric: Optional metadata filter for the search.

        Returns:
            ChatOutcome describing the answer or the stage that stopped the turn.
        """
        documents: list[RetrievedDocument] = []
        sources: list[str] = []

        if use_rag:
            try:
                documents = self.retrieve(_latest_content(messages), similarity_metric)
            except EmbeddingError as e:
                logger.exception("Embedding failed")
                return ChatOutcome(
                    kind=OutcomeKind.EMBEDDING_FAILED,
                    body=EMBEDDING_UNAVAILABLE,
                    details=str(e),
                )
            except RetrievalUnavailableError as e:
                logger.exception("Knowledge base unavailable")
                return ChatOutcome(
                    kind=OutcomeKind.RETRIEVAL_UNAVAILABLE,
                    body=KNOWLEDGE_BASE_UNAVAILABLE,
                    details=str(e),
                )

            if not documents:
                logger.info("No relevant documents, skipping completion")
                return ChatOutcome(kind=OutcomeKind.NO_CONTEXT, body=NO_RELEVANT_CONTEXT)

            sources = extract_sources(documents)

        prompt = assemble_prompt([doc.text for doc in documents], messages)

        try:
            answer = self.completion_client.complete(prompt, model=llm)
        except CompletionTimeoutError as e:
            logger.warning("Completion timed out: %s", e)
            return ChatOutcome(
                kind=OutcomeKind.COMPLETION_TIMED_OUT,
                body=COMPLETION_TIMED_OUT,
                details=str(e),
            )
        except CompletionError as e:
            logger.exception("Completion failed")
            return ChatOutcome(
                kind=OutcomeKind.COMPLETION_FAILED,
                body=COMPLETION_FAILED,
                details=str(e),
            )

        for i, document in enumerate(documents):
            logger.info("  Context %d: score %.4f", i + 1, document.score)
            logger.debug("  Preview: %s...", document.text[:100])

        return ChatOutcome(
            kind=OutcomeKind.ANSWERED,
            body=package_answer(answer, sources),
            sources=sources,
        )
