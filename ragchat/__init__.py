"""ragchat - grounded chat over a remote vector knowledge base."""

from .answers import package_answer, parse_packaged_answer
from .completion import CompletionClient
from .embeddings import EmbeddingService
from .memory import ConversationStore
from .models import (
    Answer,
    ChatOutcome,
    ConversationHistory,
    OutcomeKind,
    PromptMessage,
    RetrievedDocument,
    StoredMessage,
    StoreAck,
)
from .pipeline import RAGPipeline
from .prompts import assemble_prompt, sanitize_history
from .retriever import VectorSearchClient
from .sources import extract_sources, label_for

__all__ = [
    "Answer",
    "ChatOutcome",
    "CompletionClient",
    "ConversationHistory",
    "ConversationStore",
    "EmbeddingService",
    "OutcomeKind",
    "PromptMessage",
    "RAGPipeline",
    "RetrievedDocument",
    "StoreAck",
    "StoredMessage",
    "VectorSearchClient",
    "assemble_prompt",
    "extract_sources",
    "label_for",
    "package_answer",
    "parse_packaged_answer",
    "sanitize_history",
]
