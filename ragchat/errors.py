"""Error types raised by the pipeline stages."""


class RagChatError(RuntimeError):
    """Base class for ragchat failures."""


class EmbeddingError(RagChatError):
    """Raised when the local embedding model cannot load or encode."""


class RetrievalUnavailableError(RagChatError):
    """Raised when the vector store cannot be reached or rejects the search."""


class CompletionError(RagChatError):
    """Raised when the chat-completion endpoint fails."""

    def __init__(
        self, message: str, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CompletionTimeoutError(CompletionError):
    """Raised when the chat-completion call exceeds its timeout."""


class StoreError(RagChatError):
    """Raised when the conversation memory store fails."""
