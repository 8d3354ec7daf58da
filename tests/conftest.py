"""Test configuration and fixtures for ragchat tests.

This module provides reusable test fixtures organized by functionality:
- Constants and test data
- Mock services and HTTP responses
- Stage client fixtures
- Pipeline and API fixtures
"""

import hashlib
from unittest.mock import Mock, create_autospec

import numpy as np
import pytest
import requests
from fastapi.testclient import TestClient

from ragchat import (
    CompletionClient,
    ConversationStore,
    EmbeddingService,
    RAGPipeline,
    RetrievedDocument,
    VectorSearchClient,
)
from ragchat.api import app, get_conversation_store, get_pipeline


class TestConstants:
    """Centralized test constants to avoid repetition across test files."""

    # API Configuration
    TEST_API_KEY = "test-key"
    TEST_LLM_BASE_URL = "http://llm.test/v1"
    TEST_CHAT_MODEL = "test-chat-model"
    TEST_VECTOR_DB_URL = "http://vectors.test"
    TEST_PROJECT_ID = "project-123"
    TEST_NAMESPACE = "test_namespace"
    TEST_AGENT_ID = "00000000-0000-0000-0000-000000000001"

    # Retrieval Configuration
    DEFAULT_EMBEDDING_DIMENSION = 384
    DEFAULT_TOP_K = 5
    DEFAULT_THRESHOLD = 0.7

    # Completion Configuration
    DEFAULT_MAX_TOKENS = 1000
    DEFAULT_TIMEOUT_MS = 30000

    TEST_CONVERSATION_UUID = "3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b"


class MockEmbeddingService:
    """Mock embedding service for testing without loading a model.

    Generates deterministic embeddings based on text content hash,
    ensuring consistent test results across runs.
    """

    def __init__(
        self, dimension: int = TestConstants.DEFAULT_EMBEDDING_DIMENSION
    ) -> None:
        self.dimension = dimension
        self.calls: list[str] = []

    def embed(self, text: str) -> np.ndarray:
        """Generate deterministic mock embedding based on text hash."""
        self.calls.append(text)
        seed = int.from_bytes(
            hashlib.sha256(text.lower().encode("utf-8")).digest()[:8],
            byteorder="big",
            signed=False,
        )
        rng = np.random.default_rng(seed)
        embedding = rng.normal(0, 1, self.dimension)
        return (embedding / np.linalg.norm(embedding)).astype(np.float32)


def create_mock_http_response(
    status_code: int = 200,
    json_data=None,
    text: str = "",
    json_error: Exception | None = None,
) -> Mock:
    """Create a mock ``requests.Response``.

    Args:
        status_code: HTTP status to report.
        json_data: Payload returned by ``.json()``.
        text: Raw body text.
        json_error: Exception raised by ``.json()`` instead of returning data.

    Returns:
        Mock object behaving like a requests response.
    """
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    if response.ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Error"
        )
    return response


def make_hit(text: str, score: float = 0.9, **metadata) -> dict:
    """Build a raw vector-search hit as returned by the vector database."""
    return {"document": text, "score": score, "metadata": metadata}


@pytest.fixture
def mock_session():
    """A requests.Session stand-in whose calls can be configured per test."""
    return Mock(spec=requests.Session)


@pytest.fixture
def search_client(mock_session):
    """VectorSearchClient pointed at a test URL with a mocked session."""
    return VectorSearchClient(
        base_url=TestConstants.TEST_VECTOR_DB_URL,
        project_id=TestConstants.TEST_PROJECT_ID,
        timeout=5.0,
        session=mock_session,
    )


@pytest.fixture
def conversation_store(mock_session):
    """ConversationStore pointed at a test URL with a mocked session."""
    return ConversationStore(
        base_url=TestConstants.TEST_VECTOR_DB_URL,
        project_id=TestConstants.TEST_PROJECT_ID,
        agent_id=TestConstants.TEST_AGENT_ID,
        max_workers=2,
        timeout=5.0,
        session=mock_session,
    )


@pytest.fixture
def mock_embedding_service():
    """Pre-configured MockEmbeddingService for consistent test embeddings."""
    return MockEmbeddingService()


@pytest.fixture
def sample_documents():
    """Retrieved documents covering each labelling path."""
    return [
        RetrievedDocument(
            text="The mind is like a lake; when still, it reflects clearly.",
            metadata={"title": "Teaching A"},
            score=0.92,
        ),
        RetrievedDocument(
            text="---\nshort\nSilence is the language of the awakened heart",
            metadata={},
            score=0.85,
        ),
        RetrievedDocument(text="tiny", metadata={}, score=0.75),
    ]


@pytest.fixture
def mock_search_client(sample_documents):
    """Autospecced VectorSearchClient returning the sample documents."""
    client = create_autospec(VectorSearchClient, instance=True)
    client.search.return_value = sample_documents
    return client


@pytest.fixture
def mock_completion_client():
    """Autospecced CompletionClient returning a fixed answer."""
    client = create_autospec(CompletionClient, instance=True)
    client.complete.return_value = "Stillness reveals what is already here."
    return client


@pytest.fixture
def pipeline_factory(mock_embedding_service, mock_search_client, mock_completion_client):
    """Factory for RAGPipeline instances wired to mock stages."""

    def _create_pipeline(
        embedding_service=None,
        search_client=None,
        completion_client=None,
    ) -> RAGPipeline:
        return RAGPipeline(
            embedding_service=embedding_service or mock_embedding_service,
            search_client=search_client or mock_search_client,
            completion_client=completion_client or mock_completion_client,
            namespace=TestConstants.TEST_NAMESPACE,
            top_k=TestConstants.DEFAULT_TOP_K,
            threshold=TestConstants.DEFAULT_THRESHOLD,
        )

    return _create_pipeline


@pytest.fixture
def pipeline(pipeline_factory):
    """Default RAGPipeline wired to mock stages."""
    return pipeline_factory()


@pytest.fixture
def mock_embedding_spec():
    """Autospecced EmbeddingService for failure scenarios."""
    return create_autospec(EmbeddingService, instance=True)


@pytest.fixture
def api_client_factory():
    """Factory for TestClient instances with overridden dependencies."""
    created: list[TestClient] = []

    def _create_client(pipeline=None, store=None) -> TestClient:
        if pipeline is not None:
            app.dependency_overrides[get_pipeline] = lambda: pipeline
        if store is not None:
            app.dependency_overrides[get_conversation_store] = lambda: store
        client = TestClient(app)
        created.append(client)
        return client

    yield _create_client

    app.dependency_overrides.clear()
    for client in created:
        client.close()
