"""Similarity search against the remote vector database."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
import requests

from .config import config
from .errors import RetrievalUnavailableError
from .models import RetrievedDocument

logger = config.get_logger(__name__)

TEXT_FIELDS = ("document", "text", "content")
SCORE_FIELDS = ("score", "similarity")
METADATA_FIELDS = ("metadata", "vector_metadata")
MAX_ERROR_BODY_LENGTH = 500


def normalize_hit(hit: Mapping[str, Any]) -> RetrievedDocument:
    """Convert a raw vector-search hit into a RetrievedDocument.

    Returns:
        RetrievedDocument with text, metadata and score filled from the first
        field present in the hit.

    Raises:
        TypeError: If the score field is not a number or string.
        ValueError: If the score field is a non-numeric string.
    """
    text = next(
        (str(hit[name]) for name in TEXT_FIELDS if hit.get(name)),
        "",
    )
    metadata = next(
        (dict(hit[name]) for name in METADATA_FIELDS if isinstance(hit.get(name), Mapping)),
        {},
    )
    score = next(
        (float(hit[name]) for name in SCORE_FIELDS if hit.get(name) is not None),
        0.0,
    )
    return RetrievedDocument(text=text, metadata=metadata, score=score)


def _has_score(hit: Mapping[str, Any]) -> bool:
    return any(hit.get(name) is not None for name in SCORE_FIELDS)


class VectorSearchClient:
    """Client for the vector database's search endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        project_id: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the search client.

        Args:
            base_url: Vector database base URL. If None, uses config.VECTOR_DB_URL.
            project_id: Project identifier. If None, uses config.PROJECT_ID.
            timeout: Request timeout in seconds. If None, uses
                config.VECTOR_SEARCH_TIMEOUT.
            session: Optional requests session to reuse connections.
        """
        self.base_url = (base_url or config.VECTOR_DB_URL).rstrip("/")
        self.project_id = project_id or config.PROJECT_ID
        self.timeout = timeout if timeout is not None else config.VECTOR_SEARCH_TIMEOUT
        self.session = session or requests.Session()

    @property
    def search_url(self) -> str:
        """Full URL of the vector search endpoint."""
        return f"{self.base_url}/v1/public/{self.project_id}/database/vectors/search"

    def search(  # noqa: PLR0913
        self,
        vector: np.ndarray | Sequence[float],
        top_k: int,
        threshold: float,
        namespace: str,
        metadata_filter: Mapping[str, Any] | None = None,
    ) -> list[RetrievedDocument]:
        """Search the vector store for documents similar to ``vector``.

        Args:
            vector: Query embedding.
            top_k: Maximum number of documents to return.
            threshold: Minimum similarity score a document must reach.
            namespace: Vector namespace to search in.
            metadata_filter: Optional metadata equality filter.

        Returns:
            Ranked documents, at most ``top_k``. May be empty.

        Raises:
            RetrievalUnavailableError: On transport failure, a non-success
                status, or a response body that is not the expected JSON.
        """
        payload: dict[str, Any] = {
            "query_vector": [float(x) for x in vector],
            "limit": top_k,
            "threshold": threshold,
            "namespace": namespace,
        }
        if metadata_filter:
            payload["filter_metadata"] = dict(metadata_filter)

        logger.info(
            "Searching namespace %s (top_k=%d, threshold=%.2f)",
            namespace,
            top_k,
            threshold,
        )
        try:
            response = self.session.post(
                self.search_url,
                json=payload,
                headers=config.get_store_headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.exception("Vector search request failed")
            msg = f"Vector search request failed: {e}"
            raise RetrievalUnavailableError(msg) from e

        if not response.ok:
            body = response.text[:MAX_ERROR_BODY_LENGTH]
            logger.error("Vector search failed: %s - %s", response.status_code, body)
            msg = f"Vector search failed: {response.status_code} - {body}"
            raise RetrievalUnavailableError(msg)

        try:
            data = response.json()
        except ValueError as e:
            logger.exception("Vector search returned invalid JSON")
            msg = "Vector search returned invalid JSON"
            raise RetrievalUnavailableError(msg) from e

        raw_hits = data.get("vectors") if isinstance(data, Mapping) else None
        documents: list[RetrievedDocument] = []
        for hit in raw_hits or []:
            if not isinstance(hit, Mapping):
                continue
            try:
                document = normalize_hit(hit)
            except (TypeError, ValueError):
                logger.warning("Skipping hit with non-numeric score: %r", hit)
                continue
            if _has_score(hit) and document.score < threshold:
                continue
            documents.append(document)
        documents = documents[:top_k]

        logger.info("Found %d relevant documents", len(documents))
        return documents
