"""Local sentence embeddings for retrieval queries."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import numpy as np

from .config import config
from .errors import EmbeddingError

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

logger = config.get_logger(__name__)

# One model per process, keyed by model name. Loading is guarded so that
# concurrent first requests share a single load.
_MODEL_LOCK = threading.Lock()
_model_cache: dict[str, SentenceTransformer] = {}


def _load_model(model_name: str) -> SentenceTransformer:
    """Build a mean-pooled, L2-normalized sentence-transformers model."""  # noqa: DOC201
    from sentence_transformers import SentenceTransformer, models  # noqa: PLC0415

    word_embeddings = models.Transformer(model_name)
    pooling = models.Pooling(
        word_embeddings.get_word_embedding_dimension(),
        pooling_mode="mean",
    )
    return SentenceTransformer(modules=[word_embeddings, pooling, models.Normalize()])


def get_model(model_name: str) -> SentenceTransformer:
    """Return the shared embedding model, loading it on first use.

    Args:
        model_name: HuggingFace model identifier.

    Returns:
        The process-wide model instance for ``model_name``.

    Raises:
        EmbeddingError: If the model cannot be loaded.
    """
    model = _model_cache.get(model_name)
    if model is not None:
        return model

    with _MODEL_LOCK:
        model = _model_cache.get(model_name)
        if model is None:
            logger.info("Loading embedding model %s", model_name)
            try:
                model = _load_model(model_name)
            except Exception as e:
                logger.exception("Failed to load embedding model %s", model_name)
                msg = f"Embedding model {model_name} could not be loaded"
                raise EmbeddingError(msg) from e
            _model_cache[model_name] = model
            logger.info("Embedding model %s ready", model_name)
    return model


class EmbeddingService:
    """Turns query text into fixed-size, unit-length vectors."""

    def __init__(
        self,
        model_name: str | None = None,
        dimension: int | None = None,
    ) -> None:
        """Initialize the EmbeddingService.

        The model itself is not loaded until the first call to ``embed``.

        Args:
            model_name: Embedding model name. If None, uses config.EMBEDDING_MODEL.
            dimension: Expected vector length. If None, uses
                config.EMBEDDING_DIMENSION.
        """
        self.model_name = model_name or config.EMBEDDING_MODEL
        self.dimension = dimension or config.EMBEDDING_DIMENSION

    def embed(self, text: str) -> np.ndarray:
        """Get the embedding for a single query text.

        Args:
            text: The input text to embed.

        Returns:
            np.ndarray: Normalized float32 vector of length ``self.dimension``.

        Raises:
            EmbeddingError: If the model fails to load or encode, or returns
                a vector of the wrong length.
        """
        model = get_model(self.model_name)
        try:
            vector = np.asarray(
                model.encode(text, normalize_embeddings=True),
                dtype=np.float32,
            )
        except Exception as e:
            logger.exception("Error generating embedding")
            msg = "Failed to embed query"
            raise EmbeddingError(msg) from e

        if vector.shape != (self.dimension,):
            msg = (
                f"Embedding has shape {vector.shape}, "
                f"expected ({self.dimension},)"
            )
            raise EmbeddingError(msg)

        logger.debug("Generated %d-dim embedding", vector.shape[0])
        return vector
