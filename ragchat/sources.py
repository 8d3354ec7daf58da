"""Human-readable source labels for retrieved documents."""

from collections.abc import Sequence

from .config import config
from .models import RetrievedDocument

logger = config.get_logger(__name__)

MAX_SOURCES = 5
MIN_LINE_LENGTH = 15
MAX_LABEL_LENGTH = 50
SEPARATOR_LINE = "---"
TITLE_FIELDS = ("title", "source", "name")


def _metadata_title(document: RetrievedDocument) -> str | None:
    for name in TITLE_FIELDS:
        value = document.metadata.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _first_meaningful_line(text: str) -> str | None:
    lines = (line.strip() for line in text.split("\n"))
    for line in lines:
        if (
            len(line) > MIN_LINE_LENGTH
            and line != SEPARATOR_LINE
            and not line.startswith("http")
        ):
            if len(line) > MAX_LABEL_LENGTH:
                return line[:MAX_LABEL_LENGTH] + "..."
            return line
    return None


def label_for(document: RetrievedDocument, index: int) -> str:
    """Derive a short label for a retrieved document.

    Tries the metadata title, source or name first, then the first meaningful
    line of the text, then a positional label.

    Args:
        document: The retrieved document.
        index: Zero-based rank of the document in the search results.

    Returns:
        The label string.
    """
    return (
        _metadata_title(document)
        or _first_meaningful_line(document.text)
        or f"Source {index + 1}"
    )


def extract_sources(documents: Sequence[RetrievedDocument]) -> list[str]:
    """Label the top-ranked documents, dropping duplicate labels.

    Returns:
        At most MAX_SOURCES unique labels in rank order.
    """
    labels = [
        label_for(document, index)
        for index, document in enumerate(documents[:MAX_SOURCES])
    ]
    unique = list(dict.fromkeys(labels))[:MAX_SOURCES]
    logger.info("Unique sources: %s", unique)
    return unique
