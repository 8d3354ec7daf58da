"""Wire format for answers carrying their sources."""

import json
from collections.abc import Sequence

from .config import config
from .models import Answer

logger = config.get_logger(__name__)

SOURCES_DELIMITER = "___SOURCES___"
SOURCES_PREFIX = f"\n\n{SOURCES_DELIMITER}\n"
MAX_SOURCES = 5


def package_answer(text: str, sources: Sequence[str]) -> str:
    """Append the sources block to an answer.

    Returns:
        ``text`` followed by the delimiter and a JSON array of at most
        MAX_SOURCES labels, or ``text`` unchanged when there are no sources.
    """
    if not sources:
        return text
    return f"{text}{SOURCES_PREFIX}{json.dumps(list(sources[:MAX_SOURCES]))}"


def parse_packaged_answer(raw: str) -> Answer:
    """Split a packaged answer back into text and sources.

    Malformed trailing data never raises: the whole input becomes the answer
    text with no sources.

    Returns:
        The parsed Answer.
    """
    head, delimiter, tail = raw.rpartition(SOURCES_DELIMITER)
    if not delimiter:
        return Answer(text=raw)

    try:
        sources = json.loads(tail.strip())
    except ValueError:
        logger.warning("Failed to parse sources trailer")
        return Answer(text=raw)

    if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
        logger.warning("Sources trailer is not a list of strings")
        return Answer(text=raw)

    text = head.removesuffix("\n\n")
    return Answer(text=text, sources=sources)
