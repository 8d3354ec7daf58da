"""Grounded prompt construction."""

from collections.abc import Mapping, Sequence
from typing import Any

from .models import PromptMessage

CONTEXT_SEPARATOR = "\n\n---\n\n"
CONTEXT_START = "START CONTEXT"
CONTEXT_END = "END CONTEXT"

SYSTEM_PROMPT_TEMPLATE = """\
You are a wise spiritual guide helping seekers explore ancient wisdom and \
enlightenment teachings. Format responses using markdown where applicable.

CRITICAL INSTRUCTION: You MUST ONLY use the wisdom provided in the context \
below. DO NOT use any knowledge outside of the provided context. Your \
responses must be based exclusively on the teachings contained between \
START CONTEXT and END CONTEXT.

{context}

Guidelines for Responses:
- Base ALL responses on the provided context only - this is non-negotiable
- Feel free to paraphrase, synthesize, and present the teachings in your own words
- Combine insights from multiple sources in the context to create comprehensive answers
- Draw connections between related teachings to provide deeper understanding
- Use a compassionate, contemplative tone that honors these spiritual traditions
- Format responses with markdown for clarity and readability
- Make each response unique by presenting the wisdom in different ways while \
staying true to the source material
- If appropriate, use metaphors or examples that are already present in the context
- You can present the same teaching in different ways depending on how the \
question is asked

IMPORTANT: Paraphrasing and synthesis are encouraged, but you must NEVER \
introduce concepts, ideas, or knowledge that don't exist in the context above. \
Every insight you share must be traceable back to the provided teachings.
"""


def build_context_block(retrieved_texts: Sequence[str]) -> str:
    """Wrap retrieved texts between the context sentinels.

    Returns:
        The context block, or an empty string when there is nothing to wrap.
    """
    if not retrieved_texts:
        return ""
    joined = CONTEXT_SEPARATOR.join(retrieved_texts)
    return f"{CONTEXT_START}\n{joined}\n{CONTEXT_END}"


def build_system_prompt(retrieved_texts: Sequence[str]) -> str:
    """Render the grounding instruction around the retrieved context."""  # noqa: DOC201
    return SYSTEM_PROMPT_TEMPLATE.format(context=build_context_block(retrieved_texts))


def _field(message: Mapping[str, Any] | Any, name: str) -> Any:  # noqa: ANN401
    if isinstance(message, Mapping):
        return message.get(name)
    return getattr(message, name, None)


def sanitize_history(history: Sequence[Mapping[str, Any] | Any]) -> list[PromptMessage]:
    """Copy history keeping only each message's role and content.

    Client-side fields such as ids or processing flags are dropped so they
    never reach the model.

    Returns:
        New list of PromptMessage dicts.
    """
    return [
        PromptMessage(
            role=_field(message, "role"),
            content=_field(message, "content") or "",
        )
        for message in history
    ]


def assemble_prompt(
    retrieved_texts: Sequence[str],
    history: Sequence[Mapping[str, Any] | Any],
) -> list[PromptMessage]:
    """Build the full message list for the completion call.

    Args:
        retrieved_texts: Document texts from retrieval, in rank order.
        history: Conversation so far, latest user message last.

    Returns:
        One system message holding the context, followed by the sanitized
        history. System messages supplied in the history are dropped.
    """
    system = PromptMessage(role="system", content=build_system_prompt(retrieved_texts))
    turns = [m for m in sanitize_history(history) if m["role"] != "system"]
    return [system, *turns]
