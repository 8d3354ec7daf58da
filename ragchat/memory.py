"""Conversation persistence against the remote memory API."""

from __future__ import annotations

import datetime
import uuid
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from .config import config
from .errors import StoreError
from .models import ConversationHistory, StoredMessage, StoreAck

logger = config.get_logger(__name__)

DEFAULT_TITLE = "New Conversation"
MAX_TITLE_LENGTH = 50


def is_uuid(value: str) -> bool:
    """Check whether ``value`` is a well-formed UUID string.

    Returns:
        True if ``value`` parses as a UUID in canonical hyphenated form.
    """
    try:
        return str(uuid.UUID(value)) == value.lower()
    except (ValueError, AttributeError, TypeError):
        return False


def session_uuid_for(conversation_id: str) -> str:
    """Return the storage session id for a conversation.

    Ids that are already UUIDs are used as is; anything else gets a freshly
    generated UUID, so callers must keep the original id alongside it.

    Returns:
        A UUID string.
    """
    return conversation_id if is_uuid(conversation_id) else str(uuid.uuid4())


def conversation_title(messages: Sequence[Mapping[str, Any]]) -> str:
    """Title a conversation after its first user message.

    Returns:
        The first user message, truncated to MAX_TITLE_LENGTH characters
        with an ellipsis, or DEFAULT_TITLE when there is none.
    """
    first_user = next((m for m in messages if m.get("role") == "user"), None)
    if first_user is None:
        return DEFAULT_TITLE
    content = str(first_user.get("content") or "")
    if len(content) > MAX_TITLE_LENGTH:
        return content[:MAX_TITLE_LENGTH] + "..."
    return content


def _created_at_key(item: Mapping[str, Any]) -> datetime.datetime:
    raw = item.get("created_at")
    if not raw:
        return datetime.datetime.min.replace(tzinfo=datetime.UTC)
    try:
        parsed = datetime.datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return datetime.datetime.min.replace(tzinfo=datetime.UTC)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.UTC)
    return parsed


def _metadata(item: Mapping[str, Any]) -> Mapping[str, Any]:
    metadata = item.get("memory_metadata")
    return metadata if isinstance(metadata, Mapping) else {}


class ConversationStore:
    """Stores and loads conversation messages keyed by session UUID."""

    def __init__(
        self,
        base_url: str | None = None,
        project_id: str | None = None,
        agent_id: str | None = None,
        max_workers: int | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize the ConversationStore.

        Args:
            base_url: Memory API base URL. If None, uses config.MEMORY_API_URL.
            project_id: Project identifier. If None, uses config.PROJECT_ID.
            agent_id: Agent UUID messages are filed under. If None, uses
                config.MEMORY_AGENT_ID.
            max_workers: Thread pool size for concurrent writes.
            timeout: Per-request timeout in seconds.
            session: Optional requests session to reuse connections.
        """
        self.base_url = (base_url or config.MEMORY_API_URL).rstrip("/")
        self.project_id = project_id or config.PROJECT_ID
        self.agent_id = agent_id or config.MEMORY_AGENT_ID
        self.max_workers = max_workers or config.MEMORY_MAX_WORKERS
        self.timeout = timeout if timeout is not None else config.MEMORY_TIMEOUT
        self.session = session or requests.Session()

    @property
    def memory_url(self) -> str:
        """Full URL of the memory endpoint."""
        return f"{self.base_url}/v1/public/{self.project_id}/database/memory"

    def _store_message(
        self,
        session_uuid: str,
        conversation_id: str,
        message: Mapping[str, Any],
    ) -> dict[str, Any]:
        payload = {
            "session_id": session_uuid,
            "agent_id": self.agent_id,
            "role": message.get("role"),
            "content": message.get("content"),
            "metadata": {
                "message_id": message.get("id"),
                "original_conversation_id": conversation_id,
                "timestamp": datetime.datetime.now(tz=datetime.UTC).isoformat(),
            },
        }
        try:
            response = self.session.post(
                self.memory_url,
                json=payload,
                headers=config.get_store_headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            msg = f"Failed to store message {message.get('id')}: {e}"
            raise StoreError(msg) from e

    def store(
        self,
        conversation_id: str,
        messages: Sequence[Mapping[str, Any]],
    ) -> StoreAck:
        """Persist every message of a conversation.

        Messages are written concurrently; order is recovered on fetch from
        creation timestamps. Write failures are logged, never raised.

        Args:
            conversation_id: Client conversation id, UUID or not.
            messages: Messages with ``id``, ``role`` and ``content``.

        Returns:
            StoreAck with the number of messages stored and the session UUID
            they were filed under.
        """
        session_uuid = session_uuid_for(conversation_id)
        title = conversation_title(messages)
        logger.info(
            "Storing conversation %s (%s) with %d messages",
            conversation_id,
            title,
            len(messages),
        )
        if not messages:
            return StoreAck(success=True, count=0, session_uuid=session_uuid, title=title)

        stored = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self._store_message, session_uuid, conversation_id, m)
                for m in messages
            ]
            for future in futures:
                try:
                    future.result()
                except StoreError:
                    logger.exception("Conversation store write failed")
                else:
                    stored += 1

        success = stored == len(messages)
        if not success:
            logger.warning(
                "Stored %d of %d messages for conversation %s",
                stored,
                len(messages),
                conversation_id,
            )
        return StoreAck(
            success=success, count=stored, session_uuid=session_uuid, title=title
        )

    def _list_memories(self, conversation_id: str) -> list[dict[str, Any]]:
        params = {"agent_id": self.agent_id}
        if is_uuid(conversation_id):
            params["session_id"] = conversation_id
        try:
            response = self.session.get(
                self.memory_url,
                params=params,
                headers=config.get_store_headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            msg = f"Memory API request failed: {e}"
            raise StoreError(msg) from e

        if not response.ok:
            msg = f"Memory API error: {response.status_code} - {response.text}"
            raise StoreError(msg)

        try:
            data = response.json()
        except ValueError as e:
            msg = "Memory API returned invalid JSON"
            raise StoreError(msg) from e
        items = data.get("data") if isinstance(data, Mapping) else None
        return [item for item in items or [] if isinstance(item, Mapping)]

    def fetch(self, conversation_id: str) -> ConversationHistory:
        """Load the messages of a conversation in creation order.

        Matches entries on the session UUID or on the original conversation
        id recorded in their metadata. Failures yield an empty history with
        ``error`` set.

        Returns:
            ConversationHistory for ``conversation_id``.
        """
        logger.info("Loading conversation %s", conversation_id)
        try:
            items = self._list_memories(conversation_id)
        except StoreError as e:
            logger.exception("Conversation fetch failed")
            return ConversationHistory(messages=[], error=str(e))

        try:
            messages = self._to_messages(conversation_id, items)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.exception("Conversation %s has malformed memories", conversation_id)
            return ConversationHistory(messages=[], error=str(e))
        return ConversationHistory(messages=messages)

    def _to_messages(
        self, conversation_id: str, items: Sequence[Mapping[str, Any]]
    ) -> list[StoredMessage]:
        matching = [
            item
            for item in items
            if item.get("session_id") == conversation_id
            or _metadata(item).get("original_conversation_id") == conversation_id
        ]
        matching.sort(key=_created_at_key)
        logger.info(
            "Found %d memories for %s out of %d",
            len(matching),
            conversation_id,
            len(items),
        )

        return [
            StoredMessage(
                id=str(
                    _metadata(item).get("message_id")
                    or item.get("memory_id")
                    or uuid.uuid4()
                ),
                role=str(item.get("role") or ""),
                content=str(item.get("content") or ""),
                created_at=item.get("created_at"),
            )
            for item in matching
        ]
