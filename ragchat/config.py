"""Configuration management for the ragchat service."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"

if env_path.exists():
    load_dotenv(env_path)


class Config:
    """Application configuration loaded from environment variables."""

    # Chat completion (OpenAI-compatible) Configuration
    @classmethod
    def get_llm_api_key(cls) -> str:
        """Get the chat-completion API key from environment variables.

        Returns:
            Bearer token for the completion endpoint or empty string if not set.
        """
        return os.getenv("LLM_API_KEY", "")

    LLM_BASE_URL: str = os.getenv("LLM_BASE_URL", "")
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "Llama-4-Maverick-17B-128E-Instruct-FP8")
    CHAT_MAX_TOKENS: int = int(os.getenv("CHAT_MAX_TOKENS", "1000"))
    CHAT_TIMEOUT_MS: int = int(os.getenv("CHAT_TIMEOUT_MS", "30000"))

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    OPENAI_LOG_LEVEL: str = os.getenv("OPENAI_LOG_LEVEL", "WARNING").upper()

    # Embedding Configuration
    EMBEDDING_MODEL: str = os.getenv("EMBEDDING_MODEL", "BAAI/bge-small-en-v1.5")
    EMBEDDING_DIMENSION: int = int(os.getenv("EMBEDDING_DIMENSION", "384"))

    # Vector Search Configuration
    VECTOR_DB_URL: str = os.getenv("VECTOR_DB_URL", "").rstrip("/")
    VECTOR_DB_API_KEY: str = os.getenv("VECTOR_DB_API_KEY", "")
    PROJECT_ID: str = os.getenv("PROJECT_ID", "")
    VECTOR_NAMESPACE: str = os.getenv("VECTOR_NAMESPACE", "transmutes_only")
    VECTOR_TOP_K: int = int(os.getenv("VECTOR_TOP_K", "5"))
    VECTOR_SIMILARITY_THRESHOLD: float = float(
        os.getenv("VECTOR_SIMILARITY_THRESHOLD", "0.7")
    )
    VECTOR_SEARCH_TIMEOUT: float = float(os.getenv("VECTOR_SEARCH_TIMEOUT", "15.0"))

    # Conversation Memory Configuration
    MEMORY_API_URL: str = (
        os.getenv("MEMORY_API_URL", "").rstrip("/") or VECTOR_DB_URL
    )
    MEMORY_AGENT_ID: str = os.getenv(
        "MEMORY_AGENT_ID", "00000000-0000-0000-0000-000000000001"
    )
    MEMORY_MAX_WORKERS: int = int(os.getenv("MEMORY_MAX_WORKERS", "4"))
    MEMORY_TIMEOUT: float = float(os.getenv("MEMORY_TIMEOUT", "15.0"))

    # API Header Configuration
    API_USER_AGENT: str = os.getenv("API_USER_AGENT", "ragchat/1.0")

    @classmethod
    def validate(cls) -> None:
        """Validate that required configuration values are present.

        Raises:
            ValueError: If any required setting is missing.
        """
        required = {
            "LLM_API_KEY": cls.get_llm_api_key(),
            "LLM_BASE_URL": cls.LLM_BASE_URL,
            "VECTOR_DB_URL": cls.VECTOR_DB_URL,
            "VECTOR_DB_API_KEY": cls.VECTOR_DB_API_KEY,
            "PROJECT_ID": cls.PROJECT_ID,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            msg = (
                f"{', '.join(missing)} required. "
                "Please set them in .env file or environment."
            )
            raise ValueError(msg)

    @classmethod
    def setup_logging(cls) -> None:
        """Setup basic logging configuration.

        Configure logging once at application startup with:
        - Console output for all levels
        - Simple, readable format
        - Configurable level via environment variable
        """
        logging.basicConfig(
            level=getattr(logging, cls.LOG_LEVEL, logging.INFO),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )

        third_party_level = getattr(logging, cls.OPENAI_LOG_LEVEL, logging.WARNING)
        for name in ("openai", "httpx", "sentence_transformers", "urllib3"):
            logging.getLogger(name).setLevel(third_party_level)

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger with the specified name.

        Args:
            name: Logger name (typically __name__)

        Returns:
            Logger instance
        """
        return logging.getLogger(name)

    @classmethod
    def get_api_headers(cls) -> dict[str, str]:
        """Build default headers for outbound API calls.

        Returns:
            Mapping of header names to values used on outbound HTTP requests.
        """
        headers: dict[str, str] = {}

        if cls.API_USER_AGENT:
            headers["User-Agent"] = cls.API_USER_AGENT

        return headers

    @classmethod
    def get_store_headers(cls) -> dict[str, str]:
        """Build headers for the vector database and memory endpoints.

        Returns:
            Default API headers plus the JSON content type and API key.
        """
        headers = cls.get_api_headers()
        headers["Content-Type"] = "application/json"
        if cls.VECTOR_DB_API_KEY:
            headers["X-API-Key"] = cls.VECTOR_DB_API_KEY
        return headers


config = Config()
