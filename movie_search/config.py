import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str, default: Optional[float] = None) -> Optional[float]:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    return float(raw)


class Settings:
    """Process-wide settings, resolved from the environment once at startup."""

    # --- 🔒 SECURE CREDENTIALS ---
    WIT_TOKEN: str = os.getenv("WIT_TOKEN", "")
    PINECONE_API_KEY: str = os.getenv("PINECONE_API_KEY", "")
    COMPLETION_API_KEY: str = os.getenv("COMPLETION_API_KEY", "")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")

    # --- ENTITY EXTRACTION (Wit.ai) ---
    WIT_API_URL: str = os.getenv("WIT_API_URL", "https://api.wit.ai/message")
    WIT_API_VERSION: str = os.getenv("WIT_API_VERSION", "20250206")
    WIT_TIMEOUT: Optional[float] = _optional_float("WIT_TIMEOUT")

    # --- EMBEDDINGS ---
    EMBEDDING_BACKEND: str = os.getenv("EMBEDDING_BACKEND", "subprocess")
    EMBEDDER_COMMAND: str = os.getenv("EMBEDDER_COMMAND", "")
    EMBEDDER_TIMEOUT: Optional[float] = _optional_float("EMBEDDER_TIMEOUT")
    GEMINI_EMBEDDING_MODEL: str = os.getenv("GEMINI_EMBEDDING_MODEL", "models/text-embedding-004")

    # --- VECTOR SEARCH (Pinecone) ---
    PINECONE_INDEX: str = os.getenv("PINECONE_INDEX", "movie-search")
    PINECONE_HOST: str = os.getenv("PINECONE_HOST", "")
    PINECONE_NAMESPACE: str = os.getenv("PINECONE_NAMESPACE", "")

    # --- COMPLETION (OpenRouter compatible) ---
    COMPLETION_API_URL: str = os.getenv("COMPLETION_API_URL", "https://openrouter.ai/api/v1/chat/completions")
    COMPLETION_MODEL: str = os.getenv("COMPLETION_MODEL", "nvidia/llama-3.1-nemotron-70b-instruct:free")
    COMPLETION_TIMEOUT: Optional[float] = _optional_float("COMPLETION_TIMEOUT", 120.0)
    COMPLETION_REFERER: str = os.getenv("COMPLETION_REFERER", "https://localhost:8080")
    COMPLETION_TITLE: str = os.getenv("COMPLETION_TITLE", "Movie Recommendations")

    # --- CALL POLICY ---
    RETRY_ATTEMPTS: int = int(os.getenv("RETRY_ATTEMPTS", "1"))
    RETRY_BACKOFF: float = float(os.getenv("RETRY_BACKOFF", "0"))

    # --- SERVER ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    CORS_ORIGINS: List[str] = os.getenv("CORS_ORIGINS", "*").split(",")

    def missing_credentials(self) -> List[str]:
        """Names of the provider credentials that are not configured."""
        required = {
            "WIT_TOKEN": self.WIT_TOKEN,
            "PINECONE_API_KEY": self.PINECONE_API_KEY,
            "COMPLETION_API_KEY": self.COMPLETION_API_KEY,
        }
        if self.EMBEDDING_BACKEND == "gemini":
            required["GEMINI_API_KEY"] = self.GEMINI_API_KEY
        else:
            required["EMBEDDER_COMMAND"] = self.EMBEDDER_COMMAND
        return [name for name, value in required.items() if not value]


settings = Settings()
