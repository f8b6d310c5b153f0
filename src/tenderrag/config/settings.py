import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# This file: src/tenderrag/config/settings.py
SERVER_ROOT = Path(__file__).resolve().parent.parent.parent.parent
ENV_PATH = SERVER_ROOT / ".env"

if ENV_PATH.exists():
    load_dotenv(ENV_PATH)
else:
    # Fallback to simple load_dotenv which looks in cwd
    load_dotenv()


class Settings(BaseModel):
    """Global Application Settings"""

    # Environment
    ENV: str = Field(default="development", description="Environment: development, production, testing")
    LOG_LEVEL: str = Field(default="INFO", description="Log level")

    # Embedding provider (OpenAI/Voyage-compatible REST endpoint)
    EMBEDDING_API_KEY: Optional[str] = Field(default=None, description="Embedding API key")
    EMBEDDING_API_ENDPOINT: str = Field(
        default="https://api.voyageai.com/v1/embeddings", description="Embedding endpoint URL"
    )
    EMBEDDING_MODEL: str = Field(default="voyage-3", description="Embedding model name")
    EMBEDDING_DIMENSIONS: int = Field(default=1536, ge=1, description="Embedding vector length")
    EMBEDDING_BATCH_SIZE: int = Field(default=20, ge=1, description="Texts per embedding request")
    EMBEDDING_MAX_INPUT_LENGTH: int = Field(default=8000, ge=1, description="Characters sent per text")

    # Chunking
    CHUNK_SIZE: int = Field(default=1000, description="Chunk size in characters")
    CHUNK_OVERLAP: int = Field(default=200, description="Overlap between chunks in characters")

    # Chunk store
    CHUNK_STORE_TYPE: str = Field(default="memory", description="Chunk store: memory, duckdb")
    DUCKDB_PATH: str = Field(default="storage/tenderrag.duckdb", description="Path to DuckDB storage")

    model_config = {
        "frozen": True,
        "arbitrary_types_allowed": True
    }


def load_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings(
        ENV=os.getenv("ENV", "development"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        EMBEDDING_API_KEY=os.getenv("EMBEDDING_API_KEY") or None,
        EMBEDDING_API_ENDPOINT=os.getenv("EMBEDDING_API_ENDPOINT") or "https://api.voyageai.com/v1/embeddings",
        EMBEDDING_MODEL=os.getenv("EMBEDDING_MODEL") or "voyage-3",
        EMBEDDING_DIMENSIONS=int(os.getenv("EMBEDDING_DIMENSIONS", "1536")),
        EMBEDDING_BATCH_SIZE=int(os.getenv("EMBEDDING_BATCH_SIZE", "20")),
        EMBEDDING_MAX_INPUT_LENGTH=int(os.getenv("EMBEDDING_MAX_INPUT_LENGTH", "8000")),
        CHUNK_SIZE=int(os.getenv("CHUNK_SIZE", "1000")),
        CHUNK_OVERLAP=int(os.getenv("CHUNK_OVERLAP", "200")),
        CHUNK_STORE_TYPE=os.getenv("CHUNK_STORE_TYPE", "memory"),
        DUCKDB_PATH=os.getenv("DUCKDB_PATH", str(SERVER_ROOT / "storage/tenderrag.duckdb")),
    )
