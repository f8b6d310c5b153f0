"""Chunk persistence: abstract store, implementations and embedding codec."""

from .base import BaseChunkStore
from .duckdb import DuckDBChunkStore
from .factory import ChunkStoreFactory
from .in_memory import InMemoryChunkStore
from .serialization import format_embedding, parse_embedding

__all__ = [
    "BaseChunkStore",
    "InMemoryChunkStore",
    "DuckDBChunkStore",
    "ChunkStoreFactory",
    "format_embedding",
    "parse_embedding",
]
