"""
TenderRAG - Retrieval context pipeline for public-procurement documents.

Chunks uploaded tender documents and harvested TenderNed records, embeds the
chunks, and answers semantic searches with ranked context snippets.
"""

__version__ = "0.1.0"

from .config import ChunkingConfig, IngestionConfig, SearchConfig, Settings, load_settings
from .datasource.store import (
    BaseChunkStore,
    ChunkStoreFactory,
    DuckDBChunkStore,
    InMemoryChunkStore,
)
from .embedder import BaseEmbedder, EmbedderFactory, HttpEmbedder, MockEmbedder, UnconfiguredEmbedder
from .engine import RAGEngine
from .entities import (
    Chunk,
    ChunkOwner,
    IngestionReport,
    IngestionStatus,
    SearchResult,
    SearchScope,
    SearchSource,
    TenderRecord,
)
from .index_processor.splitter import TextChunker, chunk_text
from .pipeline import IngestionPipeline, build_tender_text
from .retrieval import (
    SemanticSearchEngine,
    calculate_text_relevance,
    extract_snippet,
    format_context_for_prompt,
    search_context,
)

__all__ = [
    "__version__",
    # Engine
    "RAGEngine",
    # Configuration
    "Settings",
    "load_settings",
    "ChunkingConfig",
    "IngestionConfig",
    "SearchConfig",
    # Entities
    "Chunk",
    "ChunkOwner",
    "TenderRecord",
    "SearchSource",
    "SearchScope",
    "SearchResult",
    "IngestionReport",
    "IngestionStatus",
    # Components
    "TextChunker",
    "chunk_text",
    "BaseEmbedder",
    "HttpEmbedder",
    "MockEmbedder",
    "UnconfiguredEmbedder",
    "EmbedderFactory",
    "BaseChunkStore",
    "InMemoryChunkStore",
    "DuckDBChunkStore",
    "ChunkStoreFactory",
    "IngestionPipeline",
    "build_tender_text",
    "SemanticSearchEngine",
    "calculate_text_relevance",
    "extract_snippet",
    "search_context",
    "format_context_for_prompt",
]
