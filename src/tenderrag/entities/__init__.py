from .chunk import Chunk, SearchSource, StoredChunk
from .ingestion import IngestionReport, IngestionStatus
from .owner import ChunkOwner, TenderRecord
from .search_result import ChunkMatch, SearchResult, SearchScope

__all__ = [
    "Chunk",
    "StoredChunk",
    "SearchSource",
    "ChunkOwner",
    "TenderRecord",
    "ChunkMatch",
    "SearchResult",
    "SearchScope",
    "IngestionReport",
    "IngestionStatus",
]
