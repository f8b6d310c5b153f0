"""Search entities: scope, raw store hits, and ranked results."""

from datetime import datetime

from pydantic import BaseModel, Field

from .chunk import SearchSource


class SearchScope(BaseModel):
    """Project/organization boundary for a search. Empty means unrestricted."""

    project_id: str | None = None
    organization_id: str | None = None

    model_config = {"frozen": True}


class ChunkMatch(BaseModel):
    """A candidate chunk returned by a chunk store query.

    Attributes:
        similarity: Vector similarity when the hit came from a nearest-neighbour
            query, None for lexical hits.
    """

    chunk_id: str
    owner_id: str
    source: SearchSource
    title: str
    content: str
    chunk_index: int = 0
    similarity: float | None = None
    published_at: datetime | None = None


class SearchResult(BaseModel):
    """Represents a ranked context result handed to the generation caller.

    Attributes:
        id: Identifier of the owning document or tender record
        relevance: Higher is more relevant; only comparable within one response
    """

    source: SearchSource
    id: str
    title: str
    snippet: str
    relevance: float = Field(..., ge=0.0)
    chunk_id: str
    published_at: datetime | None = None

    model_config = {
        "frozen": True,  # Results are immutable
    }
