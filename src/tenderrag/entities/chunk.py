"""Chunk entities: a slice of source text and its persisted form."""

from enum import StrEnum

from pydantic import BaseModel, Field


class SearchSource(StrEnum):
    DOCUMENT = "document"                # Uploaded project document
    EXTERNAL_TENDER = "external_tender"  # Harvested TenderNed record


class Chunk(BaseModel):
    """
    A contiguous slice of a source document's text.

    The embedding is absent until the embedding call for this chunk succeeds.
    """

    content: str = Field(..., min_length=1)
    chunk_index: int = Field(..., ge=0)
    token_count: int = Field(..., ge=1)
    embedding: list[float] | None = Field(default=None)


class StoredChunk(Chunk):
    """A chunk row as held by a chunk store."""

    id: str
    owner_id: str
    source: SearchSource = SearchSource.DOCUMENT
