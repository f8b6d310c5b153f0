"""Ingestion report returned by the pipeline."""

from enum import StrEnum

from pydantic import BaseModel, Field


class IngestionStatus(StrEnum):
    COMPLETE = "complete"      # Every chunk has an embedding
    PROCESSING = "processing"  # Chunks stored, some embeddings still pending
    ERROR = "error"            # The chunk set could not be stored


class IngestionReport(BaseModel):
    owner_id: str
    total_chunks: int = Field(default=0, ge=0)
    embedded_chunks: int = Field(default=0, ge=0)
    status: IngestionStatus = IngestionStatus.COMPLETE
    failed_chunk_indices: list[int] = Field(default_factory=list)
    error: str | None = None
    duration: float = 0.0

    @property
    def pending_chunks(self) -> int:
        return self.total_chunks - self.embedded_chunks

    @staticmethod
    def status_for(total: int, embedded: int) -> IngestionStatus:
        return IngestionStatus.COMPLETE if embedded == total else IngestionStatus.PROCESSING
