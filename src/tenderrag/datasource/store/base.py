from abc import ABC, abstractmethod
from collections.abc import Collection

from tenderrag.entities.chunk import Chunk, SearchSource, StoredChunk
from tenderrag.entities.owner import ChunkOwner
from tenderrag.entities.search_result import ChunkMatch, SearchScope


class BaseChunkStore(ABC):
    """Abstract base class for chunk persistence and similarity queries.

    All writes are scoped by owner id. Every method may raise StoreError.
    """

    @abstractmethod
    async def upsert_owner(self, owner: ChunkOwner) -> None:
        """Create or update the parent record (document or tender) of chunks."""
        pass

    @abstractmethod
    async def insert_chunks(
        self,
        owner_id: str,
        chunks: list[Chunk],
        source: SearchSource = SearchSource.DOCUMENT,
    ) -> list[StoredChunk]:
        """Persist a chunk set in one transaction and return the stored rows."""
        pass

    @abstractmethod
    async def update_embedding(self, chunk_id: str, embedding: list[float]) -> None:
        """Attach an embedding to an existing chunk."""
        pass

    @abstractmethod
    async def delete_chunks(self, owner_id: str, keep_ids: Collection[str] = ()) -> int:
        """Delete an owner's chunks except ``keep_ids``. Returns the number removed."""
        pass

    @abstractmethod
    async def list_unembedded(self, owner_id: str) -> list[StoredChunk]:
        """Chunks of an owner still waiting for an embedding, by chunk index."""
        pass

    @abstractmethod
    async def count_chunks(self, owner_id: str) -> int:
        pass

    @abstractmethod
    async def query_nearest(
        self,
        scope: SearchScope,
        query_vector: list[float],
        limit: int,
        threshold: float = 0.0,
    ) -> list[ChunkMatch]:
        """
        Nearest-neighbour search over document and external-tender chunks.

        Args:
            scope: Project/organization restriction for document chunks.
            query_vector: The embedded query.
            limit: Maximum number of matches.
            threshold: Cosine similarity a chunk must exceed.

        Returns:
            Matches with ``similarity`` set, most similar first. Orthogonal
            and opposite vectors never match under a non-negative threshold.
        """
        pass

    @abstractmethod
    async def query_lexical(self, scope: SearchScope, query: str, limit: int) -> list[ChunkMatch]:
        """Keyword search; matches carry ``similarity=None``."""
        pass

    async def close(self) -> None:
        return None


def lexical_terms(query: str, min_length: int = 2) -> list[str]:
    """Lower-cased query tokens used for keyword matching.

    Falls back to the whole stripped query when every token is shorter than
    ``min_length``.
    """
    lowered = query.lower().strip()
    terms = [t for t in lowered.split() if len(t) >= min_length]
    if not terms and lowered:
        terms = [lowered]
    return list(dict.fromkeys(terms))
