"""
In-process chunk store.

Keeps owners and chunks in dictionaries. Nothing is persisted; used for tests,
local runs and as the default when no database is configured.
"""

import asyncio
import uuid
from collections.abc import Collection

from loguru import logger

from tenderrag.datasource.store.base import BaseChunkStore, lexical_terms
from tenderrag.entities.chunk import Chunk, SearchSource, StoredChunk
from tenderrag.entities.owner import ChunkOwner
from tenderrag.entities.search_result import ChunkMatch, SearchScope
from tenderrag.errors import StoreError
from tenderrag.utils.similarity import cosine_similarity


class InMemoryChunkStore(BaseChunkStore):
    """
    Dictionary-backed chunk store.

    Operations are serialized with an ``asyncio.Lock`` so concurrent embedding
    writers and readers see whole updates only.
    """

    def __init__(self):
        self._owners: dict[str, ChunkOwner] = {}
        self._chunks: dict[str, StoredChunk] = {}
        self._lock = asyncio.Lock()

    async def upsert_owner(self, owner: ChunkOwner) -> None:
        async with self._lock:
            self._owners[owner.id] = owner

    async def insert_chunks(
        self,
        owner_id: str,
        chunks: list[Chunk],
        source: SearchSource = SearchSource.DOCUMENT,
    ) -> list[StoredChunk]:
        stored = [
            StoredChunk(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                source=source,
                content=chunk.content,
                chunk_index=chunk.chunk_index,
                token_count=chunk.token_count,
                embedding=list(chunk.embedding) if chunk.embedding is not None else None,
            )
            for chunk in chunks
        ]
        async with self._lock:
            for row in stored:
                self._chunks[row.id] = row

        logger.debug(f"[InMemoryChunkStore] Inserted {len(stored)} chunks for owner {owner_id}")
        return [row.model_copy() for row in stored]

    async def update_embedding(self, chunk_id: str, embedding: list[float]) -> None:
        if not embedding:
            raise StoreError("Cannot store an empty embedding", details={"chunk_id": chunk_id})

        async with self._lock:
            row = self._chunks.get(chunk_id)
            if row is None:
                raise StoreError("Chunk not found", details={"chunk_id": chunk_id})
            self._chunks[chunk_id] = row.model_copy(update={"embedding": list(embedding)})

    async def delete_chunks(self, owner_id: str, keep_ids: Collection[str] = ()) -> int:
        keep = set(keep_ids)
        async with self._lock:
            doomed = [
                chunk_id
                for chunk_id, row in self._chunks.items()
                if row.owner_id == owner_id and chunk_id not in keep
            ]
            for chunk_id in doomed:
                del self._chunks[chunk_id]
        return len(doomed)

    async def list_unembedded(self, owner_id: str) -> list[StoredChunk]:
        async with self._lock:
            rows = [
                row.model_copy()
                for row in self._chunks.values()
                if row.owner_id == owner_id and row.embedding is None
            ]
        return sorted(rows, key=lambda r: r.chunk_index)

    async def count_chunks(self, owner_id: str) -> int:
        async with self._lock:
            return sum(1 for row in self._chunks.values() if row.owner_id == owner_id)

    async def query_nearest(
        self,
        scope: SearchScope,
        query_vector: list[float],
        limit: int,
        threshold: float = 0.0,
    ) -> list[ChunkMatch]:
        async with self._lock:
            candidates = [
                row for row in self._chunks.values()
                if row.embedding is not None and self._visible(row, scope)
            ]

        scored = []
        for row in candidates:
            try:
                similarity = cosine_similarity(query_vector, row.embedding)
            except ValueError as e:
                raise StoreError(
                    "Embedding dimension mismatch",
                    details={"chunk_id": row.id},
                    original_error=e,
                ) from e
            if similarity > threshold:
                scored.append((max(0.0, similarity), row))

        scored.sort(key=lambda pair: (-pair[0], pair[1].id))
        return [self._to_match(row, similarity) for similarity, row in scored[:limit]]

    async def query_lexical(self, scope: SearchScope, query: str, limit: int) -> list[ChunkMatch]:
        terms = lexical_terms(query)
        if not terms:
            return []
        phrase = query.lower().strip()

        async with self._lock:
            candidates = [row for row in self._chunks.values() if self._visible(row, scope)]

        hits = []
        for row in candidates:
            content = row.content.lower()
            score = sum(1 for term in terms if term in content)
            if phrase in content:
                score += len(terms)
            if score:
                hits.append((score, row))

        hits.sort(key=lambda pair: (-pair[0], pair[1].owner_id, pair[1].chunk_index))
        return [self._to_match(row, None) for _, row in hits[:limit]]

    def _visible(self, row: StoredChunk, scope: SearchScope) -> bool:
        owner = self._owners.get(row.owner_id)
        if owner is not None and owner.deleted:
            return False
        if row.source == SearchSource.EXTERNAL_TENDER:
            return True
        if scope.project_id is None and scope.organization_id is None:
            return True
        if owner is None:
            return False
        if scope.project_id is not None and owner.project_id != scope.project_id:
            return False
        if scope.organization_id is not None and owner.organization_id != scope.organization_id:
            return False
        return True

    def _to_match(self, row: StoredChunk, similarity: float | None) -> ChunkMatch:
        owner = self._owners.get(row.owner_id)
        return ChunkMatch(
            chunk_id=row.id,
            owner_id=row.owner_id,
            source=row.source,
            title=owner.title if owner else row.owner_id,
            content=row.content,
            chunk_index=row.chunk_index,
            similarity=similarity,
            published_at=owner.published_at if owner else None,
        )
