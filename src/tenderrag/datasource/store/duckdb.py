import asyncio
import uuid
from collections.abc import Collection
from datetime import datetime, timezone
from typing import Any, Callable

import duckdb
from loguru import logger

from tenderrag.datasource.store.base import BaseChunkStore, lexical_terms
from tenderrag.datasource.store.serialization import format_embedding, parse_embedding
from tenderrag.entities.chunk import Chunk, SearchSource, StoredChunk
from tenderrag.entities.owner import ChunkOwner
from tenderrag.entities.search_result import ChunkMatch, SearchScope
from tenderrag.errors import StoreError
from tenderrag.utils.similarity import cosine_similarity


class DuckDBChunkStore(BaseChunkStore):
    """
    DuckDB-backed chunk store.

    Embeddings live in a VARCHAR column using the ``[v1,...,vn]`` text
    encoding, so the schema does not depend on the embedding dimension.
    Similarity is computed application-side over the scoped candidate rows.
    """

    def __init__(self, database_path: str = ":memory:", table_prefix: str = "tenderrag"):
        self.database_path = database_path
        self.owners_table = f"{table_prefix}_owners"
        self.chunks_table = f"{table_prefix}_chunks"
        try:
            self._connection = duckdb.connect(database_path)
        except duckdb.Error as e:
            raise StoreError(
                "Failed to open DuckDB database",
                details={"database_path": database_path},
                original_error=e,
            ) from e
        self._lock = asyncio.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        self._connection.execute(f"""
        CREATE TABLE IF NOT EXISTS {self.owners_table} (
            id VARCHAR PRIMARY KEY,
            source VARCHAR NOT NULL,
            title VARCHAR NOT NULL,
            project_id VARCHAR,
            organization_id VARCHAR,
            published_at TIMESTAMP,
            deleted BOOLEAN DEFAULT FALSE
        )
        """)
        self._connection.execute(f"""
        CREATE TABLE IF NOT EXISTS {self.chunks_table} (
            id VARCHAR PRIMARY KEY,
            owner_id VARCHAR NOT NULL,
            source VARCHAR NOT NULL,
            chunk_index INTEGER NOT NULL,
            content VARCHAR NOT NULL,
            token_count INTEGER NOT NULL,
            embedding VARCHAR
        )
        """)

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking DuckDB call in a worker thread, one at a time."""
        async with self._lock:
            task = asyncio.ensure_future(asyncio.to_thread(fn, *args))
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                # keep the lock until the worker thread is done with the connection
                await asyncio.wait([task])
                raise
            except duckdb.Error as e:
                raise StoreError(f"DuckDB operation failed: {e}", original_error=e) from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_owner(self, owner: ChunkOwner) -> None:
        row = (
            owner.id,
            owner.source.value,
            owner.title,
            owner.project_id,
            owner.organization_id,
            _naive_utc(owner.published_at),
            owner.deleted,
        )
        await self._run(
            self._connection.execute,
            f"INSERT OR REPLACE INTO {self.owners_table} VALUES (?, ?, ?, ?, ?, ?, ?)",
            row,
        )

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
                embedding=chunk.embedding,
            )
            for chunk in chunks
        ]
        if not stored:
            return []

        rows = [
            (
                row.id,
                row.owner_id,
                row.source.value,
                row.chunk_index,
                row.content,
                row.token_count,
                format_embedding(row.embedding),
            )
            for row in stored
        ]
        await self._run(self._insert_rows, rows)
        logger.debug(f"[DuckDBChunkStore] Inserted {len(rows)} chunks for owner {owner_id}")
        return stored

    def _insert_rows(self, rows: list[tuple]) -> None:
        self._connection.begin()
        try:
            self._connection.executemany(
                f"INSERT INTO {self.chunks_table} VALUES (?, ?, ?, ?, ?, ?, ?)", rows
            )
        except duckdb.Error:
            self._connection.rollback()
            raise
        self._connection.commit()

    async def update_embedding(self, chunk_id: str, embedding: list[float]) -> None:
        encoded = format_embedding(embedding)
        await self._run(self._update_embedding, chunk_id, encoded)

    def _update_embedding(self, chunk_id: str, encoded: str) -> None:
        found = self._connection.execute(
            f"SELECT count(*) FROM {self.chunks_table} WHERE id = ?", [chunk_id]
        ).fetchone()[0]
        if not found:
            raise StoreError("Chunk not found", details={"chunk_id": chunk_id})
        self._connection.execute(
            f"UPDATE {self.chunks_table} SET embedding = ? WHERE id = ?", [encoded, chunk_id]
        )

    async def delete_chunks(self, owner_id: str, keep_ids: Collection[str] = ()) -> int:
        return await self._run(self._delete_chunks, owner_id, list(keep_ids))

    def _delete_chunks(self, owner_id: str, keep_ids: list[str]) -> int:
        where = "owner_id = ?"
        params: list[Any] = [owner_id]
        if keep_ids:
            where += f" AND id NOT IN ({', '.join('?' for _ in keep_ids)})"
            params.extend(keep_ids)

        self._connection.begin()
        try:
            removed = self._connection.execute(
                f"SELECT count(*) FROM {self.chunks_table} WHERE {where}", params
            ).fetchone()[0]
            self._connection.execute(f"DELETE FROM {self.chunks_table} WHERE {where}", params)
        except duckdb.Error:
            self._connection.rollback()
            raise
        self._connection.commit()
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_unembedded(self, owner_id: str) -> list[StoredChunk]:
        rows = await self._run(self._fetchall, f"""
        SELECT id, owner_id, source, chunk_index, content, token_count
        FROM {self.chunks_table}
        WHERE owner_id = ? AND embedding IS NULL
        ORDER BY chunk_index
        """, [owner_id])
        return [
            StoredChunk(
                id=r[0],
                owner_id=r[1],
                source=SearchSource(r[2]),
                chunk_index=r[3],
                content=r[4],
                token_count=r[5],
            )
            for r in rows
        ]

    async def count_chunks(self, owner_id: str) -> int:
        rows = await self._run(
            self._fetchall,
            f"SELECT count(*) FROM {self.chunks_table} WHERE owner_id = ?",
            [owner_id],
        )
        return rows[0][0]

    async def query_nearest(
        self,
        scope: SearchScope,
        query_vector: list[float],
        limit: int,
        threshold: float = 0.0,
    ) -> list[ChunkMatch]:
        visible, params = self._visibility(scope)
        rows = await self._run(self._fetchall, f"""
        SELECT c.id, c.owner_id, c.source, COALESCE(o.title, c.owner_id), c.content,
               c.chunk_index, o.published_at, c.embedding
        FROM {self.chunks_table} c
        LEFT JOIN {self.owners_table} o ON o.id = c.owner_id
        WHERE c.embedding IS NOT NULL AND {visible}
        """, params)

        scored = []
        for row in rows:
            vector = parse_embedding(row[7])
            try:
                similarity = cosine_similarity(query_vector, vector)
            except ValueError as e:
                raise StoreError(
                    "Embedding dimension mismatch",
                    details={"chunk_id": row[0]},
                    original_error=e,
                ) from e
            if similarity > threshold:
                scored.append((max(0.0, similarity), row))

        scored.sort(key=lambda pair: (-pair[0], pair[1][0]))
        return [self._to_match(row, similarity) for similarity, row in scored[:limit]]

    async def query_lexical(self, scope: SearchScope, query: str, limit: int) -> list[ChunkMatch]:
        terms = lexical_terms(query)
        if not terms:
            return []

        score_sql = " + ".join(
            ["CAST(contains(lower(c.content), ?) AS INTEGER)"] * len(terms)
            + [f"CAST(contains(lower(c.content), ?) AS INTEGER) * {len(terms)}"]
        )
        visible, params = self._visibility(scope)
        sql = f"""
        SELECT * FROM (
            SELECT c.id, c.owner_id, c.source, COALESCE(o.title, c.owner_id), c.content,
                   c.chunk_index, o.published_at, {score_sql} AS score
            FROM {self.chunks_table} c
            LEFT JOIN {self.owners_table} o ON o.id = c.owner_id
            WHERE {visible}
        )
        WHERE score > 0
        ORDER BY score DESC, owner_id, chunk_index
        LIMIT ?
        """
        rows = await self._run(
            self._fetchall, sql, [*terms, query.lower().strip(), *params, limit]
        )
        return [self._to_match(row, None) for row in rows]

    def _fetchall(self, sql: str, params: list[Any]) -> list[tuple]:
        return self._connection.execute(sql, params).fetchall()

    def _visibility(self, scope: SearchScope) -> tuple[str, list[Any]]:
        """WHERE fragment hiding deleted owners and out-of-scope documents."""
        conditions = []
        params: list[Any] = []
        if scope.project_id is not None:
            conditions.append("o.project_id = ?")
            params.append(scope.project_id)
        if scope.organization_id is not None:
            conditions.append("o.organization_id = ?")
            params.append(scope.organization_id)

        document_filter = " AND ".join(["o.id IS NOT NULL", *conditions]) if conditions else "TRUE"
        sql = (
            "COALESCE(o.deleted, FALSE) = FALSE AND "
            f"(c.source = '{SearchSource.EXTERNAL_TENDER.value}' OR ({document_filter}))"
        )
        return sql, params

    @staticmethod
    def _to_match(row: tuple, similarity: float | None) -> ChunkMatch:
        return ChunkMatch(
            chunk_id=row[0],
            owner_id=row[1],
            source=SearchSource(row[2]),
            title=row[3],
            content=row[4],
            chunk_index=row[5],
            published_at=row[6],
            similarity=similarity,
        )

    async def close(self) -> None:
        await self._run(self._connection.close)


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
