"""
Ingestion pipeline: raw text -> chunks -> stored rows -> embeddings.

Chunks are persisted before any embedding call, so a provider outage never
loses text. Embedding failures are reported per chunk and can be picked up
later with ``IngestionPipeline.resume``.
"""

import asyncio
import re
import time
import uuid

from loguru import logger

from tenderrag.config.models import IngestionConfig
from tenderrag.datasource.store.base import BaseChunkStore
from tenderrag.embedder.base import BaseEmbedder
from tenderrag.entities.chunk import SearchSource, StoredChunk
from tenderrag.entities.ingestion import IngestionReport, IngestionStatus
from tenderrag.entities.owner import TenderRecord
from tenderrag.errors import ProviderError, ProviderTimeoutError, StoreError
from tenderrag.index_processor.splitter import TextChunker
from tenderrag.pipeline.tender import build_tender_text
from tenderrag.utils.performance import timer
from tenderrag.utils.retry import async_execute_with_retry

_WHITESPACE = re.compile(r"\s+")


class IngestionPipeline:
    """
    Chunks, stores and embeds the text of one owner (document or tender).

    Usage:
        pipeline = IngestionPipeline(embedder, store, IngestionConfig(max_concurrency=3))
        report = await pipeline.ingest(document_id, extracted_text)
        if report.status == IngestionStatus.PROCESSING:
            report = await pipeline.resume(document_id)
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        store: BaseChunkStore,
        config: IngestionConfig | None = None,
    ):
        self.embedder = embedder
        self.store = store
        self.config = config or IngestionConfig()
        self.chunker = TextChunker(self.config.chunking)

    async def ingest(
        self,
        owner_id: str,
        raw_text: str,
        source: SearchSource = SearchSource.DOCUMENT,
    ) -> IngestionReport:
        """
        Replace the chunk set of an owner and embed every new chunk.

        Args:
            owner_id: Document or tender id the chunks belong to.
            raw_text: Extracted plain text.
            source: Whether the owner is an uploaded document or a tender.

        Returns:
            ``complete`` when every chunk is embedded, ``processing`` when some
            embeddings are still missing, ``error`` when nothing was stored.
        """
        request_id = uuid.uuid4().hex[:8]
        start = time.perf_counter()

        text = raw_text or ""
        if self.config.normalize_whitespace:
            text = _WHITESPACE.sub(" ", text).strip()

        chunks = self.chunker.split(text)
        if not chunks:
            logger.info(f"[{request_id}] No text to ingest for {owner_id}")
            return IngestionReport(owner_id=owner_id, duration=time.perf_counter() - start)

        logger.info(f"[{request_id}] Ingesting {owner_id}: {len(chunks)} chunks ({source})")

        try:
            stored = await self.store.insert_chunks(owner_id, chunks, source)
        except StoreError as e:
            logger.error(f"[{request_id}] Failed to store chunks for {owner_id}: {e}")
            return IngestionReport(
                owner_id=owner_id,
                total_chunks=len(chunks),
                status=IngestionStatus.ERROR,
                error=str(e),
                duration=time.perf_counter() - start,
            )

        try:
            removed = await self.store.delete_chunks(owner_id, keep_ids=[c.id for c in stored])
            if removed:
                logger.debug(f"[{request_id}] Replaced {removed} previous chunks of {owner_id}")
        except StoreError as e:
            logger.warning(f"[{request_id}] Could not remove previous chunks of {owner_id}: {e}")

        failed = await self._embed_chunks(stored, request_id)
        return self._report(owner_id, len(stored), failed, start, request_id)

    async def resume(self, owner_id: str) -> IngestionReport:
        """Retry embedding for the chunks of an owner that have none yet."""
        request_id = uuid.uuid4().hex[:8]
        start = time.perf_counter()

        try:
            pending = await self.store.list_unembedded(owner_id)
            total = await self.store.count_chunks(owner_id)
        except StoreError as e:
            logger.error(f"[{request_id}] Cannot resume {owner_id}: {e}")
            return IngestionReport(
                owner_id=owner_id,
                status=IngestionStatus.ERROR,
                error=str(e),
                duration=time.perf_counter() - start,
            )

        logger.info(f"[{request_id}] Resuming {owner_id}: {len(pending)} of {total} chunks pending")
        failed = await self._embed_chunks(pending, request_id)
        return self._report(owner_id, total, failed, start, request_id)

    async def ingest_tender(self, record: TenderRecord) -> IngestionReport:
        """Register a harvested tender and index its text as public context."""
        try:
            await self.store.upsert_owner(record.to_owner())
        except StoreError as e:
            logger.error(f"Failed to store tender {record.external_id}: {e}")
            return IngestionReport(owner_id=record.id, status=IngestionStatus.ERROR, error=str(e))

        text = build_tender_text(record) or ""
        return await self.ingest(record.id, text, source=SearchSource.EXTERNAL_TENDER)

    async def _embed_chunks(self, chunks: list[StoredChunk], request_id: str) -> list[int]:
        """Embed and persist vectors concurrently. Returns failed chunk indices."""
        if not chunks:
            return []

        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        failed: list[int] = []

        async def embed_one(chunk: StoredChunk) -> None:
            async with semaphore:
                try:
                    vector = await async_execute_with_retry(
                        self._embed_with_timeout, chunk.content, config=self.config.retry
                    )
                    await self.store.update_embedding(chunk.id, vector)
                except (ProviderError, StoreError) as e:
                    logger.warning(
                        f"[{request_id}] Chunk {chunk.chunk_index} of {chunk.owner_id} "
                        f"left without embedding: {type(e).__name__}: {e}"
                    )
                    failed.append(chunk.chunk_index)
                if self.config.call_delay:
                    await asyncio.sleep(self.config.call_delay)

        with timer(f"[{request_id}] Embedding {len(chunks)} chunks", log_level="INFO"):
            async with asyncio.TaskGroup() as tg:
                for chunk in chunks:
                    tg.create_task(embed_one(chunk))

        return sorted(failed)

    async def _embed_with_timeout(self, text: str) -> list[float]:
        timeout = self.config.embedding_timeout
        try:
            async with asyncio.timeout(timeout):
                return await self.embedder.embed(text)
        except TimeoutError as e:
            raise ProviderTimeoutError(
                f"Embedding call exceeded {timeout}s", timeout=timeout, original_error=e
            ) from e

    @staticmethod
    def _report(
        owner_id: str,
        total: int,
        failed: list[int],
        start: float,
        request_id: str,
    ) -> IngestionReport:
        embedded = total - len(failed)
        report = IngestionReport(
            owner_id=owner_id,
            total_chunks=total,
            embedded_chunks=embedded,
            status=IngestionReport.status_for(total, embedded),
            failed_chunk_indices=failed,
            duration=time.perf_counter() - start,
        )
        logger.info(
            f"[{request_id}] {owner_id}: {embedded}/{total} chunks embedded, "
            f"status={report.status}"
        )
        return report
