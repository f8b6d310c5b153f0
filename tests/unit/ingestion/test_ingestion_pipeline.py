"""Tests for IngestionPipeline."""

import asyncio

import pytest

from tenderrag.config.models import ChunkingConfig, IngestionConfig
from tenderrag.datasource.store import InMemoryChunkStore
from tenderrag.embedder import MockEmbedder
from tenderrag.entities import IngestionStatus, SearchScope, SearchSource
from tenderrag.errors import ProviderRateLimitError, ProviderUnavailableError, StoreError
from tenderrag.pipeline import IngestionPipeline
from tenderrag.utils.retry import RetryConfig
from tests.utils.embedders import FailingEmbedder, FlakyEmbedder, SlowEmbedder


def four_chunk_text(marker_in: int | None = None) -> str:
    """Four 100-char blocks; with chunk_size=100 and no overlap each is one chunk."""
    blocks = [f"Blok{i} " + "x" * 93 + " " for i in range(4)]
    if marker_in is not None:
        blocks[marker_in] = "FAIL " + blocks[marker_in][5:]
    return "".join(blocks)


@pytest.fixture
def block_config(fast_retry) -> IngestionConfig:
    return IngestionConfig(
        chunking=ChunkingConfig(chunk_size=100, chunk_overlap=0, boundary_window=0),
        max_concurrency=2,
        embedding_timeout=1.0,
        retry=fast_retry,
        normalize_whitespace=False,
    )


class TestIngest:

    @pytest.mark.asyncio
    async def test_all_chunks_embedded(self, mock_embedder, memory_store, ingestion_config, sample_text):
        pipeline = IngestionPipeline(mock_embedder, memory_store, ingestion_config)

        report = await pipeline.ingest("doc-1", sample_text)

        assert report.status == IngestionStatus.COMPLETE
        assert report.total_chunks > 1
        assert report.embedded_chunks == report.total_chunks
        assert report.failed_chunk_indices == []
        assert report.error is None
        assert await memory_store.list_unembedded("doc-1") == []

    @pytest.mark.asyncio
    async def test_one_of_four_failing_leaves_processing(self, memory_store, block_config):
        embedder = FailingEmbedder(fail_on=("FAIL",))
        pipeline = IngestionPipeline(embedder, memory_store, block_config)

        report = await pipeline.ingest("doc-1", four_chunk_text(marker_in=2))

        assert report.status == IngestionStatus.PROCESSING
        assert report.total_chunks == 4
        assert report.embedded_chunks == 3
        assert report.failed_chunk_indices == [2]
        assert report.pending_chunks == 1

        pending = await memory_store.list_unembedded("doc-1")
        assert [c.chunk_index for c in pending] == [2]

    @pytest.mark.asyncio
    async def test_permanent_errors_not_retried(self, memory_store, block_config):
        embedder = FailingEmbedder(fail_on=("FAIL",))
        pipeline = IngestionPipeline(embedder, memory_store, block_config)

        await pipeline.ingest("doc-1", four_chunk_text(marker_in=0))

        assert sum(1 for text in embedder.calls if "FAIL" in text) == 1

    @pytest.mark.asyncio
    async def test_retryable_errors_retried_until_success(self, memory_store, block_config):
        embedder = FlakyEmbedder(failures=1, error=ProviderRateLimitError("429"))
        block_config.max_concurrency = 1
        pipeline = IngestionPipeline(embedder, memory_store, block_config)

        report = await pipeline.ingest("doc-1", four_chunk_text())

        assert report.status == IngestionStatus.COMPLETE
        assert embedder.calls == 5

    @pytest.mark.asyncio
    async def test_exhausted_retries_mark_chunk_failed(self, memory_store, block_config):
        embedder = FlakyEmbedder(failures=100, error=ProviderUnavailableError("down"))
        pipeline = IngestionPipeline(embedder, memory_store, block_config)

        report = await pipeline.ingest("doc-1", four_chunk_text())

        assert report.status == IngestionStatus.PROCESSING
        assert report.embedded_chunks == 0
        assert report.failed_chunk_indices == [0, 1, 2, 3]
        # two attempts per chunk
        assert embedder.calls == 8

    @pytest.mark.asyncio
    async def test_embedding_timeout_marks_chunk_failed(self, memory_store, block_config):
        block_config.embedding_timeout = 0.01
        pipeline = IngestionPipeline(SlowEmbedder(delay=1.0), memory_store, block_config)

        report = await pipeline.ingest("doc-1", four_chunk_text())

        assert report.status == IngestionStatus.PROCESSING
        assert report.embedded_chunks == 0
        assert await memory_store.count_chunks("doc-1") == 4

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, memory_store, block_config):
        embedder = SlowEmbedder(delay=0.02)
        pipeline = IngestionPipeline(embedder, memory_store, block_config)

        report = await pipeline.ingest("doc-1", four_chunk_text())

        assert report.status == IngestionStatus.COMPLETE
        assert embedder.peak == 2

    @pytest.mark.asyncio
    async def test_blank_text_reports_complete_and_keeps_existing_chunks(
        self, mock_embedder, memory_store, ingestion_config, sample_text
    ):
        pipeline = IngestionPipeline(mock_embedder, memory_store, ingestion_config)
        first = await pipeline.ingest("doc-1", sample_text)

        report = await pipeline.ingest("doc-1", "   \n  ")

        assert report.status == IngestionStatus.COMPLETE
        assert (report.total_chunks, report.embedded_chunks) == (0, 0)
        assert await memory_store.count_chunks("doc-1") == first.total_chunks

    @pytest.mark.asyncio
    async def test_reingestion_replaces_previous_chunks(
        self, mock_embedder, memory_store, ingestion_config, sample_text
    ):
        pipeline = IngestionPipeline(mock_embedder, memory_store, ingestion_config)
        await pipeline.ingest("doc-1", sample_text)

        report = await pipeline.ingest("doc-1", "Nieuwe versie van het bestek.")

        assert report.total_chunks == 1
        assert await memory_store.count_chunks("doc-1") == 1
        hits = await memory_store.query_lexical(SearchScope(), "nieuwe versie", 10)
        assert len(hits) == 1

    @pytest.mark.asyncio
    async def test_whitespace_normalized_before_chunking(self, mock_embedder, memory_store, ingestion_config):
        pipeline = IngestionPipeline(mock_embedder, memory_store, ingestion_config)

        await pipeline.ingest("doc-1", "Eerste   regel\n\n\ttweede regel")

        hits = await memory_store.query_lexical(SearchScope(), "regel", 10)
        assert hits[0].content == "Eerste regel tweede regel"

    @pytest.mark.asyncio
    async def test_store_failure_reports_error(self, mock_embedder, broken_store, ingestion_config, sample_text):
        pipeline = IngestionPipeline(mock_embedder, broken_store, ingestion_config)

        report = await pipeline.ingest("doc-1", sample_text)

        assert report.status == IngestionStatus.ERROR
        assert "connection refused" in report.error
        broken_store.update_embedding.assert_not_called()

    @pytest.mark.asyncio
    async def test_cleanup_failure_does_not_change_status(
        self, mocker, mock_embedder, memory_store, ingestion_config, sample_text
    ):
        mocker.patch.object(memory_store, "delete_chunks", side_effect=StoreError("locked"))
        pipeline = IngestionPipeline(mock_embedder, memory_store, ingestion_config)

        report = await pipeline.ingest("doc-1", sample_text)

        assert report.status == IngestionStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_embedding_write_failure_marks_chunk_failed(
        self, mocker, mock_embedder, memory_store, block_config
    ):
        original = memory_store.update_embedding
        calls = 0

        async def fail_first(chunk_id, vector):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise StoreError("write conflict")
            await original(chunk_id, vector)

        mocker.patch.object(memory_store, "update_embedding", side_effect=fail_first)
        pipeline = IngestionPipeline(mock_embedder, memory_store, block_config)

        report = await pipeline.ingest("doc-1", four_chunk_text())

        assert report.status == IngestionStatus.PROCESSING
        assert report.embedded_chunks == 3
        assert len(report.failed_chunk_indices) == 1

    @pytest.mark.asyncio
    async def test_cancellation_keeps_written_rows(self, memory_store, block_config):
        embedder = SlowEmbedder(delay=10.0)
        pipeline = IngestionPipeline(embedder, memory_store, block_config)

        task = asyncio.create_task(pipeline.ingest("doc-1", four_chunk_text()))
        await asyncio.wait_for(embedder.started.wait(), timeout=1.0)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert embedder.in_flight == 0
        assert await memory_store.count_chunks("doc-1") == 4
        assert len(await memory_store.list_unembedded("doc-1")) == 4

    @pytest.mark.asyncio
    async def test_call_delay_applied(self, mocker, mock_embedder, memory_store, block_config):
        block_config.call_delay = 0.001
        sleep = mocker.patch("tenderrag.pipeline.ingestion.asyncio.sleep", new=mocker.AsyncMock())
        pipeline = IngestionPipeline(mock_embedder, memory_store, block_config)

        await pipeline.ingest("doc-1", four_chunk_text())

        assert sleep.await_count == 4


class TestResume:

    @pytest.mark.asyncio
    async def test_resume_embeds_pending_chunks(self, memory_store, block_config):
        failing = IngestionPipeline(FailingEmbedder(fail_on=("FAIL",)), memory_store, block_config)
        first = await failing.ingest("doc-1", four_chunk_text(marker_in=1))
        assert first.status == IngestionStatus.PROCESSING

        healthy = IngestionPipeline(MockEmbedder(dimension=4), memory_store, block_config)
        report = await healthy.resume("doc-1")

        assert report.status == IngestionStatus.COMPLETE
        assert (report.total_chunks, report.embedded_chunks) == (4, 4)
        assert await memory_store.list_unembedded("doc-1") == []

    @pytest.mark.asyncio
    async def test_resume_still_failing(self, memory_store, block_config):
        pipeline = IngestionPipeline(FailingEmbedder(fail_on=("FAIL",)), memory_store, block_config)
        await pipeline.ingest("doc-1", four_chunk_text(marker_in=3))

        report = await pipeline.resume("doc-1")

        assert report.status == IngestionStatus.PROCESSING
        assert (report.total_chunks, report.embedded_chunks) == (4, 3)
        assert report.failed_chunk_indices == [3]

    @pytest.mark.asyncio
    async def test_resume_unknown_owner(self, mock_embedder, memory_store, block_config):
        report = await IngestionPipeline(mock_embedder, memory_store, block_config).resume("nope")
        assert report.status == IngestionStatus.COMPLETE
        assert report.total_chunks == 0

    @pytest.mark.asyncio
    async def test_resume_store_failure(self, mock_embedder, broken_store, block_config):
        report = await IngestionPipeline(mock_embedder, broken_store, block_config).resume("doc-1")
        assert report.status == IngestionStatus.ERROR


class TestIngestTender:

    @pytest.mark.asyncio
    async def test_tender_indexed_as_public_context(self, mock_embedder, memory_store, ingestion_config, tender_record):
        pipeline = IngestionPipeline(mock_embedder, memory_store, ingestion_config)

        report = await pipeline.ingest_tender(tender_record)

        assert report.status == IngestionStatus.COMPLETE
        assert report.owner_id == "tender-1"
        hits = await memory_store.query_lexical(
            SearchScope(project_id="any-project"), "Gemeente Utrecht", 10
        )
        assert hits
        assert all(h.source == SearchSource.EXTERNAL_TENDER for h in hits)
        assert hits[0].title == "Onderhoud openbare verlichting"

    @pytest.mark.asyncio
    async def test_tender_store_failure(self, mock_embedder, broken_store, ingestion_config, tender_record):
        pipeline = IngestionPipeline(mock_embedder, broken_store, ingestion_config)
        report = await pipeline.ingest_tender(tender_record)
        assert report.status == IngestionStatus.ERROR


class TestPipelineConfig:

    def test_invalid_concurrency(self):
        with pytest.raises(ValueError):
            IngestionConfig(max_concurrency=0)

    def test_retry_defaults(self):
        config = IngestionConfig()
        assert isinstance(config.retry, RetryConfig)
        assert config.retry.max_attempts == 3

    def test_default_chunking(self, mock_embedder):
        pipeline = IngestionPipeline(mock_embedder, InMemoryChunkStore())
        assert pipeline.config.chunking.chunk_size == 1000
