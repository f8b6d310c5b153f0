"""Tests for RAGEngine wiring and end-to-end flows."""

import pytest

from tenderrag import RAGEngine
from tenderrag.config.models import ChunkingConfig, IngestionConfig
from tenderrag.config.settings import Settings
from tenderrag.datasource.store import DuckDBChunkStore, InMemoryChunkStore
from tenderrag.embedder import UnconfiguredEmbedder
from tenderrag.entities import IngestionStatus, SearchScope, SearchSource
from tenderrag.errors import SearchError
from tests.utils.builders import OwnerBuilder


class TestEngineWiring:

    def test_defaults_from_settings(self):
        engine = RAGEngine(Settings(EMBEDDING_DIMENSIONS=8, CHUNK_SIZE=300, CHUNK_OVERLAP=30))

        assert isinstance(engine.embedder, UnconfiguredEmbedder)
        assert isinstance(engine.store, InMemoryChunkStore)
        assert engine.pipeline.config.chunking.chunk_size == 300
        assert engine.pipeline.config.chunking.chunk_overlap == 30
        assert engine.search_engine.store is engine.store

    def test_duckdb_from_settings(self, temp_dir):
        settings = Settings(CHUNK_STORE_TYPE="duckdb", DUCKDB_PATH=str(temp_dir / "rag.duckdb"))
        assert isinstance(RAGEngine(settings).store, DuckDBChunkStore)

    def test_injected_components_used(self, keyword_embedder, memory_store):
        engine = RAGEngine(Settings(), embedder=keyword_embedder, store=memory_store)
        assert engine.embedder is keyword_embedder
        assert engine.pipeline.store is memory_store


class TestEngineFlows:

    @pytest.fixture
    def engine(self, keyword_embedder, memory_store, fast_retry):
        config = IngestionConfig(chunking=ChunkingConfig(chunk_size=200, chunk_overlap=40), retry=fast_retry)
        return RAGEngine(Settings(), embedder=keyword_embedder, store=memory_store, ingestion_config=config)

    @pytest.mark.asyncio
    async def test_document_and_tender_searchable(self, engine, document_owner, tender_record, sample_text):
        doc_report = await engine.ingest_document(document_owner, sample_text)
        tender_report = await engine.ingest_tender(tender_record)

        assert doc_report.status == IngestionStatus.COMPLETE
        assert tender_report.status == IngestionStatus.COMPLETE

        results = await engine.search(
            "verlichting", SearchScope(project_id="project-1", organization_id="org-1")
        )

        assert {r.source for r in results} == {SearchSource.DOCUMENT, SearchSource.EXTERNAL_TENDER}

    @pytest.mark.asyncio
    async def test_other_project_sees_only_tenders(self, engine, document_owner, tender_record, sample_text):
        await engine.ingest_document(document_owner, sample_text)
        await engine.ingest_tender(tender_record)

        results = await engine.search("verlichting", SearchScope(project_id="project-2"))

        assert results
        assert all(r.source == SearchSource.EXTERNAL_TENDER for r in results)

    @pytest.mark.asyncio
    async def test_build_context(self, engine, document_owner, sample_text):
        await engine.ingest_document(document_owner, sample_text)

        block = await engine.build_context("gunning", SearchScope(project_id="project-1"))

        assert block.startswith("\n\n--- Relevante context ---\n[Document 1] Programma van Eisen verlichting")
        assert block.endswith("--- Einde context ---\n")

    @pytest.mark.asyncio
    async def test_build_context_empty(self, engine):
        assert await engine.build_context("verlichting") == ""

    @pytest.mark.asyncio
    async def test_ingest_document_rejects_tender_owner(self, engine):
        with pytest.raises(ValueError):
            await engine.ingest_document(OwnerBuilder("t").as_tender().build(), "tekst")

    @pytest.mark.asyncio
    async def test_owner_store_failure(self, keyword_embedder, broken_store, document_owner):
        engine = RAGEngine(Settings(), embedder=keyword_embedder, store=broken_store)

        report = await engine.ingest_document(document_owner, "tekst")

        assert report.status == IngestionStatus.ERROR
        with pytest.raises(SearchError):
            await engine.search("verlichting")

    @pytest.mark.asyncio
    async def test_resume_delegates(self, engine, document_owner, sample_text):
        await engine.ingest_document(document_owner, sample_text)
        report = await engine.resume(document_owner.id)
        assert report.status == IngestionStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_aclose(self, mocker, engine):
        close = mocker.spy(engine.store, "close")
        await engine.aclose()
        close.assert_called_once()


class TestEngineWithoutProvider:

    @pytest.fixture
    def engine(self):
        return RAGEngine(Settings(EMBEDDING_API_KEY=None))

    @pytest.mark.asyncio
    async def test_chunks_stay_pending(self, engine):
        owner = OwnerBuilder("d0").in_scope("p1", "o1").build()

        report = await engine.ingest_document(owner, "Asfaltering van wegvak 0")

        assert report.status == IngestionStatus.PROCESSING
        assert report.embedded_chunks == 0
        assert report.pending_chunks == report.total_chunks == 1

    @pytest.mark.asyncio
    async def test_search_is_lexical_only(self, engine):
        for i in range(6):
            owner = OwnerBuilder(f"d{i}").in_scope("p1", "o1").build()
            await engine.ingest_document(owner, f"Asfaltering van wegvak {i}")

        assert await engine.search("openbare verlichting") == []
        assert {r.id for r in await engine.search("asfaltering")} == {f"d{i}" for i in range(6)}
