"""Pytest configuration and global fixtures for TenderRAG tests."""

import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from tenderrag.config.models import ChunkingConfig, IngestionConfig, SearchConfig
from tenderrag.datasource.store import BaseChunkStore, InMemoryChunkStore
from tenderrag.embedder import MockEmbedder
from tenderrag.entities import ChunkOwner, TenderRecord
from tenderrag.utils.retry import RetryConfig
from tests.utils.embedders import KeywordEmbedder


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_text():
    return (
        "De aanbestedende dienst publiceert de opdracht voor het onderhoud van "
        "openbare verlichting. Inschrijvers moeten aantonen dat zij storingen "
        "binnen 24 uur verhelpen. De gunning vindt plaats op basis van de beste "
        "prijs-kwaliteitverhouding. Kwaliteit weegt zwaarder dan prijs! Vragen "
        "kunnen tot twee weken voor de sluitingsdatum worden gesteld via TenderNed. "
        "Na de voorlopige gunning volgt een standstill-termijn van twintig dagen."
    )


# ==================== Configuration Fixtures ====================

@pytest.fixture
def fast_retry() -> RetryConfig:
    """Two attempts without waiting between them."""
    return RetryConfig(max_attempts=2, base_delay=0.0, max_delay=0.0, jitter=0.0)


@pytest.fixture
def small_chunking() -> ChunkingConfig:
    return ChunkingConfig(chunk_size=120, chunk_overlap=20, boundary_window=30)


@pytest.fixture
def ingestion_config(small_chunking, fast_retry) -> IngestionConfig:
    return IngestionConfig(
        chunking=small_chunking,
        max_concurrency=3,
        embedding_timeout=1.0,
        retry=fast_retry,
    )


@pytest.fixture
def search_config() -> SearchConfig:
    return SearchConfig(embedding_timeout=1.0)


# ==================== Component Fixtures ====================

@pytest.fixture
def mock_embedder() -> MockEmbedder:
    return MockEmbedder(dimension=16)


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder(["verlichting", "gunning", "prijs", "asfalt", "software"])


@pytest.fixture
def memory_store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def broken_store(mocker):
    """A chunk store whose every call raises StoreError."""
    from tenderrag.errors import StoreError

    store = mocker.Mock(spec=BaseChunkStore)
    for name in (
        "upsert_owner",
        "insert_chunks",
        "update_embedding",
        "delete_chunks",
        "list_unembedded",
        "count_chunks",
        "query_nearest",
        "query_lexical",
    ):
        setattr(store, name, mocker.AsyncMock(side_effect=StoreError("connection refused")))
    return store


# ==================== Entity Fixtures ====================

@pytest.fixture
def document_owner() -> ChunkOwner:
    return ChunkOwner(
        id="doc-1",
        title="Programma van Eisen verlichting",
        project_id="project-1",
        organization_id="org-1",
        published_at=datetime(2024, 5, 1, 12, 0),
    )


@pytest.fixture
def tender_record() -> TenderRecord:
    return TenderRecord(
        id="tender-1",
        external_id="TN-401122",
        title="Onderhoud openbare verlichting",
        description="Meerjarig contract voor beheer en onderhoud van lichtmasten.",
        contracting_authority="Gemeente Utrecht",
        procedure_type="openbaar",
        publication_date=datetime(2024, 3, 1).date(),
    )


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    for item in items:
        rel_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if "unit" in rel_path.parts:
            item.add_marker(pytest.mark.unit)
        elif "integration" in rel_path.parts:
            item.add_marker(pytest.mark.integration)
