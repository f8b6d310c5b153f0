"""RAG Engine - High-level orchestrator for context ingestion and search."""

from loguru import logger

from .config.models import ChunkingConfig, IngestionConfig, SearchConfig
from .config.settings import Settings, load_settings
from .datasource.store import BaseChunkStore, ChunkStoreFactory
from .embedder import BaseEmbedder, EmbedderFactory
from .entities.chunk import SearchSource
from .entities.ingestion import IngestionReport, IngestionStatus
from .entities.owner import ChunkOwner, TenderRecord
from .entities.search_result import SearchResult, SearchScope
from .errors import StoreError
from .pipeline import IngestionPipeline
from .retrieval import SemanticSearchEngine, format_context_for_prompt, search_context


class RAGEngine:
    """High-level orchestrator for RAG context operations.

    Wires one embedder and one chunk store into an ingestion pipeline and a
    search engine. Components may be passed in directly; anything missing is
    built from settings.

    Attributes:
        settings: Application settings
        embedder: Embedding provider
        store: Chunk store
        pipeline: Ingestion pipeline
        search_engine: Semantic search engine
    """

    def __init__(
        self,
        settings: Settings | None = None,
        embedder: BaseEmbedder | None = None,
        store: BaseChunkStore | None = None,
        ingestion_config: IngestionConfig | None = None,
        search_config: SearchConfig | None = None,
    ):
        self.settings = settings or load_settings()
        logger.info("Initializing RAG Engine")

        self.embedder = embedder or EmbedderFactory.from_settings(self.settings)
        self.store = store or ChunkStoreFactory.from_settings(self.settings)

        ingestion_config = ingestion_config or IngestionConfig(
            chunking=ChunkingConfig.from_settings(self.settings)
        )
        self.pipeline = IngestionPipeline(self.embedder, self.store, ingestion_config)
        self.search_engine = SemanticSearchEngine(self.embedder, self.store, search_config)

        logger.info(
            f"RAG Engine initialized: embedder={type(self.embedder).__name__}, "
            f"store={type(self.store).__name__}"
        )

    async def ingest_document(self, owner: ChunkOwner, raw_text: str) -> IngestionReport:
        """Register an uploaded document and index its extracted text."""
        if owner.source != SearchSource.DOCUMENT:
            raise ValueError(f"Expected a document owner, got {owner.source}")
        try:
            await self.store.upsert_owner(owner)
        except StoreError as e:
            logger.error(f"Failed to store document {owner.id}: {e}")
            return IngestionReport(owner_id=owner.id, status=IngestionStatus.ERROR, error=str(e))
        return await self.pipeline.ingest(owner.id, raw_text, SearchSource.DOCUMENT)

    async def ingest_tender(self, record: TenderRecord) -> IngestionReport:
        return await self.pipeline.ingest_tender(record)

    async def resume(self, owner_id: str) -> IngestionReport:
        return await self.pipeline.resume(owner_id)

    async def search(
        self,
        query: str,
        scope: SearchScope | None = None,
        limit: int | None = None,
    ) -> list[SearchResult]:
        return await self.search_engine.search(query, scope=scope, limit=limit)

    async def build_context(self, query: str, scope: SearchScope | None = None) -> str:
        """Search and render the prompt context block in one call."""
        results = await search_context(self.search_engine, query, scope)
        return format_context_for_prompt(results)

    async def aclose(self) -> None:
        await self.embedder.aclose()
        await self.store.close()
