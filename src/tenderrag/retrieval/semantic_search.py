"""
Semantic search over document and external-tender chunks.

Query -> [embed] -> [nearest query] + [lexical query] -> dedupe -> rank -> snippet
"""

import asyncio

from loguru import logger

from tenderrag.config.models import SearchConfig
from tenderrag.datasource.store.base import BaseChunkStore
from tenderrag.embedder.base import BaseEmbedder
from tenderrag.entities.search_result import ChunkMatch, SearchResult, SearchScope
from tenderrag.errors import ProviderError, SearchError, StoreError
from tenderrag.retrieval.scoring import calculate_text_relevance, extract_snippet
from tenderrag.utils.performance import timer


class SemanticSearchEngine:
    """
    Answers a natural-language query with ranked context results.

    The embedding provider is optional at query time: when it fails or times
    out the engine answers from the lexical query alone. Only a chunk store
    failure with no remaining candidate source raises.
    """

    def __init__(
        self,
        embedder: BaseEmbedder,
        store: BaseChunkStore,
        config: SearchConfig | None = None,
    ):
        self.embedder = embedder
        self.store = store
        self.config = config or SearchConfig()

    async def search(
        self,
        query: str,
        scope: SearchScope | None = None,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """
        Execute a search.

        Args:
            query: Natural-language query.
            scope: Project/organization restriction for document chunks.
            limit: Maximum results; clamped to ``[1, config.max_limit]``.

        Returns:
            Results by descending relevance, then most recent publication,
            then chunk id.

        Raises:
            SearchError: If the chunk store cannot be queried at all.
        """
        if not query or not query.strip():
            return []

        scope = scope or SearchScope()
        limit = self.config.clamp_limit(limit)

        with timer(f"Search for '{query[:50]}'"):
            results = await self._search(query, scope, limit)
        return results

    async def _search(self, query: str, scope: SearchScope, limit: int) -> list[SearchResult]:
        vector = await self._embed_query(query)

        vector_hits: list[ChunkMatch] = []
        vector_ok = False
        if vector is not None:
            try:
                vector_hits = await self.store.query_nearest(
                    scope, vector, limit, self.config.similarity_threshold
                )
                vector_ok = True
            except StoreError as e:
                logger.warning(f"Vector query failed, falling back to lexical search: {e}")

        lexical_hits: list[ChunkMatch] = []
        if self.config.hybrid or not vector_ok:
            try:
                lexical_hits = await self.store.query_lexical(scope, query, limit)
            except StoreError as e:
                if not vector_ok:
                    logger.error(f"Lexical query failed with no other source: {e}")
                    raise SearchError(
                        "Chunk store unavailable",
                        details={"query": query[:100]},
                        original_error=e,
                    ) from e
                logger.warning(f"Lexical query failed, using vector hits only: {e}")

        results = self._rank(query, vector_hits, lexical_hits)[:limit]

        logger.debug(
            f"Search returned {len(results)} results "
            f"(vector={len(vector_hits)}, lexical={len(lexical_hits)})"
        )
        return results

    async def _embed_query(self, query: str) -> list[float] | None:
        try:
            async with asyncio.timeout(self.config.embedding_timeout):
                return await self.embedder.embed(query)
        except TimeoutError:
            logger.warning(
                f"Query embedding timed out after {self.config.embedding_timeout}s, "
                "using lexical search"
            )
        except ProviderError as e:
            logger.warning(f"Query embedding failed, using lexical search: {e}")
        return None

    def _rank(
        self,
        query: str,
        vector_hits: list[ChunkMatch],
        lexical_hits: list[ChunkMatch],
    ) -> list[SearchResult]:
        merged: dict[str, ChunkMatch] = {}
        for hit in vector_hits:
            merged.setdefault(hit.chunk_id, hit)
        for hit in lexical_hits:
            # vector hit wins
            merged.setdefault(hit.chunk_id, hit)

        # lexical-only hits rank below the weakest vector hit
        ceiling = min((max(0.0, hit.similarity) for hit in vector_hits), default=None)

        results = []
        for hit in merged.values():
            if hit.similarity is not None:
                relevance = max(0.0, hit.similarity)
            else:
                relevance = calculate_text_relevance(hit.content, query)
                if ceiling is not None:
                    relevance = ceiling * relevance / (1.0 + relevance)
            results.append(
                SearchResult(
                    source=hit.source,
                    id=hit.owner_id,
                    title=hit.title,
                    snippet=extract_snippet(hit.content, query, self.config.snippet_radius),
                    relevance=relevance,
                    chunk_id=hit.chunk_id,
                    published_at=hit.published_at,
                )
            )

        results.sort(key=_result_order)
        return results


def _result_order(result: SearchResult) -> tuple:
    # missing dates sort after dated results
    if result.published_at is None:
        return (-result.relevance, 1, 0.0, result.chunk_id)
    return (-result.relevance, 0, -result.published_at.timestamp(), result.chunk_id)
