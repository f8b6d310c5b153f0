"""Placeholder embedder used when no embedding provider is configured."""

from loguru import logger

from tenderrag.errors import ProviderNotConfiguredError

from ..base import BaseEmbedder


class UnconfiguredEmbedder(BaseEmbedder):
    """Refuses every call with ProviderNotConfiguredError.

    Search degrades to lexical matching and ingestion leaves chunks without
    embeddings, so a later ``resume`` can embed them once a key is set.
    """

    def __init__(self, dimension: int = 1536, reason: str = "EMBEDDING_API_KEY not set"):
        self._dimension = dimension
        self.reason = reason
        logger.warning(f"No embedding provider configured ({reason}); search will be lexical only")

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        raise ProviderNotConfiguredError(
            f"Embedding provider not configured: {self.reason}",
            details={"texts": len(texts)},
        )

    @property
    def dimension(self) -> int:
        return self._dimension
