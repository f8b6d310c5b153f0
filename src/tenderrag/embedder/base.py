"""Base embedder interface."""

from abc import ABC, abstractmethod


class BaseEmbedder(ABC):
    """Abstract base class for embedding generation.

    Embedders convert text strings into fixed-length vectors. Every call is a
    suspension point; failures surface as ProviderError subclasses.
    """

    @abstractmethod
    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors (same order as input)

        Raises:
            ProviderError: On quota, timeout, auth or malformed-response failures
        """
        pass

    async def embed(self, text: str) -> list[float]:
        """Generate the embedding for a single text."""
        vectors = await self.embed_many([text])
        return vectors[0]

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension."""
        pass

    async def aclose(self) -> None:
        """Release network resources, if any."""
        return None
