"""Mock embedder for testing (no external API)."""

import hashlib
import random

from loguru import logger

from ..base import BaseEmbedder


class MockEmbedder(BaseEmbedder):
    """Generates deterministic pseudo-random embeddings for testing.

    WARNING: This embedder is NOT suitable for production use.

    The vector for a text is seeded from a SHA-256 digest of the text, so it is
    stable across processes (unlike ``hash()``).

    Attributes:
        dimension: Embedding vector dimension
        seed: Extra seed mixed into every text digest
    """

    def __init__(self, dimension: int = 384, seed: int = 42):
        self._dimension = dimension
        self.seed = seed
        logger.warning(
            "Using MockEmbedder - NOT for production use! "
            "Replace with real embedder for actual applications."
        )

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        logger.debug(f"Generating {len(texts)} mock embeddings")
        return [self._vector(text) for text in texts]

    def _vector(self, text: str) -> list[float]:
        digest = hashlib.sha256(f"{self.seed}:{text}".encode("utf-8")).digest()
        rng = random.Random(int.from_bytes(digest[:8], "big"))

        vec = [rng.gauss(0, 1) for _ in range(self._dimension)]

        # Normalize to unit length
        magnitude = sum(x**2 for x in vec) ** 0.5
        if magnitude > 0:
            return [x / magnitude for x in vec]
        return [0.0] * self._dimension

    @property
    def dimension(self) -> int:
        return self._dimension
