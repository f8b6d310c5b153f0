"""Embedder for OpenAI/Voyage-compatible REST embedding endpoints."""

import httpx
from loguru import logger

from tenderrag.errors import (
    MalformedResponseError,
    ProviderNotConfiguredError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    classify_provider_http_error,
)

from ..base import BaseEmbedder


class HttpEmbedder(BaseEmbedder):
    """
    Embedder that POSTs ``{"model": ..., "input": [...]}`` to an embeddings API.

    Works with Voyage AI, OpenAI and any endpoint following the OpenAI
    embeddings response format (``data[i].embedding``).

    Attributes:
        endpoint: Full URL of the embeddings endpoint
        model: Model identifier (e.g., "voyage-3")
        batch_size: Maximum texts per API call
        max_input_length: Texts are truncated to this many characters

    Example:
        >>> embedder = HttpEmbedder(api_key="pa-xxx")
        >>> vector = await embedder.embed("Raamovereenkomst schoonmaakdiensten")
    """

    def __init__(
        self,
        api_key: str | None,
        endpoint: str = "https://api.voyageai.com/v1/embeddings",
        model: str = "voyage-3",
        dimension: int = 1536,
        batch_size: int = 20,
        max_input_length: int = 8000,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not api_key or not endpoint:
            raise ProviderNotConfiguredError(
                "HttpEmbedder requires an API key and endpoint",
                details={"endpoint": endpoint},
            )
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        self.api_key = api_key
        self.endpoint = endpoint
        self.model = model
        self.batch_size = batch_size
        self.max_input_length = max_input_length
        self.timeout = timeout
        self._dimension = dimension
        self._client = client or httpx.AsyncClient(timeout=timeout)

        logger.info(f"Initialized HttpEmbedder with model='{model}', endpoint='{endpoint}'")

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed texts, splitting into batches of ``batch_size``."""
        if not texts:
            return []

        vectors: list[list[float]] = []
        total_batches = (len(texts) + self.batch_size - 1) // self.batch_size

        for i in range(0, len(texts), self.batch_size):
            batch = texts[i:i + self.batch_size]
            logger.debug(
                f"Embedding batch {i // self.batch_size + 1}/{total_batches} ({len(batch)} texts)"
            )
            vectors.extend(await self._embed_batch(batch))

        return vectors

    async def _embed_batch(self, texts: list[str]) -> list[list[float]]:
        payload = {
            "model": self.model,
            "input": [text[: self.max_input_length] for text in texts],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._client.post(self.endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"Embedding request timed out after {self.timeout}s",
                timeout=self.timeout,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                "Embedding provider unreachable", original_error=e
            ) from e

        if response.status_code >= 400:
            logger.error(f"Embedding API error: {response.status_code}")
            raise classify_provider_http_error(
                response.status_code, response.text, dict(response.headers)
            )

        return self._parse_response(response, len(texts))

    def _parse_response(self, response: httpx.Response, expected: int) -> list[list[float]]:
        try:
            items = response.json()["data"]
        except (ValueError, KeyError, TypeError) as e:
            raise MalformedResponseError(
                "Embedding response has no 'data' list", original_error=e
            ) from e

        if not isinstance(items, list) or len(items) != expected:
            raise MalformedResponseError(
                "Embedding response size mismatch",
                details={"expected": expected, "received": len(items) if isinstance(items, list) else None},
            )

        if not all(isinstance(item, dict) for item in items):
            raise MalformedResponseError("Embedding response entries must be objects")

        # Sort by index to ensure correct order
        items = sorted(items, key=lambda item: item.get("index", 0))
        vectors = []
        for item in items:
            embedding = item.get("embedding")
            if not isinstance(embedding, list) or not embedding:
                raise MalformedResponseError("Embedding entry is not a non-empty list")
            try:
                vectors.append([float(v) for v in embedding])
            except (TypeError, ValueError) as e:
                raise MalformedResponseError("Embedding entry holds non-numeric values", original_error=e) from e

        self._dimension = len(vectors[0])
        return vectors

    @property
    def dimension(self) -> int:
        return self._dimension

    async def aclose(self) -> None:
        await self._client.aclose()
