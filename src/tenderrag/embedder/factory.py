"""Embedder factory for creating embedder instances."""

from typing import Any

from loguru import logger

from tenderrag.config.settings import Settings

from .base import BaseEmbedder
from .providers.http import HttpEmbedder
from .providers.mock import MockEmbedder
from .providers.unconfigured import UnconfiguredEmbedder


class EmbedderFactory:
    """Factory for creating embedder instances based on type.

    This factory maintains a registry of available embedder types
    and creates instances based on string identifiers.
    """

    _registry: dict[str, type[BaseEmbedder]] = {
        "http": HttpEmbedder,
        "mock": MockEmbedder,
        "unconfigured": UnconfiguredEmbedder,
    }

    @classmethod
    def create(cls, embedder_type: str, **params: Any) -> BaseEmbedder:
        """Create an embedder instance by type.

        Raises:
            ValueError: If embedder type is not registered
        """
        if embedder_type not in cls._registry:
            available = ", ".join(cls._registry.keys())
            raise ValueError(
                f"Unknown embedder type: '{embedder_type}'. "
                f"Available types: {available}"
            )

        embedder_class = cls._registry[embedder_type]
        logger.debug(f"Creating {embedder_class.__name__}")

        return embedder_class(**params)

    @classmethod
    def from_settings(cls, settings: Settings) -> BaseEmbedder:
        """Build the HTTP embedder from settings.

        Without an API key or endpoint the result refuses every call, so
        callers degrade as they would for any other provider outage.
        """
        if not settings.EMBEDDING_API_KEY or not settings.EMBEDDING_API_ENDPOINT:
            missing = "EMBEDDING_API_KEY" if not settings.EMBEDDING_API_KEY else "EMBEDDING_API_ENDPOINT"
            return cls.create(
                "unconfigured", dimension=settings.EMBEDDING_DIMENSIONS, reason=f"{missing} not set"
            )

        return cls.create(
            "http",
            api_key=settings.EMBEDDING_API_KEY,
            endpoint=settings.EMBEDDING_API_ENDPOINT,
            model=settings.EMBEDDING_MODEL,
            dimension=settings.EMBEDDING_DIMENSIONS,
            batch_size=settings.EMBEDDING_BATCH_SIZE,
            max_input_length=settings.EMBEDDING_MAX_INPUT_LENGTH,
        )

    @classmethod
    def register(cls, embedder_type: str, embedder_class: type[BaseEmbedder]):
        """Register a new embedder type.

        Raises:
            TypeError: If embedder_class is not a subclass of BaseEmbedder
        """
        if not issubclass(embedder_class, BaseEmbedder):
            raise TypeError(
                f"{embedder_class.__name__} must be a subclass of BaseEmbedder"
            )

        cls._registry[embedder_type] = embedder_class
        logger.info(f"Registered embedder type '{embedder_type}': {embedder_class.__name__}")

    @classmethod
    def list_types(cls) -> list[str]:
        return list(cls._registry.keys())
