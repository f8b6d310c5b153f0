from pathlib import Path
from typing import Any

from loguru import logger

from tenderrag.config.settings import Settings
from tenderrag.datasource.store.base import BaseChunkStore
from tenderrag.datasource.store.duckdb import DuckDBChunkStore
from tenderrag.datasource.store.in_memory import InMemoryChunkStore


class ChunkStoreFactory:
    """
    Factory for creating chunk store instances based on type.
    """

    _registry: dict[str, type[BaseChunkStore]] = {
        "memory": InMemoryChunkStore,
        "duckdb": DuckDBChunkStore,
    }

    @classmethod
    def create(cls, type_name: str, **params: Any) -> BaseChunkStore:
        """
        Create a chunk store instance.

        Args:
            type_name: Type identifier ("memory" or "duckdb")
            **params: Constructor arguments for the store
        """
        if type_name not in cls._registry:
            available = ", ".join(cls._registry.keys())
            raise ValueError(f"Unknown chunk store type: '{type_name}'. Available types: {available}")

        store_class = cls._registry[type_name]
        logger.debug(f"Creating {store_class.__name__} with params: {params}")
        return store_class(**params)

    @classmethod
    def from_settings(cls, settings: Settings) -> BaseChunkStore:
        if settings.CHUNK_STORE_TYPE == "duckdb":
            path = settings.DUCKDB_PATH
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            return cls.create("duckdb", database_path=path)
        return cls.create(settings.CHUNK_STORE_TYPE)

    @classmethod
    def register(cls, type_name: str, store_class: type[BaseChunkStore]) -> None:
        if not issubclass(store_class, BaseChunkStore):
            raise TypeError(f"{store_class.__name__} must be a subclass of BaseChunkStore")
        cls._registry[type_name] = store_class

    @classmethod
    def list_types(cls) -> list[str]:
        return list(cls._registry.keys())
