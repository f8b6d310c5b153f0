"""Configuration system for TenderRAG."""

from .models import ChunkingConfig, IngestionConfig, SearchConfig
from .settings import Settings, load_settings

__all__ = ["ChunkingConfig", "IngestionConfig", "SearchConfig", "Settings", "load_settings"]
