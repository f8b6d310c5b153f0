"""Embedder module for vector generation.

This module provides embedding functionality with multiple
implementations and a factory for creating embedders.
"""

from .base import BaseEmbedder
from .factory import EmbedderFactory
from .providers.http import HttpEmbedder
from .providers.mock import MockEmbedder
from .providers.unconfigured import UnconfiguredEmbedder

__all__ = ["BaseEmbedder", "HttpEmbedder", "MockEmbedder", "UnconfiguredEmbedder", "EmbedderFactory"]
