from .http import HttpEmbedder
from .mock import MockEmbedder
from .unconfigured import UnconfiguredEmbedder

__all__ = ["HttpEmbedder", "MockEmbedder", "UnconfiguredEmbedder"]
