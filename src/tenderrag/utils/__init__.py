"""Utility functions for TenderRAG."""

from .performance import timer
from .retry import RetryConfig, async_execute_with_retry
from .similarity import cosine_similarity

__all__ = [
    "cosine_similarity",
    "timer",
    "RetryConfig",
    "async_execute_with_retry",
]
