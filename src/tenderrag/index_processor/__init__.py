"""Text processing that turns source documents into indexable chunks."""

from .splitter import TextChunker, chunk_text, estimate_token_count

__all__ = ["TextChunker", "chunk_text", "estimate_token_count"]
