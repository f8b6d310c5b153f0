from .text_chunker import TextChunker, chunk_text, estimate_token_count

__all__ = ["TextChunker", "chunk_text", "estimate_token_count"]
