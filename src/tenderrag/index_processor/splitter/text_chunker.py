"""Overlapping character chunker with sentence/word boundary snapping.

The chunker never rewrites its input: every chunk is a verbatim slice, and
consecutive chunks share exactly ``chunk_overlap`` characters. Dropping the
first ``chunk_overlap`` characters of every chunk after the first and
concatenating therefore gives back the original text.
"""

import math
import re

from loguru import logger

from tenderrag.config.models import ChunkingConfig
from tenderrag.entities.chunk import Chunk

# Sentence end followed by whitespace; the cut goes after the whitespace
SENTENCE_END = re.compile(r"[.!?]\s")


def estimate_token_count(text: str, chars_per_token: int = 4) -> int:
    """Cheap deterministic token estimate (~4 characters per token for Dutch text)."""
    return max(1, math.ceil(len(text) / chars_per_token))


class TextChunker:
    """Splits raw text into overlapping, bounded-size chunks.

    Attributes:
        config: Chunk size, overlap and boundary look-back window
    """

    def __init__(self, config: ChunkingConfig | None = None):
        self.config = config or ChunkingConfig()

    def split(self, text: str) -> list[Chunk]:
        """Split text into chunks with stable indices.

        Args:
            text: Raw document text

        Returns:
            Chunks in reading order; empty for empty or whitespace-only text
        """
        if not text or not text.strip():
            return []

        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        length = len(text)

        chunks: list[Chunk] = []
        start = 0

        while True:
            end = start + size
            if end >= length:
                end = length
            else:
                end = self._find_boundary(text, start, end)

            content = text[start:end]
            chunks.append(
                Chunk(
                    content=content,
                    chunk_index=len(chunks),
                    token_count=estimate_token_count(content, self.config.chars_per_token),
                )
            )

            if end >= length:
                break
            start = end - overlap

        logger.debug(
            f"Split {length} chars into {len(chunks)} chunks "
            f"(size={size}, overlap={overlap})"
        )
        return chunks

    def _find_boundary(self, text: str, start: int, end: int) -> int:
        """Move a hard cut back to the nearest natural boundary.

        The search never goes so far back that the chunk would be
        ``chunk_overlap`` characters or shorter, so the next chunk always
        starts after this one.
        """
        if text[end - 1].isspace() or text[end].isspace():
            return end

        low = max(end - self.config.boundary_window, start + self.config.chunk_overlap + 1)
        if low >= end:
            return end

        region = text[low:end]

        last_sentence = None
        for match in SENTENCE_END.finditer(region):
            last_sentence = match
        if last_sentence is not None:
            return low + last_sentence.end()

        for i in range(end - 1, low - 1, -1):
            if text[i].isspace():
                return i + 1

        return end


def chunk_text(text: str, chunk_size: int = 1000, chunk_overlap: int = 200) -> list[Chunk]:
    """Chunk text with the given size and overlap.

    Raises:
        InvalidConfig: If chunk_overlap >= chunk_size or either is out of range
    """
    config = ChunkingConfig(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    return TextChunker(config).split(text)
