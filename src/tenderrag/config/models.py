"""Configuration models for the RAG context pipeline.

Each component receives its configuration explicitly; nothing in the core
reads global state. Values are validated on construction.
"""

from dataclasses import dataclass, field

from tenderrag.config.settings import Settings
from tenderrag.errors import InvalidConfig
from tenderrag.utils.retry import RetryConfig


@dataclass(frozen=True)
class ChunkingConfig:
    """
    Configuration for the text chunker.

    Attributes:
        chunk_size: Maximum characters per chunk.
        chunk_overlap: Characters shared by consecutive chunks. Must be
            smaller than chunk_size.
        boundary_window: How far back from the hard end the chunker looks
            for a sentence end or whitespace to cut at.
        chars_per_token: Approximation ratio used for token_count.
    """

    chunk_size: int = 1000
    chunk_overlap: int = 200
    boundary_window: int = 100
    chars_per_token: int = 4

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise InvalidConfig("chunk_size must be positive", details={"chunk_size": self.chunk_size})
        if self.chunk_overlap < 0 or self.chunk_overlap >= self.chunk_size:
            raise InvalidConfig(
                "chunk_overlap must be in [0, chunk_size)",
                details={"chunk_size": self.chunk_size, "chunk_overlap": self.chunk_overlap},
            )
        if self.boundary_window < 0:
            raise InvalidConfig("boundary_window must be non-negative")
        if self.chars_per_token < 1:
            raise InvalidConfig("chars_per_token must be at least 1")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChunkingConfig":
        return cls(chunk_size=settings.CHUNK_SIZE, chunk_overlap=settings.CHUNK_OVERLAP)


@dataclass
class IngestionConfig:
    """
    Configuration for the ingestion pipeline.

    Attributes:
        chunking: Chunker configuration.
        max_concurrency: Upper bound on in-flight embedding calls per run.
        call_delay: Fixed pause (seconds) after each embedding call, for
            providers with a throughput ceiling.
        embedding_timeout: Timeout (seconds) for a single embedding call.
        retry: Backoff policy for retryable provider errors.
        normalize_whitespace: Collapse whitespace runs before chunking.
    """

    chunking: ChunkingConfig = field(default_factory=ChunkingConfig)
    max_concurrency: int = 5
    call_delay: float = 0.0
    embedding_timeout: float = 30.0
    retry: RetryConfig = field(default_factory=lambda: RetryConfig(max_attempts=3, base_delay=1.0, max_delay=20.0))
    normalize_whitespace: bool = True

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.call_delay < 0:
            raise ValueError("call_delay must be non-negative")
        if self.embedding_timeout <= 0:
            raise ValueError("embedding_timeout must be positive")


@dataclass
class SearchConfig:
    """
    Configuration for the semantic search engine.

    Attributes:
        default_limit: Result count when the caller gives none.
        max_limit: Hard cap protecting downstream context budgets.
        similarity_threshold: Cosine similarity a store hit must exceed.
        hybrid: Also run the lexical query when a query embedding exists.
            Lexical-only hits then rank below every vector hit.
        snippet_radius: Characters shown on each side of the match.
        embedding_timeout: Timeout (seconds) for the query embedding.
    """

    default_limit: int = 10
    max_limit: int = 100
    similarity_threshold: float = 0.0
    hybrid: bool = False
    snippet_radius: int = 150
    embedding_timeout: float = 10.0

    def __post_init__(self):
        if self.max_limit < 1:
            raise ValueError("max_limit must be at least 1")
        if not 1 <= self.default_limit <= self.max_limit:
            raise ValueError("default_limit must be in [1, max_limit]")
        if not 0.0 <= self.similarity_threshold < 1.0:
            raise ValueError("similarity_threshold must be in [0, 1)")
        if self.snippet_radius < 0:
            raise ValueError("snippet_radius must be non-negative")
        if self.embedding_timeout <= 0:
            raise ValueError("embedding_timeout must be positive")

    def clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.default_limit
        return max(1, min(limit, self.max_limit))
