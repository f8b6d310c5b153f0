from .context import format_context_for_prompt, search_context
from .scoring import calculate_text_relevance, extract_snippet
from .semantic_search import SemanticSearchEngine

__all__ = [
    "SemanticSearchEngine",
    "calculate_text_relevance",
    "extract_snippet",
    "search_context",
    "format_context_for_prompt",
]
