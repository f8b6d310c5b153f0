"""Context building for the generation flow."""

from tenderrag.entities.chunk import SearchSource
from tenderrag.entities.search_result import SearchResult, SearchScope
from tenderrag.retrieval.semantic_search import SemanticSearchEngine

CONTEXT_LIMIT = 5

_SOURCE_LABELS = {
    SearchSource.DOCUMENT: "Document",
    SearchSource.EXTERNAL_TENDER: "TenderNed",
}


async def search_context(
    engine: SemanticSearchEngine,
    query: str,
    scope: SearchScope | None = None,
    limit: int = CONTEXT_LIMIT,
) -> list[SearchResult]:
    """Fetch the handful of results a briefing or chat prompt is grounded on."""
    return await engine.search(query, scope=scope, limit=limit)


def format_context_for_prompt(results: list[SearchResult]) -> str:
    """Render results as the Dutch context block appended to an LLM prompt.

    Returns an empty string when there is nothing to add.
    """
    if not results:
        return ""

    parts = [
        f"[{_SOURCE_LABELS[result.source]} {i}] {result.title}\n{result.snippet}"
        for i, result in enumerate(results, start=1)
    ]
    return "\n\n--- Relevante context ---\n" + "\n\n".join(parts) + "\n--- Einde context ---\n"
