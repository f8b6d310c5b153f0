"""Lexical relevance scoring and snippet extraction.

Used when no vector similarity is available for a chunk, and to build the
excerpt shown with every search result.
"""

import math
import re

PHRASE_BONUS = 10.0
MIN_TOKEN_LENGTH = 2
SNIPPET_RADIUS = 150


def calculate_text_relevance(text: str, query: str) -> float:
    """Score how well text matches a query without embeddings.

    The full query phrase (case-insensitive) earns a fixed bonus; each query
    token of two or more characters adds its occurrence count. The total is
    divided by ``ln(len(text) + 1)`` so long texts are not favoured merely
    for repeating words.

    Args:
        text: Chunk content
        query: Raw user query

    Returns:
        Non-negative score; 0.0 for empty text
    """
    if not text:
        return 0.0

    lower_text = text.lower()
    lower_query = query.lower()

    score = 0.0
    if lower_query.strip() and lower_query in lower_text:
        score += PHRASE_BONUS

    for token in lower_query.split():
        if len(token) < MIN_TOKEN_LENGTH:
            continue
        score += len(re.findall(re.escape(token), lower_text))

    return score / math.log(len(text) + 1)


def extract_snippet(text: str, query: str, radius: int = SNIPPET_RADIUS) -> str:
    """Cut an excerpt of text centred on the first occurrence of query.

    Args:
        text: Chunk content
        query: Raw user query, matched case-insensitively as a whole
        radius: Characters kept on each side of the match

    Returns:
        The excerpt, with ``...`` marking each truncated side. When the query
        does not occur verbatim, the first ``2 * radius`` characters.
    """
    match = re.search(re.escape(query), text, re.IGNORECASE) if query else None
    if match is None:
        return text[: radius * 2]

    start = max(0, match.start() - radius)
    end = min(len(text), match.end() + radius)

    snippet = text[start:end].strip()
    if start > 0:
        snippet = f"...{snippet}"
    if end < len(text):
        snippet = f"{snippet}..."

    return snippet
