"""Text encoding of embeddings for text-typed storage columns.

A vector is written as ``[v1,v2,...,vn]`` (no spaces). A missing embedding
is stored as SQL NULL, never as the string ``"null"``. Only chunk store
implementations use this module; ranking code works with float lists.
"""

import math

from tenderrag.errors import StoreError


def format_embedding(embedding: list[float] | None) -> str | None:
    """Encode a vector for storage, or None when there is no vector."""
    if embedding is None:
        return None
    if not embedding:
        raise StoreError("Cannot store an empty embedding")

    values = []
    for value in embedding:
        number = float(value)
        if not math.isfinite(number):
            raise StoreError("Embedding contains a non-finite value", details={"value": str(value)})
        values.append(str(number))

    return f"[{','.join(values)}]"


def parse_embedding(raw: str | None) -> list[float] | None:
    """Decode a stored vector.

    Raises:
        StoreError: If the column holds something other than a bracketed
            comma-separated list of numbers
    """
    if raw is None:
        return None

    text = raw.strip()
    if len(text) < 3 or not (text.startswith("[") and text.endswith("]")):
        raise StoreError("Malformed embedding column", details={"value": raw[:50]})

    try:
        return [float(part) for part in text[1:-1].split(",")]
    except ValueError as e:
        raise StoreError("Malformed embedding column", details={"value": raw[:50]}, original_error=e) from e
