"""Vector similarity calculation utilities."""

import math


def cosine_similarity(vec1: list[float], vec2: list[float]) -> float:
    """Calculate cosine similarity between two vectors.

    Args:
        vec1: First vector
        vec2: Second vector

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero length

    Raises:
        ValueError: If vectors have different dimensions or are empty
    """
    if len(vec1) != len(vec2):
        raise ValueError(
            f"Vector dimension mismatch: {len(vec1)} != {len(vec2)}"
        )

    if not vec1:
        raise ValueError("Vectors cannot be empty")

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    norm_a = math.sqrt(sum(a * a for a in vec1))
    norm_b = math.sqrt(sum(b * b for b in vec2))
    if norm_a == 0 or norm_b == 0:
        return 0.0

    # Clamp to [-1, 1] to handle floating point errors
    return max(-1.0, min(1.0, dot_product / (norm_a * norm_b)))
