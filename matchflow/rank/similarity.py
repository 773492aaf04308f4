"""
Vector similarity stage.

Embeddings arrive either as lists of floats or as the JSON strings the
record store keeps them as.  This module decodes them and ranks
records by cosine similarity against a target vector.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

import numpy as np

from ..errors import DimensionMismatch

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of two equal-length vectors.

    Raises:
        DimensionMismatch: if the vectors differ in length.

    A zero vector on either side yields ``0.0`` rather than a division
    by zero.
    """
    va = np.asarray(a, dtype=float).ravel()
    vb = np.asarray(b, dtype=float).ravel()
    if va.shape[0] != vb.shape[0]:
        raise DimensionMismatch(va.shape[0], vb.shape[0])
    denominator = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denominator)


def parse_vector(raw: Any) -> Optional[List[float]]:
    """Decode a stored embedding.

    Returns ``None`` when there is no embedding.  Raises ``ValueError``
    when something is stored but cannot be read as a numeric vector.
    """
    if raw is None:
        return None
    value = raw
    if isinstance(raw, (bytes, bytearray)):
        value = raw.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Embedding is not valid JSON: {exc}") from exc
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"Embedding must be a list of numbers, got {type(value).__name__}")
    try:
        return [float(x) for x in value]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Embedding contains non-numeric values: {exc}") from exc


def rank_by_vector(
    target: Sequence[float],
    items: Iterable[T],
    vector_of: Callable[[T], Any],
) -> List[Tuple[T, float]]:
    """Rank items by cosine similarity to ``target``, best first.

    Items without an embedding are left out.  Items whose stored
    embedding cannot be decoded score ``0.0``.  Items whose vector
    length differs from the target are logged and left out.
    """
    ranked: List[Tuple[T, float]] = []
    for item in items:
        try:
            vector = parse_vector(vector_of(item))
        except ValueError as exc:
            logger.warning("Unreadable embedding on %r, scoring 0: %s", getattr(item, "id", item), exc)
            ranked.append((item, 0.0))
            continue
        if vector is None:
            continue
        try:
            score = cosine_similarity(target, vector)
        except DimensionMismatch as exc:
            logger.warning("Skipping %r: %s", getattr(item, "id", item), exc)
            continue
        ranked.append((item, score))
    ranked.sort(key=lambda x: x[1], reverse=True)
    logger.debug("Ranked %d items by vector similarity", len(ranked))
    return ranked
