"""
Embedding provider abstractions.

An embedding provider turns a piece of text into a fixed length vector.
Concrete implementations call the OpenAI or Gemini embedding APIs.  A
hashing implementation needs no network access and is used when no API
keys are configured; its vectors are only comparable with other
vectors produced by the same provider and dimension.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import List

import numpy as np

from ..config import resolve_provider

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9+#./]+")


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    @abstractmethod
    def embed(self, text: str) -> List[float]:
        raise NotImplementedError


class HashingEmbeddingProvider(EmbeddingProvider):
    """Deterministic feature hashing embedder.

    Each token is hashed with MD5 into one of ``dim`` buckets with a
    sign taken from the same digest.  The result is normalised to unit
    length, so texts sharing many tokens end up close together.
    """

    def __init__(self, dim: int = 256) -> None:
        if dim < 1:
            raise ValueError("dim must be positive")
        self.dim = dim

    def embed(self, text: str) -> List[float]:
        vector = np.zeros(self.dim, dtype=float)
        for token in _TOKEN_RE.findall((text or "").lower()):
            digest = hashlib.md5(token.encode("utf-8")).digest()
            index = int.from_bytes(digest[:4], "big") % self.dim
            vector[index] += 1.0 if digest[4] & 1 else -1.0
        norm = float(np.linalg.norm(vector))
        if norm:
            vector /= norm
        return vector.tolist()


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Provider that uses the OpenAI embeddings API."""

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        try:
            from openai import OpenAI  # type: ignore
        except ImportError as exc:
            raise RuntimeError(
                "openai package is required for OpenAIEmbeddingProvider. Install it via pip."
            ) from exc
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not provided")
        self.model = model or os.getenv("OPENAI_EMBEDDING_MODEL") or "text-embedding-3-small"
        self.client = OpenAI(api_key=self.api_key)

    def embed(self, text: str) -> List[float]:
        response = self.client.embeddings.create(model=self.model, input=text, encoding_format="float")
        return list(response.data[0].embedding)


class GeminiEmbeddingProvider(EmbeddingProvider):
    """Provider that uses Google Generative AI embeddings."""

    def __init__(self, api_key: str | None = None, model: str | None = None) -> None:
        try:
            import google.generativeai as genai  # type: ignore
        except ImportError as exc:
            raise RuntimeError(
                "google-generativeai package is required for GeminiEmbeddingProvider. Install it via pip."
            ) from exc
        self.genai = genai
        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY/GOOGLE_API_KEY not provided")
        self.model = model or os.getenv("GEMINI_EMBEDDING_MODEL") or "gemini-embedding-001"
        self.genai.configure(api_key=self.api_key)

    def embed(self, text: str) -> List[float]:
        result = self.genai.embed_content(model=self.model, content=text, task_type="semantic_similarity")
        return list(result["embedding"])


def get_default_embedding_provider() -> EmbeddingProvider:
    """Return an EmbeddingProvider based on environment variables.

    ``EMBEDDING_PROVIDER`` (``openai``, ``gemini`` or ``hashing``) wins
    when set and usable; otherwise OpenAI, then Gemini are tried by API
    key, and the hashing provider is the last resort.
    """
    return resolve_provider(
        "EMBEDDING_PROVIDER",
        {"openai": lambda: OpenAIEmbeddingProvider(), "gemini": lambda: GeminiEmbeddingProvider()},
        ("hashing", HashingEmbeddingProvider),
    )
