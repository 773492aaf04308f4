"""
Embedding generation.

* `text` – Renders jobs and candidates to the text that gets embedded.
* `providers` – Turns that text into vectors (OpenAI, Gemini or an
  offline hashing fallback).
"""

from .providers import (  # noqa: F401
    EmbeddingProvider,
    GeminiEmbeddingProvider,
    HashingEmbeddingProvider,
    OpenAIEmbeddingProvider,
    get_default_embedding_provider,
)
from .text import candidate_embedding_text, job_embedding_text  # noqa: F401
