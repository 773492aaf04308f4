"""
Ranking subsystem for the matching engine.

The `rank` package combines multiple scoring stages to produce a
final composite score for each candidate.  The stages include:

* `similarity` – Decodes stored embeddings and computes cosine
  similarity between a job (or candidate) and each candidate.
* `llm_judge` – Asks an analysis provider about each short‑listed
  candidate, degrading to a similarity based analysis on failure.
* `aggregate` – Blends similarity and analysis into the final score.
* `scorers` – Embedding and rule based strategies used for screening.
* `ranker` – The :class:`MatchingEngine` orchestrating the above.
"""

from .aggregate import aggregate_scores, composite_score  # noqa: F401
from .llm_judge import AsyncAnalysisProvider, degraded_analysis, judge_candidate  # noqa: F401
from .llm_providers import (  # noqa: F401
    AnalysisProvider,
    GeminiProvider,
    OpenAIProvider,
    PlaceholderProvider,
    get_default_provider,
    parse_analysis_response,
)
from .ranker import MatchingEngine  # noqa: F401
from .scorers import EmbeddingScorer, KeywordScorer, Scorer, select_scorer  # noqa: F401
from .similarity import cosine_similarity, parse_vector, rank_by_vector  # noqa: F401
