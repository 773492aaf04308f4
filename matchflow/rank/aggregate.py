"""
Score aggregation for ranking.

Combines embedding similarity and the analysis provider's overall
match into the composite score candidates are finally ordered by:

    score = embedding_weight * similarity * 100 + analysis_weight * overall_match

When no analysis exists at all the score is ``similarity * 100``.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import AiAnalysis, Candidate, SkillMatchResult

logger = logging.getLogger(__name__)

EMBEDDING_WEIGHT = 0.4
ANALYSIS_WEIGHT = 0.6


def composite_score(
    embedding_similarity: float,
    analysis: Optional[AiAnalysis],
    embedding_weight: float = EMBEDDING_WEIGHT,
    analysis_weight: float = ANALYSIS_WEIGHT,
) -> float:
    if analysis is None:
        return embedding_similarity * 100
    return embedding_similarity * 100 * embedding_weight + analysis.overall_match * analysis_weight


def aggregate_scores(
    vector_scores: Iterable[Tuple[Candidate, float]],
    analyses: Dict[str, AiAnalysis],
    skill_matches: Dict[str, SkillMatchResult],
    weights: Dict[str, float],
) -> List[Dict[str, object]]:
    """Aggregate similarity and analysis into ranked rows.

    Args:
        vector_scores: Tuples of (candidate, cosine_similarity).
        analyses: Analysis per candidate ID; candidates without one are
            scored on similarity alone.
        skill_matches: Skill comparison per candidate ID.
        weights: Dict with weight values for 'embedding' and 'analysis'.

    Returns:
        A list of dictionaries with keys: candidate, score,
        embedding_similarity, ai_analysis, skill_matches; best first.
    """
    w_embedding = weights.get("embedding", EMBEDDING_WEIGHT)
    w_analysis = weights.get("analysis", ANALYSIS_WEIGHT)
    aggregated: List[Dict[str, object]] = []
    for candidate, similarity in vector_scores:
        analysis = analyses.get(candidate.id)
        aggregated.append(
            {
                "candidate": candidate,
                "score": composite_score(similarity, analysis, w_embedding, w_analysis),
                "embedding_similarity": similarity,
                "ai_analysis": analysis,
                "skill_matches": skill_matches.get(candidate.id) or SkillMatchResult(),
            }
        )
    # Sort by blended score, not by the pre-blend similarity order
    aggregated.sort(key=lambda x: x["score"], reverse=True)
    logger.debug("Aggregated scores for %d candidates", len(aggregated))
    return aggregated
