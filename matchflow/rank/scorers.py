"""
Scoring strategies for candidate screening.

Two interchangeable scorers rate a job/candidate pair on a 0..1 scale:

* :class:`EmbeddingScorer` – cosine similarity of the two embeddings.
* :class:`KeywordScorer` – a rule based score from requirement keywords,
  experience level and location.

:func:`select_scorer` picks one per pair depending on which data the
records carry, so call sites never branch on embedding availability
themselves.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..models import Candidate, Job, SkillMatchResult
from ..skills.extract import candidate_skills
from .similarity import cosine_similarity, parse_vector

logger = logging.getLogger(__name__)

# Inclusive (min, max) years per job level; None means open ended.
EXPERIENCE_BANDS = {
    "entry": (0, 2),
    "junior": (1, 3),
    "mid": (2, 5),
    "senior": (4, 8),
    "lead": (6, 12),
    "principal": (8, None),
    "executive": (10, None),
}

_WORD_SPLIT_RE = re.compile(r"[,\s]+")


def experience_matches(candidate: Candidate, job: Job) -> bool:
    """True if the candidate's years fit the job level; unknowns always fit."""
    if not candidate.years_of_experience or not job.level:
        return True
    band = EXPERIENCE_BANDS.get(job.level.lower())
    if band is None:
        return True
    low, high = band
    years = candidate.years_of_experience
    return years >= low and (high is None or years <= high)


def location_compatible(candidate: Candidate, job: Job) -> bool:
    if job.remote or not job.location or not candidate.location:
        return True
    return job.location.lower() in candidate.location.lower()


def overall_fit(score: float) -> str:
    if score >= 0.9:
        return "Exceptional match - ideal candidate"
    if score >= 0.8:
        return "Strong match - highly recommended"
    if score >= 0.7:
        return "Good match - worth interviewing"
    if score >= 0.6:
        return "Moderate match - has potential"
    if score >= 0.5:
        return "Weak match - significant gaps"
    return "Poor match - not recommended"


def requirement_keywords(job: Job) -> List[str]:
    words = _WORD_SPLIT_RE.split((job.requirements or "").lower())
    return [w for w in words if len(w) > 2]


def strengths_and_concerns(candidate: Candidate, job: Job, skills: SkillMatchResult) -> Tuple[List[str], List[str]]:
    strengths: List[str] = []
    concerns: List[str] = []
    if experience_matches(candidate, job):
        strengths.append("Experience level alignment")
    else:
        concerns.append("Experience level mismatch")
    if (candidate.years_of_experience or 0) > 5:
        strengths.append("Experienced professional")
    if location_compatible(candidate, job):
        strengths.append("Location compatibility")
    else:
        concerns.append("Location mismatch")
    if len(skills.matched) > 3:
        strengths.append("Strong technical skill match")
    if len(skills.missing) > 2:
        concerns.append("Missing key technical skills")
    if not concerns:
        concerns.append("No major concerns identified")
    return strengths, concerns


class Scorer(ABC):
    """Rates a job/candidate pair between 0 and 1."""

    method: str = ""

    @abstractmethod
    def score(self, job: Job, candidate: Candidate) -> float:
        raise NotImplementedError


class EmbeddingScorer(Scorer):
    method = "embedding"

    def score(self, job: Job, candidate: Candidate) -> float:
        job_vector = parse_vector(job.embedding)
        candidate_vector = parse_vector(candidate.embedding)
        if job_vector is None or candidate_vector is None:
            raise ValueError("EmbeddingScorer needs embeddings on both records")
        return cosine_similarity(job_vector, candidate_vector)


class KeywordScorer(Scorer):
    """Rule based fallback.

    +0.1 per requirement keyword found in the candidate's tags or
    skills, +0.3 when experience fits the job level, +0.1 when the
    location is compatible.  Clamped to [0, 1].
    """

    method = "rule_based"

    def score(self, job: Job, candidate: Candidate) -> float:
        total = 0.0
        offered = {t.lower() for t in candidate.tags if isinstance(t, str)}
        offered.update(candidate_skills(candidate))
        if offered:
            total += 0.1 * sum(1 for word in requirement_keywords(job) if word in offered)
        if experience_matches(candidate, job):
            total += 0.3
        if location_compatible(candidate, job):
            total += 0.1
        return min(1.0, max(0.0, total))


def _usable_vector(raw) -> Optional[List[float]]:
    try:
        return parse_vector(raw)
    except ValueError:
        return None


def select_scorer(job: Job, candidate: Candidate) -> Scorer:
    """Embedding scoring when both records carry compatible vectors, rules otherwise."""
    job_vector = _usable_vector(job.embedding)
    candidate_vector = _usable_vector(candidate.embedding)
    if job_vector is not None and candidate_vector is not None:
        if len(job_vector) == len(candidate_vector):
            return EmbeddingScorer()
        logger.debug(
            "Embedding lengths differ for job %s / candidate %s (%d != %d); using rules",
            job.id,
            candidate.id,
            len(job_vector),
            len(candidate_vector),
        )
    return KeywordScorer()
