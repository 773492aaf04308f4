"""
Skill comparison.

Two skill tokens match when they are equal after normalisation or when
both appear in the same variant group, e.g. "js" and "javascript".
Matching is symmetric but not transitive across groups: two tokens
match only if at least one group holds both of them.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, Sequence

from ..models import Candidate, Job, SkillMatchResult
from .extract import candidate_skills, job_skills, normalize

logger = logging.getLogger(__name__)

VARIANT_GROUPS: Sequence[FrozenSet[str]] = (
    frozenset({"javascript", "js", "node.js", "nodejs"}),
    frozenset({"typescript", "ts"}),
    frozenset({"python", "py"}),
    frozenset({"react", "reactjs", "react.js"}),
    frozenset({"vue", "vuejs", "vue.js"}),
    frozenset({"angular", "angularjs"}),
    frozenset({"next.js", "nextjs"}),
    frozenset({"postgresql", "postgres"}),
    frozenset({"kubernetes", "k8s"}),
    frozenset({"golang", "go"}),
    frozenset({"c#", "csharp"}),
    frozenset({"aws", "amazon web services"}),
    frozenset({"gcp", "google cloud"}),
)


def skills_match(a: str, b: str, groups: Iterable[FrozenSet[str]] = VARIANT_GROUPS) -> bool:
    """Return True if two skill tokens denote the same skill."""
    s1 = (a or "").strip().lower()
    s2 = (b or "").strip().lower()
    if s1 == s2:
        return True
    return any(s1 in group and s2 in group for group in groups)


def match_skill_sets(
    required: Iterable[str],
    offered: Iterable[str],
    groups: Iterable[FrozenSet[str]] = VARIANT_GROUPS,
) -> SkillMatchResult:
    """Compare required skills against offered skills.

    Returns the required set split into ``matched`` and ``missing``,
    plus the ``additional`` offered skills that satisfy no requirement.
    """
    groups = tuple(groups)
    req = normalize(required)
    cand = normalize(offered)
    matched = [r for r in req if any(skills_match(r, c, groups) for c in cand)]
    missing = [r for r in req if r not in matched]
    additional = [c for c in cand if not any(skills_match(c, r, groups) for r in req)]
    return SkillMatchResult(required=req, matched=matched, missing=missing, additional=additional)


def analyze_skill_matches(job: Job, candidate: Candidate) -> SkillMatchResult:
    """Skill comparison between a job and a candidate record."""
    result = match_skill_sets(job_skills(job), candidate_skills(candidate))
    logger.debug(
        "Skills for job %s / candidate %s: %d/%d matched",
        job.id,
        candidate.id,
        len(result.matched),
        len(result.required),
    )
    return result
