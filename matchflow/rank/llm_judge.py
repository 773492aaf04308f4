"""
Analysis judging stage.

This module sends a job/candidate pair to an analysis provider and
always comes back with an :class:`~matchflow.models.AiAnalysis`.  When
the provider raises, times out or answers with something that is not
JSON, a degraded analysis derived purely from the embedding similarity
is returned instead and flagged with ``degraded=True``.

Providers are synchronous (they wrap blocking HTTP clients), so
:class:`AsyncAnalysisProvider` runs them in the default thread pool and
caps how many run at once.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import math
from typing import Any, Dict, Optional

from ..models import AiAnalysis, Candidate, Job
from ..skills.extract import candidate_skills, job_skills
from .llm_providers import AnalysisProvider

logger = logging.getLogger(__name__)

DEGRADED_REASONING = "Unable to perform detailed AI analysis. Score based on embedding similarity."


def job_summary(job: Job) -> Dict[str, Any]:
    """Fields of a job an analysis provider gets to see."""
    return {
        "id": job.id,
        "title": job.title,
        "description": job.description,
        "requirements": job.requirements,
        "level": job.level,
        "type": job.type,
        "required_skills": job_skills(job),
    }


def candidate_summary(candidate: Candidate) -> Dict[str, Any]:
    """Fields of a candidate an analysis provider gets to see."""
    return {
        "id": candidate.id,
        "name": candidate.full_name,
        "years_of_experience": candidate.years_of_experience or 0,
        "skills": candidate_skills(candidate),
        "summary": candidate.summary,
    }


def degraded_analysis(embedding_similarity: float, threshold: float = 0.7) -> AiAnalysis:
    """Analysis used when the provider could not deliver one."""
    return AiAnalysis(
        overall_match=float(math.floor((embedding_similarity or 0.0) * 100 + 0.5)),
        strengths=["Embedding similarity indicates potential match"],
        weaknesses=["AI analysis unavailable"],
        reasoning=DEGRADED_REASONING,
        recommendation="recommended" if embedding_similarity > threshold else "consider",
        degraded=True,
    )


class AsyncAnalysisProvider:
    """Async wrapper for analysis providers to enable concurrent calls."""

    def __init__(self, provider: AnalysisProvider, max_concurrent: int = 5) -> None:
        self.provider = provider
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        async with self._semaphore:
            if inspect.iscoroutinefunction(self.provider.analyze):
                return await self.provider.analyze(job, candidate, embedding_similarity)
            # Run the blocking call in a thread pool to avoid stalling the loop
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None,
                functools.partial(self.provider.analyze, job, candidate, embedding_similarity),
            )


async def judge_candidate(
    provider: AsyncAnalysisProvider,
    job: Job,
    candidate: Candidate,
    embedding_similarity: float,
    *,
    timeout: Optional[float] = 30.0,
    threshold: float = 0.7,
) -> AiAnalysis:
    """Ask the provider about one pair, degrading instead of raising.

    A timeout is handled exactly like a provider error.
    """
    try:
        return await asyncio.wait_for(
            provider.analyze(job_summary(job), candidate_summary(candidate), embedding_similarity),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "Analysis timed out after %ss for job %s / candidate %s", timeout, job.id, candidate.id
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("Analysis provider failed for job %s / candidate %s: %s", job.id, candidate.id, exc)
    return degraded_analysis(embedding_similarity, threshold)
