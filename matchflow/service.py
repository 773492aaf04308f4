"""
Caller facing matching service.

:class:`MatchingService` is what request handlers talk to.  It checks
the organization scope of every call before anything else happens and
delegates the work to a :class:`~matchflow.rank.ranker.MatchingEngine`.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import MatchingConfig
from .errors import CandidateNotFound, JobNotFound
from .models import MatchDetail, MatchingResult, ScreeningMatch
from .rank.llm_providers import AnalysisProvider
from .rank.ranker import MatchingEngine
from .store.base import RecordStore, require_organization
from .store.cache import InMemoryResultCache, ResultCache

logger = logging.getLogger(__name__)


class MatchingService:
    def __init__(
        self,
        store: RecordStore,
        cache: Optional[ResultCache] = None,
        analysis_provider: Optional[AnalysisProvider] = None,
        config: Optional[MatchingConfig] = None,
        engine: Optional[MatchingEngine] = None,
    ) -> None:
        self.engine = engine or MatchingEngine(
            store,
            cache if cache is not None else InMemoryResultCache(),
            analysis_provider=analysis_provider,
            config=config,
        )

    @property
    def store(self) -> RecordStore:
        return self.engine.store

    async def rank_candidates(
        self,
        job_id: str,
        organization_id: str,
        limit: int = 5,
        force_rematch: bool = False,
    ) -> List[MatchingResult]:
        organization_id = require_organization(organization_id)
        return await self.engine.find_best_candidates_for_job(
            job_id, organization_id, limit=limit, force_rematch=force_rematch
        )

    async def rank_similar_candidates(
        self, candidate_id: str, organization_id: str, limit: int = 5
    ) -> List[MatchingResult]:
        organization_id = require_organization(organization_id)
        return await self.engine.find_similar_candidates(candidate_id, organization_id, limit=limit)

    async def get_cached_result(
        self, job_id: str, candidate_id: str, organization_id: str
    ) -> Optional[MatchingResult]:
        organization_id = require_organization(organization_id)
        return await self.engine.get_cached_single_matching_result(job_id, candidate_id, organization_id)

    async def invalidate(
        self,
        organization_id: str,
        job_id: Optional[str] = None,
        candidate_id: Optional[str] = None,
    ) -> int:
        """Drop cached results after a job and/or candidate changed."""
        organization_id = require_organization(organization_id)
        return await self.engine.invalidate(organization_id, job_id=job_id, candidate_id=candidate_id)

    async def screen_candidates(
        self,
        job_id: str,
        organization_id: str,
        min_score: Optional[float] = None,
        limit: int = 10,
    ) -> List[ScreeningMatch]:
        organization_id = require_organization(organization_id)
        return await self.engine.screen_candidates(job_id, organization_id, min_score=min_score, limit=limit)

    async def match_detail(self, job_id: str, candidate_id: str, organization_id: str) -> MatchDetail:
        """Detail view for one job/candidate pair.

        A live cached result is returned as is.  Otherwise both records
        are loaded and a fresh analysis is run; that path carries no
        score, similarity or skill matches.

        Raises:
            JobNotFound, CandidateNotFound: if either record is missing.
        """
        organization_id = require_organization(organization_id)
        cached = await self.engine.get_cached_single_matching_result(job_id, candidate_id, organization_id)
        if cached is not None:
            logger.info("Serving cached match detail for job %s / candidate %s", job_id, candidate_id)
            return MatchDetail(
                ai_analysis=cached.ai_analysis,
                skill_matches=cached.skill_matches,
                score=cached.score,
                embedding_similarity=cached.embedding_similarity,
                from_cache=True,
            )

        job = await self.store.get_job(job_id, organization_id)
        if job is None:
            raise JobNotFound(job_id)
        candidate = await self.store.get_candidate(candidate_id, organization_id)
        if candidate is None:
            raise CandidateNotFound(candidate_id)
        analysis = await self.engine.analyze_job_candidate_match(job, candidate)
        return MatchDetail(
            ai_analysis=analysis,
            skill_matches=None,
            score=None,
            embedding_similarity=None,
            from_cache=False,
        )

    async def sweep_expired(self) -> int:
        return await self.engine.sweep_expired()

    async def close(self) -> None:
        """Wait for pending background cache writes."""
        await self.engine.drain()
