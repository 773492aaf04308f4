"""
Ranking result cache.

Results are keyed by (organization, job, candidate) and carry an
``expires_at`` timestamp; every read ignores rows past it.  Next to the
rows of a job sits a ranking marker recording the ``limit`` the ranking
was computed with and how many rows it produced, so a reader can tell a
complete ranking from a partial one.  The cache only ever holds computed
values, so dropping it entirely costs latency but never changes a
ranking.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..models import AiAnalysis, CandidateSummary, MatchingResult, SkillMatchResult
from .base import require_organization

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_limit(limit: Optional[int]) -> Optional[int]:
    """Reject result limits below one."""
    if limit is not None and limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    return limit


@dataclass
class RankingMarker:
    """How a cached ranking for one job was produced."""

    limit: int
    count: int
    expires_at: datetime

    def covers(self, limit: int) -> bool:
        return self.limit >= limit

    def expected_rows(self, limit: int) -> int:
        return min(limit, self.count)


class ResultCache(ABC):
    """Storage for computed :class:`MatchingResult` rows."""

    @abstractmethod
    async def get_many(self, job_id: str, organization_id: str, limit: Optional[int] = None) -> List[MatchingResult]:
        """Unexpired results for a job, best score first."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, job_id: str, candidate_id: str, organization_id: str) -> Optional[MatchingResult]:
        """The unexpired result for one pair, if any."""
        raise NotImplementedError

    @abstractmethod
    async def upsert(
        self,
        job_id: str,
        candidate_id: str,
        organization_id: str,
        *,
        score: float,
        embedding_similarity: float,
        skill_matches: SkillMatchResult,
        ai_analysis: Optional[AiAnalysis] = None,
        candidate: Optional[CandidateSummary] = None,
        ttl: timedelta = DEFAULT_TTL,
    ) -> MatchingResult:
        """Insert or replace the result for a pair and restart its TTL."""
        raise NotImplementedError

    @abstractmethod
    async def store_ranking(
        self,
        job_id: str,
        organization_id: str,
        results: List[MatchingResult],
        *,
        limit: int,
        ttl: timedelta = DEFAULT_TTL,
    ) -> int:
        """Replace the cached ranking of a job with ``results``.

        Rows left over from an earlier ranking of the job are dropped and
        a :class:`RankingMarker` for ``limit`` is recorded.  Returns the
        number of rows written.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_ranking(self, job_id: str, organization_id: str) -> Optional[RankingMarker]:
        """The unexpired ranking marker of a job, if any."""
        raise NotImplementedError

    @abstractmethod
    async def invalidate(
        self,
        organization_id: str,
        job_id: Optional[str] = None,
        candidate_id: Optional[str] = None,
    ) -> int:
        """Drop the cached ranking of every affected job.

        With ``job_id`` that job is affected.  With only ``candidate_id``
        every job the candidate has a row for is affected, and the whole
        ranking of each is dropped, not just the candidate's row.  Returns
        the number of rows deleted.
        """
        raise NotImplementedError

    @abstractmethod
    async def sweep_expired(self) -> int:
        """Delete every expired row; returns the count deleted."""
        raise NotImplementedError


class InMemoryResultCache(ResultCache):
    """Process local :class:`ResultCache`.

    Args:
        clock: Returns the current time; injectable for tests.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._rows: Dict[Tuple[str, str, str], MatchingResult] = {}
        self._rankings: Dict[Tuple[str, str], RankingMarker] = {}

    def __len__(self) -> int:
        return len(self._rows)

    def _live(self, row: MatchingResult, now: datetime) -> bool:
        return row.expires_at is not None and row.expires_at > now

    async def get_many(self, job_id: str, organization_id: str, limit: Optional[int] = None) -> List[MatchingResult]:
        organization_id = require_organization(organization_id)
        check_limit(limit)
        now = self._clock()
        rows = [
            row
            for (org, job, _), row in self._rows.items()
            if org == organization_id and job == job_id and self._live(row, now)
        ]
        rows.sort(key=lambda r: r.score, reverse=True)
        return rows[:limit] if limit is not None else rows

    async def get(self, job_id: str, candidate_id: str, organization_id: str) -> Optional[MatchingResult]:
        organization_id = require_organization(organization_id)
        row = self._rows.get((organization_id, job_id, candidate_id))
        if row is None or not self._live(row, self._clock()):
            return None
        return row

    async def upsert(
        self,
        job_id: str,
        candidate_id: str,
        organization_id: str,
        *,
        score: float,
        embedding_similarity: float,
        skill_matches: SkillMatchResult,
        ai_analysis: Optional[AiAnalysis] = None,
        candidate: Optional[CandidateSummary] = None,
        ttl: timedelta = DEFAULT_TTL,
    ) -> MatchingResult:
        organization_id = require_organization(organization_id)
        now = self._clock()
        row = MatchingResult(
            candidate_id=candidate_id,
            job_id=job_id,
            organization_id=organization_id,
            score=score,
            embedding_similarity=embedding_similarity,
            skill_matches=skill_matches,
            ai_analysis=ai_analysis,
            calculated_at=now,
            expires_at=now + ttl,
            candidate=candidate,
        )
        self._rows[(organization_id, job_id, candidate_id)] = row
        return row

    async def store_ranking(
        self,
        job_id: str,
        organization_id: str,
        results: List[MatchingResult],
        *,
        limit: int,
        ttl: timedelta = DEFAULT_TTL,
    ) -> int:
        organization_id = require_organization(organization_id)
        check_limit(limit)
        self._drop_jobs(organization_id, {job_id})
        for result in results:
            await self.upsert(
                job_id,
                result.candidate_id,
                organization_id,
                score=result.score,
                embedding_similarity=result.embedding_similarity,
                skill_matches=result.skill_matches,
                ai_analysis=result.ai_analysis,
                candidate=result.candidate,
                ttl=ttl,
            )
        self._rankings[(organization_id, job_id)] = RankingMarker(
            limit=limit, count=len(results), expires_at=self._clock() + ttl
        )
        return len(results)

    async def get_ranking(self, job_id: str, organization_id: str) -> Optional[RankingMarker]:
        organization_id = require_organization(organization_id)
        marker = self._rankings.get((organization_id, job_id))
        if marker is None or marker.expires_at <= self._clock():
            return None
        return marker

    def _drop_jobs(self, organization_id: str, job_ids: Set[str]) -> int:
        doomed = [key for key in self._rows if key[0] == organization_id and key[1] in job_ids]
        for key in doomed:
            del self._rows[key]
        for job_id in job_ids:
            self._rankings.pop((organization_id, job_id), None)
        return len(doomed)

    async def invalidate(
        self,
        organization_id: str,
        job_id: Optional[str] = None,
        candidate_id: Optional[str] = None,
    ) -> int:
        organization_id = require_organization(organization_id)
        if job_id is None and candidate_id is None:
            raise ValueError("invalidate needs a job_id, a candidate_id or both")
        if job_id is not None:
            jobs = {job_id}
        else:
            jobs = {key[1] for key in self._rows if key[0] == organization_id and key[2] == candidate_id}
        removed = self._drop_jobs(organization_id, jobs)
        logger.info(
            "Invalidated cache for job=%s candidate=%s, dropped %d rankings and %d entries",
            job_id,
            candidate_id,
            len(jobs),
            removed,
        )
        return removed

    async def sweep_expired(self) -> int:
        now = self._clock()
        doomed = [key for key, row in self._rows.items() if row.expires_at is None or row.expires_at < now]
        for key in doomed:
            del self._rows[key]
        stale = [key for key, marker in self._rankings.items() if marker.expires_at < now]
        for key in stale:
            del self._rankings[key]
        logger.info("Cleared %d expired cache entries", len(doomed))
        return len(doomed)
