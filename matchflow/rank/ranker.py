"""
Composite ranking stage.

:class:`MatchingEngine` ties the other stages together.  A ranking
request for a job first consults the result cache.  On a miss it scores
every eligible candidate by embedding similarity, short lists the best
``shortlist_factor * limit`` of them, asks the analysis provider about
each short‑listed candidate concurrently and blends both signals into
the composite score.  Results are written back to the cache in the
background; the caller never waits for that write.

Identical ranking requests for the same (organization, job) that
arrive while one is still being computed share that computation.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..config import MatchingConfig
from ..errors import CandidateNotFound, InvalidEmbedding, JobNotFound, MissingEmbedding
from ..models import AiAnalysis, Candidate, CandidateSummary, Job, MatchingResult, ScreeningMatch
from ..skills.extract import candidate_skills
from ..skills.match import analyze_skill_matches, match_skill_sets
from ..store.base import RecordStore, require_organization
from ..store.cache import ResultCache, check_limit, utcnow
from .aggregate import aggregate_scores
from .llm_judge import AsyncAnalysisProvider, degraded_analysis, judge_candidate
from .llm_providers import AnalysisProvider
from .scorers import experience_matches, overall_fit, select_scorer, strengths_and_concerns
from .similarity import cosine_similarity, parse_vector, rank_by_vector

logger = logging.getLogger(__name__)


def _record_vector(kind: str, record_id: str, raw: Any) -> List[float]:
    """Decode the embedding of the record a request is anchored on."""
    try:
        vector = parse_vector(raw)
    except ValueError as exc:
        logger.warning("Could not decode %s embedding for %s: %s", kind, record_id, exc)
        raise InvalidEmbedding(kind, record_id) from exc
    if vector is None:
        raise MissingEmbedding(kind, record_id)
    return vector


def summarize_candidate(candidate: Candidate) -> CandidateSummary:
    return CandidateSummary(
        id=candidate.id,
        first_name=candidate.first_name,
        last_name=candidate.last_name,
        email=candidate.email,
        skills=candidate_skills(candidate),
        experience=candidate.years_of_experience or 0,
        summary=candidate.summary,
    )


class MatchingEngine:
    """Ranks candidates for jobs and candidates against each other.

    Args:
        store: Read access to jobs and candidates.
        cache: Where computed rankings are kept between requests.
        analysis_provider: Qualitative assessor for short‑listed
            candidates.  ``None`` disables analysis; scores are then
            pure similarity.
        config: Blend weights, thresholds and limits.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        store: RecordStore,
        cache: ResultCache,
        analysis_provider: Optional[AnalysisProvider] = None,
        config: Optional[MatchingConfig] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.cache = cache
        self.config = config or MatchingConfig()
        self.config.validate()
        self._clock = clock
        self._analyzer: Optional[AsyncAnalysisProvider] = None
        if analysis_provider is not None:
            self._analyzer = AsyncAnalysisProvider(analysis_provider, self.config.max_concurrent_analyses)
        self._inflight: Dict[Tuple[str, str], Tuple[int, "asyncio.Future[List[MatchingResult]]"]] = {}
        self._background: Set["asyncio.Task[None]"] = set()

    @property
    def analysis_enabled(self) -> bool:
        return self._analyzer is not None

    # ------------------------------------------------------------------
    # Ranking for a job

    async def find_best_candidates_for_job(
        self,
        job_id: str,
        organization_id: str,
        limit: int = 5,
        force_rematch: bool = False,
    ) -> List[MatchingResult]:
        """Return the best ``limit`` candidates for a job, best first.

        Raises:
            ValueError: if ``limit`` is below one.
            JobNotFound: if the job does not exist in the organization.
            MissingEmbedding: if the job has no (readable) embedding.
        """
        organization_id = require_organization(organization_id)
        check_limit(limit)
        if not force_rematch:
            cached = await self._cached_ranking(job_id, organization_id, limit)
            if cached is not None:
                logger.info("Found %d cached matches for job %s", len(cached), job_id)
                return cached
            logger.info("No complete cached ranking for job %s; computing", job_id)

        key = (organization_id, job_id)
        entry = self._inflight.get(key)
        if entry is not None and entry[0] >= limit:
            logger.info("Joining in-flight ranking for job %s", job_id)
            results = await asyncio.shield(entry[1])
            return results[:limit]

        future = asyncio.ensure_future(self._compute_ranking(job_id, organization_id, limit))
        entry = (limit, future)
        self._inflight[key] = entry

        def _release(_: "asyncio.Future[List[MatchingResult]]") -> None:
            if self._inflight.get(key) is entry:
                del self._inflight[key]

        future.add_done_callback(_release)
        results = await asyncio.shield(future)
        return results[:limit]

    async def _cached_ranking(
        self, job_id: str, organization_id: str, limit: int
    ) -> Optional[List[MatchingResult]]:
        """Cached rows, but only when they form a complete ranking for ``limit``."""
        marker = await self.cache.get_ranking(job_id, organization_id)
        if marker is None or not marker.covers(limit):
            return None
        rows = await self.cache.get_many(job_id, organization_id, limit)
        if len(rows) < marker.expected_rows(limit):
            logger.debug(
                "Cached ranking for job %s has %d of %d rows", job_id, len(rows), marker.expected_rows(limit)
            )
            return None
        return rows

    async def _compute_ranking(self, job_id: str, organization_id: str, limit: int) -> List[MatchingResult]:
        cfg = self.config
        job = await self.store.get_job(job_id, organization_id)
        if job is None:
            raise JobNotFound(job_id)
        job_vector = _record_vector("job", job.id, job.embedding)

        candidates = await self.store.list_candidates(
            organization_id, with_embedding=True, limit=cfg.candidate_pool_limit
        )
        ranked = self._rank_candidates(job_vector, candidates)
        shortlist = ranked[: cfg.shortlist_factor * limit]
        logger.info(
            "Short listed %d of %d candidates for job %s", len(shortlist), len(candidates), job_id
        )

        skill_matches = {c.id: analyze_skill_matches(job, c) for c, _ in shortlist}
        analyses: Dict[str, AiAnalysis] = {}
        if self._analyzer is not None and shortlist:
            judged = await asyncio.gather(
                *(
                    judge_candidate(
                        self._analyzer,
                        job,
                        candidate,
                        similarity,
                        timeout=cfg.analysis_timeout,
                        threshold=cfg.recommend_threshold,
                    )
                    for candidate, similarity in shortlist
                )
            )
            analyses = {candidate.id: analysis for (candidate, _), analysis in zip(shortlist, judged)}
            degraded = sum(1 for a in judged if a.degraded)
            if degraded:
                logger.warning("%d of %d analyses for job %s were degraded", degraded, len(judged), job_id)

        rows = aggregate_scores(
            shortlist,
            analyses,
            skill_matches,
            {"embedding": cfg.embedding_weight, "analysis": cfg.analysis_weight},
        )[:limit]

        now = self._clock()
        results = [
            MatchingResult(
                candidate_id=row["candidate"].id,
                job_id=job.id,
                organization_id=organization_id,
                score=row["score"],
                embedding_similarity=row["embedding_similarity"],
                skill_matches=row["skill_matches"],
                ai_analysis=row["ai_analysis"],
                calculated_at=now,
                expires_at=now + cfg.cache_ttl,
                candidate=summarize_candidate(row["candidate"]),
            )
            for row in rows
        ]
        self._schedule_cache_write(job.id, organization_id, results, limit)
        return results

    def _rank_candidates(self, target: List[float], candidates: List[Candidate]) -> List[Tuple[Candidate, float]]:
        return rank_by_vector(target, candidates, lambda c: c.embedding)

    # ------------------------------------------------------------------
    # Background cache writes

    def _schedule_cache_write(
        self, job_id: str, organization_id: str, results: List[MatchingResult], limit: int
    ) -> None:
        if not results:
            return
        task = asyncio.ensure_future(self._write_results(job_id, organization_id, results, limit))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _write_results(
        self, job_id: str, organization_id: str, results: List[MatchingResult], limit: int
    ) -> None:
        try:
            written = await self.cache.store_ranking(
                job_id, organization_id, results, limit=limit, ttl=self.config.cache_ttl
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to cache ranking for job %s: %s", job_id, exc)
            return
        logger.debug("Cached %d matches for job %s (limit %d)", written, job_id, limit)

    async def drain(self) -> None:
        """Wait for every pending background cache write."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Candidate to candidate

    async def find_similar_candidates(
        self, candidate_id: str, organization_id: str, limit: int = 5
    ) -> List[MatchingResult]:
        """Candidates whose embeddings are closest to the given candidate's.

        The source candidate's skills act as the required set for skill
        matching.  No analysis is run and nothing is cached.  Results
        carry an empty ``job_id``.
        """
        organization_id = require_organization(organization_id)
        check_limit(limit)
        source = await self.store.get_candidate(candidate_id, organization_id)
        if source is None:
            raise CandidateNotFound(candidate_id)
        source_vector = _record_vector("candidate", source.id, source.embedding)

        others = await self.store.list_candidates(
            organization_id,
            exclude_ids=[source.id],
            with_embedding=True,
            limit=self.config.candidate_pool_limit,
        )
        ranked = self._rank_candidates(source_vector, others)[:limit]
        required = candidate_skills(source)
        now = self._clock()
        return [
            MatchingResult(
                candidate_id=candidate.id,
                job_id="",
                organization_id=organization_id,
                score=similarity * 100,
                embedding_similarity=similarity,
                skill_matches=match_skill_sets(required, candidate_skills(candidate)),
                calculated_at=now,
                candidate=summarize_candidate(candidate),
            )
            for candidate, similarity in ranked
        ]

    # ------------------------------------------------------------------
    # Single pair

    async def analyze_job_candidate_match(
        self,
        job: Job,
        candidate: Candidate,
        embedding_similarity: Optional[float] = None,
    ) -> AiAnalysis:
        """Run one isolated analysis; degrades instead of raising.

        Without an explicit similarity it is computed from the records'
        embeddings when both are readable and of equal length, else 0.
        With analysis disabled the similarity based fallback is returned.
        """
        if embedding_similarity is None:
            embedding_similarity = self._pair_similarity(job, candidate)
        if self._analyzer is None:
            logger.info("Analysis disabled; returning similarity based analysis for job %s", job.id)
            return degraded_analysis(embedding_similarity, self.config.recommend_threshold)
        return await judge_candidate(
            self._analyzer,
            job,
            candidate,
            embedding_similarity,
            timeout=self.config.analysis_timeout,
            threshold=self.config.recommend_threshold,
        )

    @staticmethod
    def _pair_similarity(job: Job, candidate: Candidate) -> float:
        try:
            job_vector = parse_vector(job.embedding)
            candidate_vector = parse_vector(candidate.embedding)
        except ValueError:
            return 0.0
        if job_vector is None or candidate_vector is None or len(job_vector) != len(candidate_vector):
            return 0.0
        return cosine_similarity(job_vector, candidate_vector)

    async def get_cached_single_matching_result(
        self, job_id: str, candidate_id: str, organization_id: str
    ) -> Optional[MatchingResult]:
        organization_id = require_organization(organization_id)
        return await self.cache.get(job_id, candidate_id, organization_id)

    # ------------------------------------------------------------------
    # Screening

    async def screen_candidates(
        self,
        job_id: str,
        organization_id: str,
        min_score: Optional[float] = None,
        limit: int = 10,
    ) -> List[ScreeningMatch]:
        """Screen every eligible candidate against a job.

        Each pair is scored by embeddings when both records carry
        compatible vectors and by keyword rules otherwise.  Matches
        below ``min_score`` (default from config) are dropped.
        """
        organization_id = require_organization(organization_id)
        check_limit(limit)
        threshold = self.config.min_screening_score if min_score is None else min_score
        job = await self.store.get_job(job_id, organization_id)
        if job is None:
            raise JobNotFound(job_id)
        candidates = await self.store.list_candidates(organization_id, limit=self.config.candidate_pool_limit)

        matches: List[ScreeningMatch] = []
        for candidate in candidates:
            scorer = select_scorer(job, candidate)
            score = scorer.score(job, candidate)
            if score < threshold:
                continue
            skills = analyze_skill_matches(job, candidate)
            strengths, concerns = strengths_and_concerns(candidate, job, skills)
            matches.append(
                ScreeningMatch(
                    candidate_id=candidate.id,
                    match_score=score,
                    method=scorer.method,
                    overall_fit=overall_fit(score),
                    experience_match=experience_matches(candidate, job),
                    skill_matches=skills,
                    strengths=strengths,
                    concerns=concerns,
                )
            )
        matches.sort(key=lambda m: m.match_score, reverse=True)
        logger.info(
            "Screened %d candidates for job %s, %d above %.2f",
            len(candidates),
            job_id,
            len(matches),
            threshold,
        )
        return matches[:limit]

    # ------------------------------------------------------------------
    # Cache maintenance

    async def invalidate(
        self,
        organization_id: str,
        job_id: Optional[str] = None,
        candidate_id: Optional[str] = None,
    ) -> int:
        organization_id = require_organization(organization_id)
        return await self.cache.invalidate(organization_id, job_id=job_id, candidate_id=candidate_id)

    async def sweep_expired(self) -> int:
        return await self.cache.sweep_expired()
