"""
In‑memory record store.

Holds jobs and candidates in dictionaries.  Used by the CLI, which
loads records from a JSON export, and by the test suite.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Collection, Dict, Iterable, List, Optional

from ..models import EXCLUDED_STATUSES, Candidate, Job
from .base import RecordStore, require_organization

logger = logging.getLogger(__name__)


class InMemoryRecordStore(RecordStore):
    """Dictionary backed :class:`RecordStore`."""

    def __init__(self, jobs: Iterable[Job] = (), candidates: Iterable[Candidate] = ()) -> None:
        self._jobs: Dict[str, Job] = {}
        self._candidates: Dict[str, Candidate] = {}
        for job in jobs:
            self.add_job(job)
        for candidate in candidates:
            self.add_candidate(candidate)

    def add_job(self, job: Job) -> None:
        self._jobs[job.id] = job

    def add_candidate(self, candidate: Candidate) -> None:
        self._candidates[candidate.id] = candidate

    async def get_job(self, job_id: str, organization_id: str) -> Optional[Job]:
        organization_id = require_organization(organization_id)
        job = self._jobs.get(job_id)
        if job is None or job.organization_id != organization_id:
            return None
        return job

    async def get_candidate(self, candidate_id: str, organization_id: str) -> Optional[Candidate]:
        organization_id = require_organization(organization_id)
        candidate = self._candidates.get(candidate_id)
        if candidate is None or candidate.organization_id != organization_id:
            return None
        return candidate

    async def list_candidates(
        self,
        organization_id: str,
        *,
        exclude_statuses: Collection[str] = EXCLUDED_STATUSES,
        exclude_ids: Collection[str] = (),
        with_embedding: bool = False,
        limit: Optional[int] = None,
    ) -> List[Candidate]:
        organization_id = require_organization(organization_id)
        excluded = {s.upper() for s in exclude_statuses}
        out: List[Candidate] = []
        for candidate in self._candidates.values():
            if candidate.organization_id != organization_id:
                continue
            if candidate.status.upper() in excluded or candidate.id in exclude_ids:
                continue
            if with_embedding and candidate.embedding is None:
                continue
            out.append(candidate)
            if limit is not None and len(out) >= limit:
                break
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryRecordStore":
        jobs = [Job.from_dict(j) for j in data.get("jobs", [])]
        candidates = [Candidate.from_dict(c) for c in data.get("candidates", [])]
        logger.info("Loaded %d jobs and %d candidates", len(jobs), len(candidates))
        return cls(jobs, candidates)

    @classmethod
    def from_json(cls, path: str) -> "InMemoryRecordStore":
        """Load records from a JSON file of the form ``{"jobs": [...], "candidates": [...]}``."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Records file must hold a JSON object: {path}")
        return cls.from_dict(data)
