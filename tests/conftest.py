"""Shared fixtures for the matchflow test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest  # type: ignore

from matchflow.models import AiAnalysis, Candidate, Job
from matchflow.rank.llm_providers import AnalysisProvider

ORG = "org-1"


def make_job(job_id: str = "job-1", embedding: Any = (1.0, 0.0), **kwargs: Any) -> Job:
    fields: Dict[str, Any] = {"title": "Backend Engineer", "skills": ["python", "postgresql"]}
    fields.update(kwargs)
    fields.setdefault("organization_id", ORG)
    return Job(id=job_id, embedding=list(embedding) if isinstance(embedding, tuple) else embedding, **fields)


def make_candidate(candidate_id: str, embedding: Any = None, **kwargs: Any) -> Candidate:
    fields: Dict[str, Any] = {
        "first_name": candidate_id.capitalize(),
        "last_name": "Tester",
        "email": f"{candidate_id}@example.com",
        "skills": ["python"],
        "years_of_experience": 3,
    }
    fields.update(kwargs)
    fields.setdefault("organization_id", ORG)
    return Candidate(id=candidate_id, embedding=embedding, **fields)


class RecordingProvider(AnalysisProvider):
    """Returns a fixed score and remembers which candidates it saw."""

    def __init__(self, overall: float = 80.0, fail_for: tuple = ()) -> None:
        self.overall = overall
        self.fail_for = set(fail_for)
        self.calls: List[str] = []

    def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        self.calls.append(candidate["id"])
        if candidate["id"] in self.fail_for:
            raise RuntimeError("provider exploded")
        return AiAnalysis(
            overall_match=self.overall,
            strengths=["Solid background"],
            weaknesses=[],
            reasoning="Looks fine",
            recommendation="recommended",
        )


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
