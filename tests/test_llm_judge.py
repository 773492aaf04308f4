"""Tests for the degrading analysis wrapper."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict

from matchflow.models import AiAnalysis
from matchflow.rank.llm_judge import (
    AsyncAnalysisProvider,
    candidate_summary,
    degraded_analysis,
    job_summary,
    judge_candidate,
)
from matchflow.rank.llm_providers import AnalysisProvider

from conftest import RecordingProvider, make_candidate, make_job


class SlowProvider(AnalysisProvider):
    def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        time.sleep(0.5)
        return AiAnalysis(overall_match=99)


class GarbageProvider(AnalysisProvider):
    def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        from matchflow.rank.llm_providers import parse_analysis_response

        return parse_analysis_response("I'd rather not say")


class CoroutineProvider(AnalysisProvider):
    async def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:  # type: ignore[override]
        await asyncio.sleep(0)
        return AiAnalysis(overall_match=42, recommendation="consider")


def test_degraded_analysis_follows_threshold() -> None:
    high = degraded_analysis(0.83)
    assert high.overall_match == 83
    assert high.recommendation == "recommended"
    assert high.degraded is True
    assert high.weaknesses == ["AI analysis unavailable"]
    # The threshold itself is not above the threshold
    assert degraded_analysis(0.7).recommendation == "consider"


def test_degraded_score_rounds_halves_up() -> None:
    assert degraded_analysis(0.125).overall_match == 13
    assert degraded_analysis(0.625).overall_match == 63
    assert degraded_analysis(0.0).overall_match == 0


def test_summaries_expose_expected_fields() -> None:
    job = make_job(skills=["Python"], level="senior")
    candidate = make_candidate("ana", skills=["SQL"], summary="Analyst")
    assert job_summary(job)["required_skills"] == ["python"]
    assert job_summary(job)["level"] == "senior"
    summary = candidate_summary(candidate)
    assert summary["name"] == "Ana Tester"
    assert summary["skills"] == ["sql"]
    assert summary["years_of_experience"] == 3


def test_judge_returns_provider_analysis() -> None:
    provider = RecordingProvider(overall=77)

    async def run() -> AiAnalysis:
        return await judge_candidate(AsyncAnalysisProvider(provider), make_job(), make_candidate("ana"), 0.5)

    analysis = asyncio.run(run())
    assert analysis.overall_match == 77
    assert analysis.degraded is False
    assert provider.calls == ["ana"]


def test_judge_degrades_on_error() -> None:
    provider = RecordingProvider(fail_for=("ana",))

    async def run() -> AiAnalysis:
        return await judge_candidate(AsyncAnalysisProvider(provider), make_job(), make_candidate("ana"), 0.9)

    analysis = asyncio.run(run())
    assert analysis.degraded is True
    assert analysis.overall_match == 90
    assert analysis.recommendation == "recommended"


def test_judge_degrades_on_unparseable_output() -> None:
    async def run() -> AiAnalysis:
        return await judge_candidate(AsyncAnalysisProvider(GarbageProvider()), make_job(), make_candidate("bo"), 0.4)

    analysis = asyncio.run(run())
    assert analysis.degraded is True
    assert analysis.recommendation == "consider"


def test_judge_treats_timeout_like_error() -> None:
    async def run() -> AiAnalysis:
        return await judge_candidate(
            AsyncAnalysisProvider(SlowProvider()), make_job(), make_candidate("cy"), 0.75, timeout=0.05
        )

    analysis = asyncio.run(run())
    assert analysis.degraded is True
    assert analysis.overall_match == 75
    assert analysis.recommendation == "recommended"


def test_async_provider_awaits_coroutine_providers() -> None:
    async def run() -> AiAnalysis:
        return await AsyncAnalysisProvider(CoroutineProvider()).analyze({}, {}, 0.1)

    assert asyncio.run(run()).overall_match == 42
