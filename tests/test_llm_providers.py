"""Tests for analysis response parsing and provider selection."""

from __future__ import annotations

import pytest  # type: ignore

import matchflow.rank.llm_providers as providers
from matchflow.errors import AnalysisParseError
from matchflow.rank.llm_providers import (
    PlaceholderProvider,
    build_analysis_prompt,
    get_default_provider,
    parse_analysis_response,
)


def test_parse_fenced_json() -> None:
    """Markdown fences and chatter around the object are ignored."""
    content = (
        "Sure, here you go:\n```json\n"
        '{"overallMatch": 82, "strengths": ["a", "b", "c", "d"], "weaknesses": ["x"],'
        ' "reasoning": "Strong fit", "recommendation": "highly_recommended"}\n```'
    )
    analysis = parse_analysis_response(content)
    assert analysis.overall_match == 82
    assert analysis.strengths == ["a", "b", "c"]
    assert analysis.weaknesses == ["x"]
    assert analysis.reasoning == "Strong fit"
    assert analysis.recommendation == "highly_recommended"
    assert analysis.degraded is False


def test_parse_defaults_field_by_field() -> None:
    analysis = parse_analysis_response('{"overallMatch": "lots", "strengths": "nope", "recommendation": "hire!"}')
    assert analysis.overall_match == 0.0
    assert analysis.strengths == []
    assert analysis.weaknesses == []
    assert analysis.reasoning == "Analysis not available"
    assert analysis.recommendation == "consider"


def test_parse_clamps_score() -> None:
    assert parse_analysis_response('{"overallMatch": 140}').overall_match == 100.0
    assert parse_analysis_response('{"overall_match": -5}').overall_match == 0.0


@pytest.mark.parametrize("content", ["", "no json here", "[1, 2, 3]"])
def test_parse_rejects_non_objects(content: str) -> None:
    with pytest.raises(AnalysisParseError):
        parse_analysis_response(content)


def test_prompt_mentions_job_and_candidate() -> None:
    prompt = build_analysis_prompt(
        {"title": "Data Engineer", "required_skills": ["python", "spark"]},
        {"name": "Ana Tester", "years_of_experience": 4, "skills": ["python"]},
        0.8123,
    )
    assert "Title: Data Engineer" in prompt
    assert "Required Skills: python, spark" in prompt
    assert "Name: Ana Tester" in prompt
    assert "Embedding Similarity Score: 0.812" in prompt
    assert '"overallMatch"' in prompt


def test_placeholder_provider_scores_from_coverage_and_similarity() -> None:
    provider = PlaceholderProvider()
    analysis = provider.analyze(
        {"required_skills": ["python", "postgresql"]},
        {"skills": ["python", "postgres"]},
        0.9,
    )
    # coverage 1.0, similarity 0.9 -> 95
    assert analysis.overall_match == 95
    assert analysis.recommendation == "highly_recommended"
    weak = provider.analyze({"required_skills": ["rust", "go"]}, {"skills": ["php"]}, 0.2)
    assert weak.overall_match == 10
    assert weak.recommendation == "not_recommended"
    assert weak.weaknesses == ["Missing rust", "Missing go"]


def test_default_provider_without_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("LLM_PROVIDER", "OPENAI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    assert isinstance(get_default_provider(), PlaceholderProvider)


def test_default_provider_honours_preference(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "placeholder")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert isinstance(get_default_provider(), PlaceholderProvider)


def test_default_provider_falls_back_when_init_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    """A provider that cannot start does not stop the engine from running."""

    class Broken:
        def __init__(self, *args: object, **kwargs: object) -> None:
            raise RuntimeError("package missing")

    monkeypatch.setattr(providers, "OpenAIProvider", Broken)
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    assert isinstance(get_default_provider(), PlaceholderProvider)
