"""Tests for skill extraction, normalisation and variant aware matching."""

from __future__ import annotations

import json

from matchflow.skills.extract import (
    EmptyPayload,
    RawSkillString,
    SkillBuckets,
    SkillList,
    candidate_skills,
    extract_skills,
    extract_skills_from_text,
    job_skills,
    normalize,
    parse_skills_payload,
)
from matchflow.skills.match import analyze_skill_matches, match_skill_sets, skills_match

from conftest import make_candidate, make_job


def test_normalize_lowercases_dedupes_and_drops_short_tokens() -> None:
    assert normalize([" Python ", "python", "R", "", "Go", 5, "SQL"]) == ["python", "go", "sql"]


def test_payload_classification() -> None:
    """Every supported shape maps to its variant; junk becomes empty."""
    assert isinstance(parse_skills_payload(["a", "b"]), SkillList)
    assert isinstance(parse_skills_payload({"technical": ["x"]}), SkillBuckets)
    assert isinstance(parse_skills_payload('["python"]'), SkillList)
    assert isinstance(parse_skills_payload('{"soft": ["teamwork"]}'), SkillBuckets)
    assert isinstance(parse_skills_payload("Python, SQL"), RawSkillString)
    assert isinstance(parse_skills_payload(None), EmptyPayload)
    assert isinstance(parse_skills_payload(3.14), EmptyPayload)
    assert isinstance(parse_skills_payload("42"), EmptyPayload)


def test_extract_skills_from_buckets() -> None:
    raw = {
        "technical": ["Python", "Django"],
        "soft": ["Communication"],
        "languages": [{"language": "Spanish", "level": "native"}, {"level": "b2"}],
        "tools": ["Docker", 7],
    }
    assert extract_skills(raw) == ["python", "django", "communication", "spanish", "docker"]
    assert extract_skills(json.dumps(raw)) == extract_skills(raw)


def test_extract_skills_from_bare_string() -> None:
    assert extract_skills("  TypeScript ") == ["typescript"]


def test_text_scan_respects_word_boundaries() -> None:
    found = extract_skills_from_text("We build JavaScript apps with Node.js and a good CI/CD setup")
    assert "javascript" in found
    assert "node.js" in found
    assert "ci/cd" in found
    assert "java" not in found
    assert "go" not in found


def test_job_skills_prefers_structured_lists() -> None:
    job = make_job(
        requirements_detailed={"skills": {"technical": ["Rust"]}},
        skills=["python"],
        description="Python and Docker",
    )
    assert job_skills(job) == ["rust"]


def test_job_skills_falls_back_to_legacy_then_text() -> None:
    legacy = make_job(skills=["Kotlin"], description="python")
    assert job_skills(legacy) == ["kotlin"]
    text_only = make_job(skills=[], description="Python with Docker", requirements="AWS experience")
    assert job_skills(text_only) == ["python", "aws", "docker"]


def test_candidate_skills_include_experience_and_project_technologies() -> None:
    candidate = make_candidate(
        "ana",
        skills=["Python"],
        experience=[{"title": "Dev", "technologies": ["Django", "python"]}],
        projects=[{"name": "bot", "technologies": ["Redis"]}, "not a dict"],
    )
    assert candidate_skills(candidate) == ["python", "django", "redis"]


def test_skill_variants() -> None:
    assert skills_match("JS", "javascript")
    assert skills_match("k8s", "Kubernetes")
    assert not skills_match("java", "javascript")
    assert not skills_match("js", "ts")


def test_variant_matching_scenario() -> None:
    """react/node.js against reactjs/python."""
    result = match_skill_sets(["react", "node.js"], ["reactjs", "python"])
    assert result.matched == ["react"]
    assert result.missing == ["node.js"]
    assert result.additional == ["python"]


def test_matched_and_missing_partition_required() -> None:
    required = ["Python", "postgres", "AWS", "terraform", "Go"]
    offered = ["postgresql", "golang", "python", "vue"]
    result = match_skill_sets(required, offered)
    assert set(result.matched).isdisjoint(result.missing)
    assert set(result.matched) | set(result.missing) == set(result.required)
    assert result.required == ["python", "postgres", "aws", "terraform", "go"]
    assert result.missing == ["aws", "terraform"]
    assert result.additional == ["vue"]


def test_analyze_skill_matches_uses_records() -> None:
    job = make_job(skills=["python", "postgresql"])
    candidate = make_candidate("bo", skills='{"technical": ["Postgres", "Flask"]}')
    result = analyze_skill_matches(job, candidate)
    assert result.matched == ["postgresql"]
    assert result.missing == ["python"]
    assert result.additional == ["flask"]
