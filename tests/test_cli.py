"""Tests for the command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest  # type: ignore

from matchflow.cli import main

RECORDS = {
    "jobs": [
        {
            "id": "j1",
            "organizationId": "acme",
            "title": "Frontend Engineer",
            "requirements": "react typescript",
            "requirementsDetailed": {"skills": {"technical": ["React", "TypeScript"]}},
            "embedding": "[1, 0]",
        }
    ],
    "candidates": [
        {
            "id": "c1",
            "organizationId": "acme",
            "firstName": "Ana",
            "lastName": "Lopez",
            "skills": {"technical": ["ReactJS", "TS"]},
            "yearsOfExperience": 4,
            "embedding": [1, 0],
        },
        {
            "id": "c2",
            "organizationId": "acme",
            "firstName": "Bo",
            "lastName": "Chen",
            "skills": ["Python"],
            "embedding": [0, 1],
        },
    ],
}


@pytest.fixture
def records(tmp_path: Path) -> Path:
    path = tmp_path / "records.json"
    path.write_text(json.dumps(RECORDS), encoding="utf-8")
    return path


def _run(capsys: pytest.CaptureFixture, *argv: str):
    main(list(argv))
    return json.loads(capsys.readouterr().out)


def test_rank_command(records: Path, capsys: pytest.CaptureFixture) -> None:
    out = _run(capsys, "--no-analysis", "rank", "--data", str(records), "--org", "acme", "--job", "j1")
    assert [row["candidate_id"] for row in out] == ["c1", "c2"]
    assert out[0]["score"] == pytest.approx(100.0)
    assert out[0]["skill_matches"]["matched"] == ["react", "typescript"]


def test_similar_command(records: Path, capsys: pytest.CaptureFixture) -> None:
    out = _run(capsys, "--no-analysis", "similar", "--data", str(records), "--org", "acme", "--candidate", "c1")
    assert [row["candidate_id"] for row in out] == ["c2"]
    assert out[0]["ai_analysis"] is None


def test_screen_command(records: Path, capsys: pytest.CaptureFixture) -> None:
    out = _run(capsys, "--no-analysis", "screen", "--data", str(records), "--org", "acme", "--job", "j1")
    assert [(row["candidate_id"], row["method"]) for row in out] == [("c1", "embedding")]


def test_detail_command_without_analysis(records: Path, capsys: pytest.CaptureFixture) -> None:
    out = _run(
        capsys, "--no-analysis", "detail", "--data", str(records), "--org", "acme", "--job", "j1", "--candidate", "c2"
    )
    assert out["from_cache"] is False
    assert out["ai_analysis"]["degraded"] is True


def test_skills_command(records: Path, capsys: pytest.CaptureFixture) -> None:
    out = _run(capsys, "skills", "--data", str(records), "--org", "acme", "--job", "j1", "--candidate", "c2")
    assert out["missing"] == ["react", "typescript"]
    assert out["additional"] == ["python"]
    job_only = _run(capsys, "skills", "--data", str(records), "--org", "acme", "--job", "j1")
    assert job_only == {"job_id": "j1", "skills": ["react", "typescript"]}


def test_unknown_job_exits_non_zero(records: Path) -> None:
    with pytest.raises(SystemExit) as info:
        main(["--no-analysis", "rank", "--data", str(records), "--org", "acme", "--job", "missing"])
    assert info.value.code == 1


def test_wrong_organization_is_not_found(records: Path) -> None:
    with pytest.raises(SystemExit):
        main(["skills", "--data", str(records), "--org", "other", "--job", "j1"])


def test_embed_command_fills_missing_vectors(
    records: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    monkeypatch.setenv("EMBEDDING_PROVIDER", "hashing")
    data = json.loads(records.read_text(encoding="utf-8"))
    data["candidates"].append({"id": "c3", "organizationId": "acme", "skills": ["React"]})
    records.write_text(json.dumps(data), encoding="utf-8")
    out_path = tmp_path / "embedded.json"

    main(["embed", "--data", str(records), "--out", str(out_path)])

    embedded = json.loads(out_path.read_text(encoding="utf-8"))
    c3 = embedded["candidates"][-1]
    assert len(c3["embedding"]) == 256
    # Existing vectors are left alone without --overwrite
    assert embedded["jobs"][0]["embedding"] == "[1, 0]"
    assert embedded["candidates"][0]["embedding"] == [1, 0]
