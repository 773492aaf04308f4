"""
Command line interface for matchflow.

Every subcommand works on a JSON records file of the form
``{"jobs": [...], "candidates": [...]}`` and prints JSON to stdout:

* ``rank`` – best candidates for a job.
* ``similar`` – candidates closest to a given candidate.
* ``screen`` – screen all candidates against a job.
* ``detail`` – analysis of a single job/candidate pair.
* ``skills`` – extracted skills of a job or candidate, or their comparison.
* ``embed`` – fill in missing embeddings and write the records back out.

Provider credentials are read from the environment (a ``.env`` file in
the working directory is loaded first).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .config import MatchingConfig, load_config
from .embed.providers import get_default_embedding_provider
from .embed.text import candidate_embedding_text, job_embedding_text
from .errors import CandidateNotFound, JobNotFound, MatchingError
from .models import Candidate, Job
from .rank.llm_providers import AnalysisProvider, get_default_provider
from .service import MatchingService
from .skills.extract import candidate_skills, job_skills
from .skills.match import analyze_skill_matches
from .store.memory import InMemoryRecordStore

logger = logging.getLogger("matchflow.cli")


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _build_service(args: argparse.Namespace, config: MatchingConfig) -> MatchingService:
    store = InMemoryRecordStore.from_json(args.data)
    provider: Optional[AnalysisProvider] = None
    if not args.no_analysis:
        provider = get_default_provider()
        logger.info("Using analysis provider %s", type(provider).__name__)
    return MatchingService(store, analysis_provider=provider, config=config)


async def _run_rank(args: argparse.Namespace, config: MatchingConfig) -> List[Dict[str, Any]]:
    service = _build_service(args, config)
    try:
        results = await service.rank_candidates(args.job, args.org, limit=args.limit, force_rematch=True)
    finally:
        await service.close()
    return [r.to_dict() for r in results]


async def _run_similar(args: argparse.Namespace, config: MatchingConfig) -> List[Dict[str, Any]]:
    service = _build_service(args, config)
    results = await service.rank_similar_candidates(args.candidate, args.org, limit=args.limit)
    return [r.to_dict() for r in results]


async def _run_screen(args: argparse.Namespace, config: MatchingConfig) -> List[Dict[str, Any]]:
    service = _build_service(args, config)
    matches = await service.screen_candidates(args.job, args.org, min_score=args.min_score, limit=args.limit)
    return [m.to_dict() for m in matches]


async def _run_detail(args: argparse.Namespace, config: MatchingConfig) -> Dict[str, Any]:
    service = _build_service(args, config)
    detail = await service.match_detail(args.job, args.candidate, args.org)
    return detail.to_dict()


def cmd_rank(args: argparse.Namespace, config: MatchingConfig) -> None:
    """Rank candidates for a job."""
    _print_json(asyncio.run(_run_rank(args, config)))


def cmd_similar(args: argparse.Namespace, config: MatchingConfig) -> None:
    """Find candidates similar to a candidate."""
    _print_json(asyncio.run(_run_similar(args, config)))


def cmd_screen(args: argparse.Namespace, config: MatchingConfig) -> None:
    _print_json(asyncio.run(_run_screen(args, config)))


def cmd_detail(args: argparse.Namespace, config: MatchingConfig) -> None:
    _print_json(asyncio.run(_run_detail(args, config)))


async def _load_pair(args: argparse.Namespace):
    store = InMemoryRecordStore.from_json(args.data)
    job = candidate = None
    if args.job:
        job = await store.get_job(args.job, args.org)
        if job is None:
            raise JobNotFound(args.job)
    if args.candidate:
        candidate = await store.get_candidate(args.candidate, args.org)
        if candidate is None:
            raise CandidateNotFound(args.candidate)
    return job, candidate


def cmd_skills(args: argparse.Namespace, config: MatchingConfig) -> None:
    """Print extracted skills, or the skill comparison when both IDs are given."""
    if not args.job and not args.candidate:
        raise SystemExit("skills: pass --job, --candidate or both")
    job, candidate = asyncio.run(_load_pair(args))
    if job is not None and candidate is not None:
        _print_json(asdict(analyze_skill_matches(job, candidate)))
    elif job is not None:
        _print_json({"job_id": job.id, "skills": job_skills(job)})
    else:
        _print_json({"candidate_id": candidate.id, "skills": candidate_skills(candidate)})


def cmd_embed(args: argparse.Namespace, config: MatchingConfig) -> None:
    """Compute embeddings for records that lack one and write the file back out."""
    with open(args.data, "r", encoding="utf-8") as f:
        data = json.load(f)
    provider = get_default_embedding_provider()
    logger.info("Using embedding provider %s", type(provider).__name__)
    filled = 0
    for raw in data.get("jobs", []):
        if raw.get("embedding") is None or args.overwrite:
            raw["embedding"] = provider.embed(job_embedding_text(Job.from_dict(raw)))
            filled += 1
    for raw in data.get("candidates", []):
        if raw.get("embedding") is None or args.overwrite:
            raw["embedding"] = provider.embed(candidate_embedding_text(Candidate.from_dict(raw)))
            filled += 1
    out_path = args.out or args.data
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    logger.info("Embedded %d records into %s", filled, out_path)


def _add_common(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--data", required=True, help="JSON records file")
    cmd.add_argument("--org", required=True, help="Organization ID to scope the request to")


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="matchflow", description="Candidate–job matching CLI")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--no-analysis",
        dest="no_analysis",
        action="store_true",
        help="Skip the analysis provider and rank on similarity alone",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    rank_cmd = subparsers.add_parser("rank", help="Rank candidates for a job")
    _add_common(rank_cmd)
    rank_cmd.add_argument("--job", required=True, help="Job ID")
    rank_cmd.add_argument("--limit", type=int, default=5, help="Number of candidates to return")
    rank_cmd.set_defaults(func=cmd_rank)

    similar_cmd = subparsers.add_parser("similar", help="Find similar candidates")
    _add_common(similar_cmd)
    similar_cmd.add_argument("--candidate", required=True, help="Candidate ID")
    similar_cmd.add_argument("--limit", type=int, default=5, help="Number of candidates to return")
    similar_cmd.set_defaults(func=cmd_similar)

    screen_cmd = subparsers.add_parser("screen", help="Screen candidates against a job")
    _add_common(screen_cmd)
    screen_cmd.add_argument("--job", required=True, help="Job ID")
    screen_cmd.add_argument("--min-score", type=float, dest="min_score", help="Minimum match score (0-1)")
    screen_cmd.add_argument("--limit", type=int, default=10, help="Maximum number of matches")
    screen_cmd.set_defaults(func=cmd_screen)

    detail_cmd = subparsers.add_parser("detail", help="Analyse one job/candidate pair")
    _add_common(detail_cmd)
    detail_cmd.add_argument("--job", required=True, help="Job ID")
    detail_cmd.add_argument("--candidate", required=True, help="Candidate ID")
    detail_cmd.set_defaults(func=cmd_detail)

    skills_cmd = subparsers.add_parser("skills", help="Show extracted or compared skills")
    _add_common(skills_cmd)
    skills_cmd.add_argument("--job", help="Job ID")
    skills_cmd.add_argument("--candidate", help="Candidate ID")
    skills_cmd.set_defaults(func=cmd_skills)

    embed_cmd = subparsers.add_parser("embed", help="Fill in missing embeddings")
    embed_cmd.add_argument("--data", required=True, help="JSON records file")
    embed_cmd.add_argument("--out", help="Output path (defaults to overwriting --data)")
    embed_cmd.add_argument("--overwrite", action="store_true", help="Recompute existing embeddings too")
    embed_cmd.set_defaults(func=cmd_embed)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
        stream=sys.stderr,
    )
    load_dotenv()
    config = load_config(args.config)
    try:
        args.func(args, config)
    except MatchingError as exc:
        logger.error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main(sys.argv[1:])
