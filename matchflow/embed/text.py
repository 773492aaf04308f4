"""
Record to text rendering.

Embeddings are computed over a plain text rendering of a record, one
``Label: value`` line per populated field.  Jobs and candidates must be
rendered with the same embedding model for their vectors to be
comparable.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ..models import Candidate, Job
from ..skills.extract import SkillBuckets, extract_skills, parse_skills_payload


def _join(values: Any) -> str:
    if not isinstance(values, list):
        return ""
    return ", ".join(str(v) for v in values if v)


def _experience_line(entry: Dict[str, Any]) -> str:
    parts: List[str] = []
    if entry.get("title"):
        parts.append(f"Title: {entry['title']}")
    if entry.get("company"):
        parts.append(f"Company: {entry['company']}")
    if entry.get("description"):
        parts.append(f"Description: {entry['description']}")
    technologies = _join(entry.get("technologies"))
    if technologies:
        parts.append(f"Technologies: {technologies}")
    return " | ".join(parts)


def candidate_embedding_text(candidate: Candidate) -> str:
    lines: List[str] = []
    if candidate.first_name and candidate.last_name:
        lines.append(f"Name: {candidate.full_name}")
    if candidate.current_role:
        lines.append(f"Current Role: {candidate.current_role}")
    if candidate.years_of_experience:
        lines.append(f"Years of Experience: {candidate.years_of_experience}")

    payload = parse_skills_payload(candidate.skills)
    if isinstance(payload, SkillBuckets):
        technical = _join(payload.buckets.get("technical"))
        soft = _join(payload.buckets.get("soft"))
        if technical:
            lines.append(f"Technical Skills: {technical}")
        if soft:
            lines.append(f"Soft Skills: {soft}")
    else:
        tokens = ", ".join(payload.tokens())
        if tokens:
            lines.append(f"Skills: {tokens}")

    experience = [e for e in candidate.experience if isinstance(e, dict)]
    if experience:
        lines.append("Experience:\n" + "\n".join(_experience_line(e) for e in experience))
    education = [e for e in candidate.education if isinstance(e, dict)]
    if education:
        rendered = [
            " from ".join(str(part) for part in (e.get("degree"), e.get("institution")) if part)
            for e in education
        ]
        lines.append(f"Education: {', '.join(rendered)}")
    industries = _join(candidate.industry_experience)
    if industries:
        lines.append(f"Industry Experience: {industries}")
    if candidate.location:
        lines.append(f"Location: {candidate.location}")
    return "\n".join(lines)


def job_embedding_text(job: Job) -> str:
    lines: List[str] = []
    if job.title:
        lines.append(f"Job Title: {job.title}")
    if job.description:
        lines.append(f"Description: {job.description}")
    for label, value in (
        ("Department", job.department),
        ("Location", job.location),
        ("Job Type", job.type),
        ("Level", job.level),
        ("Requirements", job.requirements),
    ):
        if value:
            lines.append(f"{label}: {value}")

    detailed = job.requirements_detailed if isinstance(job.requirements_detailed, dict) else {}
    for label, key in (("Mandatory Requirements", "mandatory"), ("Preferred Requirements", "preferred")):
        joined = _join(detailed.get(key))
        if joined:
            lines.append(f"{label}: {joined}")
    skills = detailed.get("skills")
    if isinstance(skills, dict):
        for label, key in (("Required Technical Skills", "technical"), ("Required Soft Skills", "soft")):
            joined = _join(skills.get(key))
            if joined:
                lines.append(f"{label}: {joined}")
    elif job.skills:
        joined = _join(job.skills) or ", ".join(extract_skills(job.skills))
        if joined:
            lines.append(f"Required Skills: {joined}")
    experience = detailed.get("experience")
    if isinstance(experience, dict) and experience.get("years"):
        lines.append(f"Required Experience: {experience['years']} years")
    education = _join(detailed.get("education"))
    if education:
        lines.append(f"Education Requirements: {education}")
    return "\n".join(lines)
