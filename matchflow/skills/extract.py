"""
Skill extraction and normalisation.

Skill data reaches the engine in several shapes depending on which
parser produced the record: a plain list of strings, an object with
``technical``/``soft``/``languages`` buckets, the same object encoded
as JSON text, or a single bare string.  :func:`parse_skills_payload`
classifies the raw value once into one of the payload types below and
:func:`extract_skills` turns it into a canonical skill set: lowercase,
trimmed, de‑duplicated tokens of at least two characters, in first
seen order.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple, Union

from ..models import Candidate, Job

logger = logging.getLogger(__name__)

MIN_SKILL_LENGTH = 2

# Scanned over job text when a job carries no structured skill lists.
TECH_VOCABULARY: Tuple[str, ...] = (
    "javascript",
    "typescript",
    "python",
    "java",
    "c++",
    "c#",
    "go",
    "rust",
    "php",
    "ruby",
    "react",
    "vue",
    "angular",
    "svelte",
    "next.js",
    "nuxt.js",
    "node.js",
    "express",
    "fastapi",
    "django",
    "flask",
    "spring",
    "asp.net",
    "mongodb",
    "postgresql",
    "mysql",
    "redis",
    "elasticsearch",
    "aws",
    "azure",
    "gcp",
    "docker",
    "kubernetes",
    "terraform",
    "git",
    "ci/cd",
    "jenkins",
    "github actions",
    "machine learning",
    "ai",
    "data science",
    "tensorflow",
    "pytorch",
)


def _strings(values: Iterable[Any]) -> List[str]:
    return [v for v in values if isinstance(v, str)]


@dataclass(frozen=True)
class EmptyPayload:
    def tokens(self) -> List[str]:
        return []


@dataclass(frozen=True)
class SkillList:
    items: Tuple[str, ...] = ()

    def tokens(self) -> List[str]:
        return list(self.items)


@dataclass(frozen=True)
class SkillBuckets:
    """Bucketed skills: ``technical``, ``soft``, ``languages`` and any other list."""

    buckets: Dict[str, Any] = field(default_factory=dict)

    def tokens(self) -> List[str]:
        out: List[str] = []
        for key in ("technical", "soft"):
            value = self.buckets.get(key)
            if isinstance(value, list):
                out.extend(_strings(value))
        languages = self.buckets.get("languages")
        if isinstance(languages, list):
            for lang in languages:
                if isinstance(lang, dict) and isinstance(lang.get("language"), str):
                    out.append(lang["language"])
        for key, value in self.buckets.items():
            if key in ("technical", "soft", "languages"):
                continue
            if isinstance(value, list):
                out.extend(_strings(value))
        return out


@dataclass(frozen=True)
class RawSkillString:
    text: str

    def tokens(self) -> List[str]:
        return [self.text]


SkillsPayload = Union[EmptyPayload, SkillList, SkillBuckets, RawSkillString]


def parse_skills_payload(raw: Any) -> SkillsPayload:
    """Classify a raw skills field into a :data:`SkillsPayload`.

    Never raises; anything unrecognised becomes :class:`EmptyPayload`.
    """
    if raw is None:
        return EmptyPayload()
    if isinstance(raw, (list, tuple)):
        return SkillList(tuple(_strings(raw)))
    if isinstance(raw, dict):
        return SkillBuckets(dict(raw))
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except (json.JSONDecodeError, ValueError):
            return RawSkillString(raw)
        if isinstance(parsed, list):
            return SkillList(tuple(_strings(parsed)))
        if isinstance(parsed, dict):
            return SkillBuckets(parsed)
        if isinstance(parsed, str):
            return RawSkillString(parsed)
        return EmptyPayload()
    logger.debug("Unrecognised skills payload of type %s", type(raw).__name__)
    return EmptyPayload()


def normalize(skills: Iterable[Any]) -> List[str]:
    """Lowercase, trim and de‑duplicate skill tokens, dropping short ones."""
    out: List[str] = []
    seen = set()
    for skill in skills or []:
        if not isinstance(skill, str):
            continue
        token = skill.strip().lower()
        if len(token) < MIN_SKILL_LENGTH or token in seen:
            continue
        seen.add(token)
        out.append(token)
    return out


def extract_skills(raw: Any) -> List[str]:
    """Extract a normalised skill set from any supported payload shape."""
    return normalize(parse_skills_payload(raw).tokens())


def _vocabulary_pattern(skill: str) -> re.Pattern[str]:
    return re.compile(rf"(?<![a-z0-9]){re.escape(skill)}(?![a-z0-9])")


_VOCABULARY_PATTERNS = [(skill, _vocabulary_pattern(skill)) for skill in TECH_VOCABULARY]


def extract_skills_from_text(text: str) -> List[str]:
    """Find vocabulary technologies mentioned in free text.

    Matches are bounded by non‑alphanumeric characters so that "java"
    does not fire inside "javascript" nor "go" inside "good".
    """
    lowered = (text or "").lower()
    return [skill for skill, pattern in _VOCABULARY_PATTERNS if pattern.search(lowered)]


def job_skills(job: Job) -> List[str]:
    """Return the skills a job asks for.

    Structured lists win: ``requirements_detailed.skills`` first, then
    the legacy flat ``skills`` field.  Only when both are empty is the
    description and requirements text scanned against
    :data:`TECH_VOCABULARY`.
    """
    detailed = job.requirements_detailed if isinstance(job.requirements_detailed, dict) else {}
    structured = extract_skills(detailed.get("skills"))
    if not structured:
        structured = extract_skills(job.skills)
    if structured:
        return structured
    text = f"{job.description or ''} {job.requirements or ''}"
    found = normalize(extract_skills_from_text(text))
    logger.debug("Job %s has no structured skills; found %d in text", job.id, len(found))
    return found


def _technologies(records: Iterable[Any]) -> List[str]:
    out: List[str] = []
    for record in records or []:
        if isinstance(record, dict) and isinstance(record.get("technologies"), list):
            out.extend(_strings(record["technologies"]))
    return out


def candidate_skills(candidate: Candidate) -> List[str]:
    """Return a candidate's skills including technologies from experience and projects."""
    tokens = parse_skills_payload(candidate.skills).tokens()
    tokens.extend(_technologies(candidate.experience))
    tokens.extend(_technologies(candidate.projects))
    return normalize(tokens)
