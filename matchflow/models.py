"""
Record and result types shared across the matching engine.

Jobs and candidates are owned by an external CRUD layer; the engine
only reads them.  Their field names follow that layer, which emits
camelCase JSON, so :meth:`Job.from_dict` and :meth:`Candidate.from_dict`
accept both camelCase and snake_case keys.  Results produced here are
serialised with snake_case keys via ``to_dict``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

RECOMMENDATIONS = ("highly_recommended", "recommended", "consider", "not_recommended")

# Candidate statuses never offered for ranking.
EXCLUDED_STATUSES = frozenset({"REJECTED", "BLACKLISTED"})


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_list(value: Any) -> List[Any]:
    """Wrap a lone value in a list; ``None`` becomes empty."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


@dataclass
class Job:
    id: str
    organization_id: str
    title: str = ""
    description: str = ""
    requirements: str = ""
    # List of floats or the JSON string the store keeps it as.
    embedding: Optional[Any] = None
    requirements_detailed: Dict[str, Any] = field(default_factory=dict)
    # Flat list or any other payload matchflow.skills understands.
    skills: Any = field(default_factory=list)
    level: Optional[str] = None
    type: Optional[str] = None
    department: Optional[str] = None
    location: Optional[str] = None
    remote: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        return cls(
            id=str(_pick(data, "id", default="")),
            organization_id=str(_pick(data, "organization_id", "organizationId", default="")),
            title=_pick(data, "title", default=""),
            description=_pick(data, "description", default=""),
            requirements=_pick(data, "requirements", default=""),
            embedding=_pick(data, "embedding"),
            requirements_detailed=_pick(data, "requirements_detailed", "requirementsDetailed", default={}),
            skills=_pick(data, "skills", default=[]),
            level=_pick(data, "level"),
            type=_pick(data, "type"),
            department=_pick(data, "department"),
            location=_pick(data, "location"),
            remote=bool(_pick(data, "remote", default=False)),
        )


@dataclass
class Candidate:
    id: str
    organization_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    # Array, bucketed object, JSON string or bare string; see matchflow.skills.
    skills: Any = None
    years_of_experience: Optional[float] = None
    summary: Optional[str] = None
    embedding: Optional[Any] = None
    status: str = "ACTIVE"
    tags: List[str] = field(default_factory=list)
    location: Optional[str] = None
    current_role: Optional[str] = None
    experience: List[Dict[str, Any]] = field(default_factory=list)
    education: List[Dict[str, Any]] = field(default_factory=list)
    projects: List[Dict[str, Any]] = field(default_factory=list)
    industry_experience: List[str] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
        return cls(
            id=str(_pick(data, "id", default="")),
            organization_id=str(_pick(data, "organization_id", "organizationId", default="")),
            first_name=_pick(data, "first_name", "firstName", default=""),
            last_name=_pick(data, "last_name", "lastName", default=""),
            email=_pick(data, "email", default=""),
            skills=_pick(data, "skills"),
            years_of_experience=_pick(data, "years_of_experience", "yearsOfExperience"),
            summary=_pick(data, "summary"),
            embedding=_pick(data, "embedding"),
            status=str(_pick(data, "status", default="ACTIVE")).upper(),
            tags=_as_list(_pick(data, "tags")),
            location=_pick(data, "location"),
            current_role=_pick(data, "current_role", "currentRole"),
            experience=_as_list(_pick(data, "experience")),
            education=_as_list(_pick(data, "education")),
            projects=_as_list(_pick(data, "projects")),
            industry_experience=_as_list(_pick(data, "industry_experience", "industryExperience")),
        )


@dataclass
class CandidateSummary:
    """The slice of a candidate shown next to a ranking result."""

    id: str
    first_name: str
    last_name: str
    email: str
    skills: List[str]
    experience: float
    summary: Optional[str] = None


@dataclass
class SkillMatchResult:
    required: List[str] = field(default_factory=list)
    matched: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    additional: List[str] = field(default_factory=list)


@dataclass
class AiAnalysis:
    overall_match: float
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    reasoning: str = ""
    recommendation: str = "consider"
    # True when produced by the fallback path instead of the provider.
    degraded: bool = False


@dataclass
class MatchingResult:
    candidate_id: str
    job_id: str
    organization_id: str
    score: float
    embedding_similarity: float
    skill_matches: SkillMatchResult
    ai_analysis: Optional[AiAnalysis] = None
    calculated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    candidate: Optional[CandidateSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["calculated_at"] = self.calculated_at.isoformat() if self.calculated_at else None
        d["expires_at"] = self.expires_at.isoformat() if self.expires_at else None
        return d


@dataclass
class ScreeningMatch:
    """Outcome of screening one candidate against a job."""

    candidate_id: str
    match_score: float
    method: str  # "embedding" | "rule_based"
    overall_fit: str
    experience_match: bool
    skill_matches: SkillMatchResult
    strengths: List[str] = field(default_factory=list)
    concerns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MatchDetail:
    """Payload for a single job/candidate detail view."""

    ai_analysis: Optional[AiAnalysis]
    skill_matches: Optional[SkillMatchResult]
    score: Optional[float]
    embedding_similarity: Optional[float]
    from_cache: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
