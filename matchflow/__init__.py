"""
Candidate–job matching engine.

This package ranks candidates against a job (and candidates against
each other) by combining embedding similarity, structured skill
comparison and a qualitative assessment from an external analysis
provider.  Computed results are cached per (job, candidate) pair and
invalidated when upstream records change.

The high‑level flow is:

1. **skills** – Extract skill tokens from heterogeneous candidate and
   job payloads, normalise them and compare required against offered
   skills, honouring common naming variants ("js" / "javascript").
2. **rank** – Score candidates by cosine similarity, short list the
   best, ask the analysis provider about each of them concurrently and
   blend both signals into one composite score.
3. **store** – Read job and candidate records scoped by organization
   and cache ranking results with a time‑to‑live.
4. **embed** – Render records to text and turn that text into vectors
   via an embedding provider.
5. **service** / **cli** – Caller‑facing entry points wiring the above
   together.
"""

from importlib import metadata  # noqa: F401 (expose package version)

from .config import MatchingConfig, load_config  # noqa: F401
from .errors import (  # noqa: F401
    CandidateNotFound,
    DimensionMismatch,
    InvalidEmbedding,
    JobNotFound,
    MatchingError,
    MissingEmbedding,
    NotFound,
    OrganizationRequired,
)
from .models import AiAnalysis, Candidate, Job, MatchingResult, SkillMatchResult  # noqa: F401
from .rank.ranker import MatchingEngine  # noqa: F401
from .service import MatchingService  # noqa: F401
