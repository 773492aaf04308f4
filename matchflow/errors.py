"""
Exception types raised by the matching engine.

Errors local to one candidate (an analysis provider failing, a cache
write failing) are absorbed by the ranker and never reach callers.
The exceptions below abort the whole call: either the request itself
cannot be scored or it refers to records that do not exist in the
caller's organization.
"""

from __future__ import annotations


class MatchingError(Exception):
    """Base class for all matching engine errors."""


class OrganizationRequired(MatchingError, ValueError):
    """Raised when a call arrives without an organization scope."""


class DimensionMismatch(MatchingError, ValueError):
    """Raised when two vectors of different length are compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Vectors must have the same length ({left} != {right})")
        self.left = left
        self.right = right


class MissingEmbedding(MatchingError):
    """Raised when a job or candidate has no embedding to rank with."""

    def __init__(self, kind: str, record_id: str, message: str | None = None) -> None:
        super().__init__(
            message
            or f"{kind.capitalize()} {record_id} does not have embeddings. "
            "Please regenerate embeddings for this record."
        )
        self.kind = kind
        self.record_id = record_id


class InvalidEmbedding(MissingEmbedding):
    """Raised when a stored embedding cannot be decoded into a vector."""

    def __init__(self, kind: str, record_id: str) -> None:
        super().__init__(kind, record_id, f"Invalid {kind} embedding format for {record_id}")


class NotFound(MatchingError, LookupError):
    """Raised when a record is absent or outside the organization scope."""


class JobNotFound(NotFound):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job with ID {job_id} not found")
        self.job_id = job_id


class CandidateNotFound(NotFound):
    def __init__(self, candidate_id: str) -> None:
        super().__init__(f"Candidate with ID {candidate_id} not found")
        self.candidate_id = candidate_id


class AnalysisParseError(MatchingError, ValueError):
    """Raised when an analysis provider returns text that is not JSON."""


class CacheWriteError(MatchingError):
    """Raised by cache backends when a result cannot be stored."""
