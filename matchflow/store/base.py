"""
Record store abstraction.

Jobs and candidates live in an external system of record.  The engine
reads them through :class:`RecordStore`, always scoped by organization:
an ID that exists in another organization is indistinguishable from
one that does not exist at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Collection, List, Optional

from ..errors import OrganizationRequired
from ..models import EXCLUDED_STATUSES, Candidate, Job


def require_organization(organization_id: Optional[str]) -> str:
    """Return the organization ID or raise if it is missing or blank."""
    if not organization_id or not str(organization_id).strip():
        raise OrganizationRequired("A valid organization ID is required")
    return str(organization_id)


class RecordStore(ABC):
    """Read access to job and candidate records."""

    @abstractmethod
    async def get_job(self, job_id: str, organization_id: str) -> Optional[Job]:
        raise NotImplementedError

    @abstractmethod
    async def get_candidate(self, candidate_id: str, organization_id: str) -> Optional[Candidate]:
        raise NotImplementedError

    @abstractmethod
    async def list_candidates(
        self,
        organization_id: str,
        *,
        exclude_statuses: Collection[str] = EXCLUDED_STATUSES,
        exclude_ids: Collection[str] = (),
        with_embedding: bool = False,
        limit: Optional[int] = None,
    ) -> List[Candidate]:
        """List candidates of an organization.

        Args:
            organization_id: Mandatory tenant scope.
            exclude_statuses: Candidate statuses to leave out.
            exclude_ids: Candidate IDs to leave out.
            with_embedding: Only return candidates that carry an embedding.
            limit: Maximum number of candidates to return.
        """
        raise NotImplementedError
