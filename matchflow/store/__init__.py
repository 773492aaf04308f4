"""
Storage for the matching engine.

* `base` – The :class:`RecordStore` interface for reading jobs and
  candidates, always scoped by organization.
* `memory` – A dictionary backed record store.
* `cache` – The TTL result cache for computed rankings.
"""

from .base import RecordStore, require_organization  # noqa: F401
from .cache import DEFAULT_TTL, InMemoryResultCache, RankingMarker, ResultCache  # noqa: F401
from .memory import InMemoryRecordStore  # noqa: F401
