"""
Engine configuration.

The blend weights and thresholds below are the values the ranking has
always used.  They are exposed so deployments can tune them, but the
defaults should only change after confirming the intended behaviour
with the people consuming the rankings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

import yaml  # type: ignore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MatchingConfig:
    """Tunable parameters of the matching engine."""

    # Composite score = embedding_weight * similarity * 100 + analysis_weight * overall_match
    embedding_weight: float = 0.4
    analysis_weight: float = 0.6
    # Degraded analyses recommend a candidate above this similarity.
    recommend_threshold: float = 0.7
    # Screening drops candidates scoring below this.
    min_screening_score: float = 0.7
    cache_ttl_hours: float = 24.0
    # Candidates sent to analysis = shortlist_factor * limit.
    shortlist_factor: int = 2
    analysis_timeout: float = 30.0
    max_concurrent_analyses: int = 5
    # Upper bound on candidates pulled per ranking; None means all.
    candidate_pool_limit: Optional[int] = None

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(hours=self.cache_ttl_hours)

    def validate(self) -> None:
        total = self.embedding_weight + self.analysis_weight
        if abs(total - 1.0) >= 0.01:
            raise ValueError(f"Blend weights must sum to 1.0 (got {total})")
        if self.shortlist_factor < 1:
            raise ValueError("shortlist_factor must be at least 1")
        if self.max_concurrent_analyses < 1:
            raise ValueError("max_concurrent_analyses must be at least 1")
        if self.cache_ttl_hours <= 0:
            raise ValueError("cache_ttl_hours must be positive")
        if self.analysis_timeout <= 0:
            raise ValueError("analysis_timeout must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchingConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        cfg = cls(**{k: v for k, v in data.items() if k in known})
        cfg.validate()
        return cfg


def load_config(path: Optional[str] = None) -> MatchingConfig:
    """Load a :class:`MatchingConfig` from a YAML file.

    The file may hold the settings at the top level or under a
    ``matching`` key.  Without a path the defaults are returned.
    """
    if not path:
        return MatchingConfig()
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"YAML must be a mapping: {path}")
    section = raw.get("matching", raw)
    if not isinstance(section, dict):
        raise ValueError(f"'matching' section must be a mapping: {path}")
    cfg = MatchingConfig.from_dict(section)
    logger.debug("Loaded matching config from %s: %s", path, cfg)
    return cfg


# Environment variables holding each hosted provider's API key.
PROVIDER_KEY_VARS: Dict[str, Tuple[str, ...]] = {
    "openai": ("OPENAI_API_KEY",),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}


def resolve_provider(
    preference_var: str,
    factories: Dict[str, Callable[[], T]],
    fallback: Tuple[str, Callable[[], T]],
    key_vars: Optional[Dict[str, Tuple[str, ...]]] = None,
) -> T:
    """Pick a provider from environment variables.

    The resolution order is:

    1. If ``preference_var`` names the fallback, it is returned.  If it
       names one of ``factories``, that factory is called; when it
       raises, a warning is logged and detection continues.
    2. Each factory whose API key variable (``key_vars``, by default
       :data:`PROVIDER_KEY_VARS`) is set is tried in ``factories`` order.
    3. Otherwise the fallback is built.
    """
    key_vars = PROVIDER_KEY_VARS if key_vars is None else key_vars
    fallback_name, make_fallback = fallback
    preferred = (os.getenv(preference_var) or "").lower()
    if preferred == fallback_name:
        logger.info("%s=%s; using %s provider", preference_var, preferred, fallback_name)
        return make_fallback()
    if preferred in factories:
        try:
            return factories[preferred]()
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s=%s but the provider failed to initialise: %s", preference_var, preferred, exc)
    elif preferred:
        logger.warning("Unknown %s value '%s'; falling back to automatic detection", preference_var, preferred)
    for name, factory in factories.items():
        if not any(os.getenv(var) for var in key_vars.get(name, ())):
            continue
        try:
            return factory()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to initialise %s provider: %s", name, exc)
    logger.info("No API keys found for %s; using %s provider", ", ".join(factories), fallback_name)
    return make_fallback()
