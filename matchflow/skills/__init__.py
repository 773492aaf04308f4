"""
Skill normalisation and matching.

* `extract` – Turns heterogeneous skill payloads into canonical skill
  sets and falls back to a technology vocabulary scan for jobs that
  carry no structured skills.
* `match` – Variant‑aware comparison of required against offered
  skills.
"""

from .extract import (  # noqa: F401
    candidate_skills,
    extract_skills,
    extract_skills_from_text,
    job_skills,
    normalize,
    parse_skills_payload,
)
from .match import analyze_skill_matches, match_skill_sets, skills_match  # noqa: F401
