"""
Analysis provider abstractions.

An analysis provider reads a job summary and a candidate summary and
returns a qualitative assessment (:class:`~matchflow.models.AiAnalysis`):
an overall match score from 0 to 100, up to three strengths and
weaknesses, free‑text reasoning and a recommendation level.  Concrete
implementations call the OpenAI or Gemini APIs.  A placeholder
implementation scores from skill overlap and embedding similarity and
is used when no API keys are configured.  Applications can select the
provider via environment variables or pass an ``AnalysisProvider``
instance directly.

Providers raise on transport errors and on responses that are not
JSON.  Recovering from that is the caller's job (see
:mod:`matchflow.rank.llm_judge`).
"""

from __future__ import annotations

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..config import resolve_provider
from ..errors import AnalysisParseError
from ..models import RECOMMENDATIONS, AiAnalysis
from ..skills.match import match_skill_sets

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert technical recruiter with deep knowledge of software engineering "
    "roles and candidate assessment. Provide accurate, unbiased analysis."
)

MAX_POINTS = 3


def build_analysis_prompt(job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> str:
    """Render the user prompt shared by all remote providers."""
    return f"""
You are an expert technical recruiter. Analyze how well this candidate matches the job requirements.

JOB DETAILS:
Title: {job.get("title") or "Not specified"}
Description: {job.get("description") or "Not specified"}
Requirements: {job.get("requirements") or "Not specified"}
Level: {job.get("level") or "Not specified"}
Type: {job.get("type") or "Not specified"}
Required Skills: {", ".join(job.get("required_skills") or []) or "Not specified"}

CANDIDATE DETAILS:
Name: {candidate.get("name") or "Not provided"}
Experience: {candidate.get("years_of_experience") or 0} years
Skills: {", ".join(candidate.get("skills") or [])}
Summary: {candidate.get("summary") or "Not provided"}
Embedding Similarity Score: {embedding_similarity:.3f}

ANALYSIS REQUIREMENTS:
1. Overall match score (0-100)
2. Top 3 strengths that make this candidate suitable
3. Top 3 potential concerns or weaknesses
4. Detailed reasoning for the match assessment
5. Final recommendation level

Respond in JSON format:
{{
  "overallMatch": <number 0-100>,
  "strengths": ["strength1", "strength2", "strength3"],
  "weaknesses": ["weakness1", "weakness2", "weakness3"],
  "reasoning": "Detailed explanation of why this candidate is/isn't a good match",
  "recommendation": "highly_recommended|recommended|consider|not_recommended"
}}
"""


_FENCE_RE = re.compile(r"```(?:json)?\s*")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, (str, int, float))][:MAX_POINTS]


def _clamp_score(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return min(100.0, max(0.0, score))


def parse_analysis_response(content: str) -> AiAnalysis:
    """Parse a provider response into an :class:`AiAnalysis`.

    Markdown code fences and any text around the outermost JSON object
    are stripped.  Missing or malformed fields fall back to defaults
    one by one.

    Raises:
        AnalysisParseError: if no JSON object can be decoded.
    """
    text = _FENCE_RE.sub("", content or "").replace("`", "").strip()
    match = _OBJECT_RE.search(text)
    if match:
        text = match.group(0)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AnalysisParseError(f"Analysis response is not JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise AnalysisParseError(f"Analysis response is not a JSON object: {type(data).__name__}")
    recommendation = data.get("recommendation")
    if recommendation not in RECOMMENDATIONS:
        recommendation = "consider"
    reasoning = data.get("reasoning")
    return AiAnalysis(
        overall_match=_clamp_score(data.get("overallMatch", data.get("overall_match"))),
        strengths=_string_list(data.get("strengths")),
        weaknesses=_string_list(data.get("weaknesses")),
        reasoning=reasoning if isinstance(reasoning, str) and reasoning else "Analysis not available",
        recommendation=recommendation,
    )


class AnalysisProvider(ABC):
    """Abstract base class for analysis providers."""

    @abstractmethod
    def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        """Assess how well a candidate fits a job.

        Args:
            job: Job summary as built by :func:`~matchflow.rank.llm_judge.job_summary`.
            candidate: Candidate summary as built by
                :func:`~matchflow.rank.llm_judge.candidate_summary`.
            embedding_similarity: Cosine similarity of the two embeddings,
                passed to the provider as a hint.

        Returns:
            The provider's assessment.
        """
        raise NotImplementedError


class PlaceholderProvider(AnalysisProvider):
    """Fallback provider that does not call any external API.

    Scores half from skill coverage and half from embedding similarity.
    """

    def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        skills = match_skill_sets(job.get("required_skills") or [], candidate.get("skills") or [])
        if skills.required:
            coverage = len(skills.matched) / len(skills.required)
        else:
            coverage = max(0.0, embedding_similarity)
        overall = round(100 * (0.5 * coverage + 0.5 * max(0.0, embedding_similarity)))
        if overall >= 85:
            recommendation = "highly_recommended"
        elif overall >= 70:
            recommendation = "recommended"
        elif overall >= 50:
            recommendation = "consider"
        else:
            recommendation = "not_recommended"
        strengths = [f"Has {s}" for s in skills.matched[:MAX_POINTS]] or ["Profile is semantically related to the role"]
        weaknesses = [f"Missing {s}" for s in skills.missing[:MAX_POINTS]]
        return AiAnalysis(
            overall_match=float(overall),
            strengths=strengths,
            weaknesses=weaknesses,
            reasoning=(
                f"Heuristic assessment: {len(skills.matched)}/{len(skills.required)} required skills "
                f"matched, embedding similarity {embedding_similarity:.3f}."
            ),
            recommendation=recommendation,
        )


class OpenAIProvider(AnalysisProvider):
    """Provider that uses the OpenAI chat completions API."""

    def __init__(self, api_key: str | None = None, model: str | None = None, timeout: float = 30.0) -> None:
        try:
            from openai import OpenAI  # type: ignore
        except ImportError as exc:
            raise RuntimeError(
                "openai package is required for OpenAIProvider. Install it via pip."
            ) from exc
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError("OPENAI_API_KEY not provided")
        self.model = model or os.getenv("OPENAI_MODEL") or "gpt-4o-mini"
        self.client = OpenAI(api_key=self.api_key, timeout=timeout)

    def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        prompt = build_analysis_prompt(job, candidate, embedding_similarity)
        logger.debug("Sending prompt to OpenAI: %s", prompt[:200])
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.3,
            max_tokens=1000,
        )
        content = response.choices[0].message.content or "{}"
        return parse_analysis_response(content)


class GeminiProvider(AnalysisProvider):
    """Provider that uses Google Generative AI (Gemini) via google‑generativeai."""

    def __init__(self, api_key: str | None = None, model: str = "gemini-1.5-pro") -> None:
        try:
            import google.generativeai as genai  # type: ignore
        except ImportError as exc:
            raise RuntimeError(
                "google-generativeai package is required for GeminiProvider. Install it via pip."
            ) from exc
        self.genai = genai
        # API key resolution: explicit argument > env variables
        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        # GEMINI_MODEL or GOOGLE_MODEL overrides the default model
        self.model_name = os.getenv("GEMINI_MODEL") or os.getenv("GOOGLE_MODEL") or model
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY/GOOGLE_API_KEY not provided")
        self.genai.configure(api_key=self.api_key)
        try:
            self.model = self.genai.GenerativeModel(self.model_name, system_instruction=SYSTEM_PROMPT)
        except Exception as exc:
            raise RuntimeError(f"Failed to load Gemini model {self.model_name}: {exc}") from exc

    def analyze(self, job: Dict[str, Any], candidate: Dict[str, Any], embedding_similarity: float) -> AiAnalysis:
        prompt = build_analysis_prompt(job, candidate, embedding_similarity)
        logger.debug("Sending prompt to Gemini: %s", prompt[:200])
        response = self.model.generate_content(prompt, generation_config={"temperature": 0.3})
        return parse_analysis_response(response.text)


def get_default_provider() -> AnalysisProvider:
    """Analysis provider chosen by ``LLM_PROVIDER`` and the available API keys.

    ``openai`` and ``gemini`` are tried in that order when no usable
    preference is set; :class:`PlaceholderProvider` is the last resort.
    See :func:`matchflow.config.resolve_provider`.
    """
    return resolve_provider(
        "LLM_PROVIDER",
        {"openai": lambda: OpenAIProvider(), "gemini": lambda: GeminiProvider()},
        ("placeholder", PlaceholderProvider),
    )
