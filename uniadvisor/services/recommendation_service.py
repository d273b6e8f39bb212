"""University recommendations from a student profile.

Two modes, chosen by configuration:
- structured: the model must return exactly 4 universities as JSON
  ({"universities": [{"name": ..., "reason": ...}, ...]}); output is
  validated and returned unchanged.
- narrative: the model answers in free text, returned as {"reply": ...}.

Nothing is cached and nothing is retried; identical queries issue
independent LLM calls.
"""

from __future__ import annotations

import json
import logging
import math
import re
from numbers import Real
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from config import RECOMMENDATION_MODE, RECOMMENDATION_MODEL, RECOMMENDATION_TEMPERATURE

from .errors import InvalidAiStructure, MalformedAiResponse, MissingPercentage
from .llm_service import Completer
from .models import RecommendationQuery
from .profile_service import ProfileService, parse_extracurriculars

logger = logging.getLogger(__name__)

STRUCTURED = "structured"
NARRATIVE = "narrative"
MODES = (STRUCTURED, NARRATIVE)

UNIVERSITY_COUNT = 4

SYSTEM_PROMPT = "You are a Canadian university admissions expert."

STRUCTURED_TEMPLATE = """\
Return ONLY valid JSON.
Choose exactly 4 BEST-FIT Canadian universities.

Student profile:
- Percentage: {percentage}%
- Interest: {interest}
- Extracurriculars: {extracurriculars}

Respond in this exact format:

{{
  "universities": [
    {{
      "name": "University Name",
      "reason": "Short explanation (1-2 sentences)"
    }}
  ]
}}

No extra text.
"""

NARRATIVE_TEMPLATE = """\
Recommend the 4 BEST-FIT Canadian universities for this student.

Student profile:
- Percentage: {percentage}%
- Interest: {interest}
- Extracurriculars: {extracurriculars}

For each university give one or two sentences on why it fits.
Keep the whole answer short, friendly and easy to read.
"""

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


class UniversityPick(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: StrictStr
    reason: StrictStr

    @field_validator("name", "reason")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class UniversityRecommendations(BaseModel):
    model_config = ConfigDict(extra="allow")

    universities: list[UniversityPick] = Field(
        min_length=UNIVERSITY_COUNT, max_length=UNIVERSITY_COUNT
    )


def coerce_percentage(value: Any) -> float:
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise MissingPercentage("Percentage required") from None
    if value is None or isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise MissingPercentage("Percentage required")
    return float(value)


def render_prompt(query: RecommendationQuery, mode: str = STRUCTURED) -> str:
    template = STRUCTURED_TEMPLATE if mode == STRUCTURED else NARRATIVE_TEMPLATE
    return template.format(
        percentage=f"{coerce_percentage(query.percentage):g}",
        interest=query.interest_text(),
        extracurriculars=query.extracurriculars_text(),
    )


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def parse_recommendations(raw: str) -> dict[str, Any]:
    """Parse and validate structured model output.

    Raises MalformedAiResponse when the text is not JSON and
    InvalidAiStructure when the JSON does not hold exactly 4 named picks.
    """
    try:
        parsed = json.loads(_strip_code_fence(raw))
    except (TypeError, ValueError) as e:
        raise MalformedAiResponse("AI returned malformed JSON") from e

    if not isinstance(parsed, dict):
        raise InvalidAiStructure("AI returned invalid structure")
    try:
        UniversityRecommendations.model_validate(parsed)
    except ValidationError as e:
        logger.warning("AI structure rejected: %s", e.errors(include_url=False))
        raise InvalidAiStructure("AI returned invalid structure") from e
    return parsed


class RecommendationService:
    def __init__(
        self,
        llm: Completer,
        profiles: ProfileService | None = None,
        *,
        mode: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        self._llm = llm
        self._profiles = profiles
        self._mode = (mode or RECOMMENDATION_MODE).strip().lower()
        if self._mode not in MODES:
            raise ValueError(f"Unknown recommendation mode {self._mode!r}; expected one of {MODES}")
        self._model = model or RECOMMENDATION_MODEL
        self._temperature = RECOMMENDATION_TEMPERATURE if temperature is None else temperature

    def build_query(self, username: str | None, body: dict[str, Any] | None) -> RecommendationQuery:
        """Merge a request body over the stored profile; the body wins."""
        body = body or {}
        profile = self._profiles.read(username) if self._profiles and username else None

        percentage = body.get("percentage")
        if isinstance(percentage, str) and not percentage.strip():
            percentage = None
        if percentage is None and profile is not None:
            percentage = profile.academic_percentage

        interest = body.get("interest")
        if not isinstance(interest, str) or not interest.strip():
            interest = profile.interest if profile is not None else None

        ecs = body.get("ecs", body.get("extracurriculars"))
        if ecs is not None:
            extracurriculars = parse_extracurriculars(ecs)
        elif profile is not None:
            extracurriculars = profile.extracurriculars
        else:
            extracurriculars = ()

        return RecommendationQuery(
            percentage=percentage,
            interest=interest.strip() if isinstance(interest, str) else None,
            extracurriculars=extracurriculars,
        )

    def build_messages(self, query: RecommendationQuery, mode: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": render_prompt(query, mode)},
        ]

    def recommend(self, query: RecommendationQuery, mode: str | None = None) -> dict[str, Any]:
        mode = mode or self._mode
        if mode not in MODES:
            raise ValueError(f"Unknown recommendation mode {mode!r}")
        coerce_percentage(query.percentage)

        raw = self._llm.complete(
            self.build_messages(query, mode),
            model=self._model,
            temperature=self._temperature,
            json_mode=mode == STRUCTURED,
        )
        logger.debug("Raw AI response: %s", raw)

        if mode == NARRATIVE:
            return {"reply": raw.strip()}
        return parse_recommendations(raw)
