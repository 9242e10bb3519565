"""Analysis Response Parsing: extract and validate the structured verdict.

Invariants:
    - extract_json_object returns the FIRST well-formed JSON object in the text, or None
    - Surrounding prose and ```json fences are tolerated
    - parse_analysis_response either returns a fully validated AnalysisResult
      or raises MalformedAnalysisResponseError; never a partial result
    - Wire keys stay camelCase (userATone, reasonableness.userA) to match the prompt schema

Design Decisions:
    - json.JSONDecoder.raw_decode from each "{" instead of a greedy regex: a greedy
      {...} match swallows trailing prose that itself contains braces
    - Pydantic models for validation: bounds (1-10) and tone labels enforced declaratively
"""

import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from parley.core.domain_types import Tone
from parley.core.errors import MalformedAnalysisResponseError


class ToneAnalysis(BaseModel):
    """Emotional tone of one participant."""
    tone: Tone
    emotion: str = Field(min_length=1, max_length=100)
    intensity: int = Field(ge=1, le=10)

    @field_validator("tone", mode="before")
    @classmethod
    def lowercase_tone(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class Reasonableness(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_a: int = Field(ge=1, le=10, alias="userA")
    user_b: int = Field(ge=1, le=10, alias="userB")
    analysis: str = Field(min_length=1)


class AnalysisResult(BaseModel):
    """Full structured analysis returned by the capability."""
    model_config = ConfigDict(populate_by_name=True)

    verdict: str = Field(min_length=1)
    explanation: str = Field(min_length=1)
    compromise: str = Field(min_length=1)
    user_a_tone: ToneAnalysis = Field(alias="userATone")
    user_b_tone: ToneAnalysis = Field(alias="userBTone")
    reasonableness: Reasonableness

    @field_validator("verdict", "explanation", "compromise")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    def to_wire(self) -> dict:
        """JSON-ready dict in the prompt's camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)


def extract_json_object(text: str) -> dict | None:
    """Return the first decodable JSON object embedded in text."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def parse_analysis_response(text: str | None) -> AnalysisResult:
    """Parse raw capability output into an AnalysisResult."""
    if not text or not text.strip():
        raise MalformedAnalysisResponseError("empty response")

    payload = extract_json_object(text)
    if payload is None:
        raise MalformedAnalysisResponseError("no JSON object found")

    try:
        return AnalysisResult.model_validate(payload)
    except ValidationError as e:
        fields = sorted({
            ".".join(str(loc) for loc in err["loc"]) for err in e.errors()
        })
        raise MalformedAnalysisResponseError(
            f"invalid fields: {', '.join(fields)}",
        ) from e
