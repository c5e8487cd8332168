from pydantic import BaseModel, Field, field_validator

ANALYSIS_FAILED = "Analysis failed"


def _clamp_score(v) -> float:
    try:
        v2 = float(v)
    except Exception:
        return 0
    if v2 != v2:  # NaN
        return 0
    if v2 < 0:
        return 0
    if v2 > 100:
        return 100
    return v2


class MatchResult(BaseModel):
    """
    Outcome of scoring one resume against one job description.

    Matchers always return one of these; a failed analysis is represented by the
    `failed()` sentinel (score 0, no strengths/weaknesses, reasoning "Analysis failed").
    """

    match_score: float = 0
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    reasoning: str = ""

    @field_validator("match_score", mode="before")
    @classmethod
    def _clamp(cls, v) -> float:
        if v is None:
            return 0
        return _clamp_score(v)

    @field_validator("strengths", "weaknesses", mode="before")
    @classmethod
    def _as_str_list(cls, v) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple)):
            raise ValueError("expected a list of strings")
        return [str(x).strip() for x in v if str(x).strip()]

    @field_validator("reasoning", mode="before")
    @classmethod
    def _as_text(cls, v) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @classmethod
    def failed(cls) -> "MatchResult":
        return cls(match_score=0, strengths=[], weaknesses=[], reasoning=ANALYSIS_FAILED)

    @property
    def is_failed(self) -> bool:
        return self.reasoning == ANALYSIS_FAILED and self.match_score == 0
