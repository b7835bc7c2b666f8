"""Fallback Schemas — validates the fallback chooser's model output.

Invariants:
    - chosenUrl is required, stripped, non-empty
    - Membership in the candidate list is NOT checked here (caller's contract)
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FallbackChoice(BaseModel):
    """Model answer: {"chosenUrl": "...", "reasoning": "..."}."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    chosen_url: str = Field(alias="chosenUrl", min_length=1, max_length=2048)
    reasoning: str | None = None

    @field_validator("chosen_url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("chosenUrl cannot be empty")
        return v
