"""
Structured LLM outputs for claim extraction and contradiction detection.

These are passed as `output_type` to pydantic-ai agents, so field names
and descriptions double as the response schema the model is asked for.
"""

from typing import Dict, List, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator

from .base import ClaimType, VerdictLevel


class ClaimDraft(BaseModel):
    """A factual claim extracted from one article, before persistence."""
    text: str = Field(description="The claim, stated in one sentence")
    type: ClaimType = Field(description="Claim category")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence the article makes this claim (0-1)")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("claim text must not be empty")
        return v


class ClaimExtraction(BaseModel):
    claims: List[ClaimDraft] = Field(default_factory=list)


class ContradictionVerdict(BaseModel):
    """Pairwise comparison result for two claims."""
    is_contradictory: bool = Field(validation_alias=AliasChoices("is_contradictory", "isContradictory"))
    contradiction_level: VerdictLevel = Field(
        default=VerdictLevel.NONE,
        validation_alias=AliasChoices("contradiction_level", "contradictionLevel"),
    )
    explanation: str = ""

    @field_validator("contradiction_level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ClaimSummary(BaseModel):
    """Aggregate stats stored as a summary_generation analysis result."""
    total_claims: int = 0
    claim_types: Dict[str, int] = Field(default_factory=dict)
    average_confidence: float = 0.0
    analysis_id: Optional[int] = None


class ArticleAssessment(BaseModel):
    """Free-text reading of one article: summary, findings, reliability."""
    summary: str = ""
    key_findings: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("key_findings", "keyFindings"),
    )
    credibility_assessment: str = Field(
        default="",
        validation_alias=AliasChoices("credibility_assessment", "credibilityAssessment"),
    )
