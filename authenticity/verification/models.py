from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContentType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class VerdictStatus(str, Enum):
    AUTHENTIC = "authentic"
    SUSPICIOUS = "suspicious"
    FAKE = "fake"
    ERROR = "error"


class ClaimVerdict(str, Enum):
    VERIFIED = "verified"
    CONTRADICTED = "contradicted"
    UNVERIFIED = "unverified"


class EvidenceItem(BaseModel):
    title: str = ""
    url: str = ""
    snippet: str = ""


class SourceAssessment(EvidenceItem):
    model_config = ConfigDict(populate_by_name=True)

    credibility_score: int = Field(default=0, ge=0, le=100, alias="credibilityScore")
    credibility_reason: str = Field(default="", alias="credibilityReason")


class ClaimAssessment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    claim_text: str = Field(alias="claim")
    verdict: ClaimVerdict = ClaimVerdict.UNVERIFIED
    explanation: str = ""
    evidence_refs: List[int] = Field(default_factory=list, alias="sourceIndexes")


class Verdict(BaseModel):
    """
    Structured authenticity assessment.

    Serialized with camelCase aliases (`authenticity`, `manipulationIndicators`, ...)
    so the wire body matches what clients already read.
    """

    model_config = ConfigDict(populate_by_name=True)

    authenticity_score: int = Field(ge=0, le=100, alias="authenticity")
    status: VerdictStatus
    details: str = ""
    claims: Optional[List[ClaimAssessment]] = None
    sources: Optional[List[SourceAssessment]] = None
    limitations: Optional[str] = None
    indicators: Optional[List[str]] = Field(default=None, alias="manipulationIndicators")

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class FeedbackRecord(BaseModel):
    content_type: str
    prior_score: int
    user_verdict: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
