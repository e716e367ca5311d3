from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_type: str = Field(..., alias="contentType")
    content: Optional[str] = None
    file_data: Optional[str] = Field(default=None, alias="fileData")
    frame_data: Optional[str] = Field(default=None, alias="frameData")


class AnalysisRecordItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content_type: str
    authenticity_score: int
    detailed_analysis: str
    manipulation_indicators: List[str] = []
    content_preview: Optional[str] = None
    created_at: Optional[datetime] = None


class AnalysisListResponse(BaseModel):
    analyses: List[AnalysisRecordItem]


class DailyTrendItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: date
    count: int
    average_score: int = Field(alias="averageScore")


class AnalysisStatsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    average_score: int = Field(alias="averageScore")
    authentic_count: int = Field(alias="authenticCount")
    by_content_type: Dict[str, int] = Field(alias="byContentType")
    score_distribution: Dict[str, int] = Field(alias="scoreDistribution")
    daily_trend: List[DailyTrendItem] = Field(alias="dailyTrend")
