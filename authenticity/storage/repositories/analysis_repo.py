import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from authenticity.storage.models.analysis_result import AnalysisResult


class AnalysisResultRepository:

    @staticmethod
    def create(
        db: Session,
        user_id,
        content_type: str,
        authenticity_score: int,
        detailed_analysis: str,
        manipulation_indicators: Optional[List[str]] = None,
        content_preview: Optional[str] = None,
    ) -> AnalysisResult:
        record = AnalysisResult(
            id=str(uuid.uuid4()),
            user_id=str(user_id) if user_id is not None else None,
            content_type=content_type,
            authenticity_score=authenticity_score,
            detailed_analysis=detailed_analysis,
            manipulation_indicators=list(manipulation_indicators or []),
            content_preview=content_preview,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def list_by_user(
        db: Session,
        user_id,
        content_type: Optional[str] = None,
        min_score: Optional[int] = None,
        max_score: Optional[int] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[AnalysisResult]:
        query = db.query(AnalysisResult).filter(AnalysisResult.user_id == str(user_id))

        if content_type is not None:
            query = query.filter(AnalysisResult.content_type == content_type)
        if min_score is not None:
            query = query.filter(AnalysisResult.authenticity_score >= min_score)
        if max_score is not None:
            query = query.filter(AnalysisResult.authenticity_score <= max_score)
        if since is not None:
            query = query.filter(AnalysisResult.created_at >= since)

        query = query.order_by(AnalysisResult.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()
