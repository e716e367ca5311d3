from typing import List

from sqlalchemy.orm import Session

from authenticity.storage.models.analysis_result import AnalysisResult
from authenticity.storage.models.user_feedback import UserFeedback
from authenticity.verification.models import FeedbackRecord


class FeedbackRepository:

    @staticmethod
    def recent_corrections(
        db: Session,
        content_type: str,
        limit: int = 10,
    ) -> List[FeedbackRecord]:
        """Most recent `is_correct = false` feedback for one content type."""
        rows = (
            db.query(UserFeedback, AnalysisResult)
            .join(AnalysisResult, UserFeedback.analysis_id == AnalysisResult.id)
            .filter(UserFeedback.is_correct.is_(False))
            .filter(AnalysisResult.content_type == content_type)
            .order_by(UserFeedback.created_at.desc())
            .limit(limit)
            .all()
        )

        return [
            FeedbackRecord(
                content_type=analysis.content_type,
                prior_score=analysis.authenticity_score,
                user_verdict=feedback.user_verdict,
                comment=feedback.comment,
                created_at=feedback.created_at,
            )
            for feedback, analysis in rows
        ]
