import logging
from typing import Optional

from sqlalchemy.orm import Session

from authenticity.storage.repositories.analysis_repo import AnalysisResultRepository
from authenticity.verification.models import ContentType, Verdict

logger = logging.getLogger(__name__)

PREVIEW_CHAR_LIMIT = 200


def build_preview(content_type: str, content: Optional[str]) -> str:
    if content_type == ContentType.TEXT.value and content:
        return content[:PREVIEW_CHAR_LIMIT]
    return f"{content_type} analysis"


class ResultStore:
    """
    Best-effort persistence of a finished Verdict.

    A failed insert is logged and rolled back; `save` then returns None and the
    caller responds with the Verdict it already has.
    """

    def __init__(self, repo=AnalysisResultRepository):
        self.repo = repo

    def save(
        self,
        db: Session,
        verdict: Verdict,
        caller_id,
        content_type: str,
        content_preview: str,
    ) -> Optional[str]:
        try:
            record = self.repo.create(
                db=db,
                user_id=caller_id,
                content_type=content_type,
                authenticity_score=verdict.authenticity_score,
                detailed_analysis=verdict.details,
                manipulation_indicators=verdict.indicators or [],
                content_preview=content_preview,
            )
        except Exception:
            logger.exception("[ResultStore] Error saving analysis to database")
            try:
                db.rollback()
            except Exception:
                logger.exception("[ResultStore] Rollback after failed insert also failed")
            return None

        logger.info("[ResultStore] Analysis saved to database: %s", record.id)
        return str(record.id)
