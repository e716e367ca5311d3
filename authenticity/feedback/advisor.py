import logging
from typing import List

from sqlalchemy.orm import Session

from authenticity.storage.repositories.feedback_repo import FeedbackRepository
from authenticity.verification.models import FeedbackRecord

logger = logging.getLogger(__name__)

MAX_CORRECTIONS = 10
REAL_THRESHOLD = 70


def prior_label(prior_score: int) -> str:
    return "real" if prior_score > REAL_THRESHOLD else "fake"


def render_correction(record: FeedbackRecord) -> str:
    comment = record.comment or "No comment provided"
    return (
        f"AI said {prior_label(record.prior_score)} "
        f"but corrected to {record.user_verdict}. Reason: {comment}"
    )


def render_advisory(content_type: str, records: List[FeedbackRecord]) -> str:
    if not records:
        return ""
    lines = [f"- {render_correction(r)}" for r in records]
    header = f"Past user corrections for {content_type} analyses (learn from these mistakes):"
    return "\n".join([header, *lines])


class FeedbackAdvisor:
    """
    Turns recent user corrections into a short advisory block for prompts.

    Any retrieval failure yields "" so the request carries on without it.
    """

    def __init__(self, repo=FeedbackRepository, limit: int = MAX_CORRECTIONS):
        self.repo = repo
        self.limit = limit

    def advise(self, db: Session, content_type: str) -> str:
        try:
            records = self.repo.recent_corrections(db=db, content_type=content_type, limit=self.limit)
        except Exception as exc:
            logger.warning("[FeedbackAdvisor] Could not load corrections: %s", exc)
            try:
                db.rollback()
            except Exception:
                logger.debug("[FeedbackAdvisor] Rollback failed", exc_info=True)
            return ""

        logger.info("[FeedbackAdvisor] %d correction(s) for %s", len(records), content_type)
        return render_advisory(content_type, records)
