import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.sql import func

from authenticity.storage.base import Base
from authenticity.storage.models.analysis_result import UUID_COL_TYPE


class UserFeedback(Base):
    """User corrections of past analyses. Written elsewhere, read here."""

    __tablename__ = "user_feedback"
    __table_args__ = (
        CheckConstraint(
            "user_verdict IN ('real', 'fake')",
            name="user_feedback_user_verdict_check",
        ),
        Index("idx_user_feedback_analysis", "analysis_id"),
        Index("idx_user_feedback_user", "user_id"),
    )

    id = Column(
        UUID_COL_TYPE,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    analysis_id = Column(
        UUID_COL_TYPE,
        ForeignKey("analysis_results.id", ondelete="CASCADE"),
        nullable=True
    )

    user_id = Column(
        UUID_COL_TYPE,
        nullable=False
    )

    is_correct = Column(
        Boolean,
        nullable=False
    )

    user_verdict = Column(
        String(10),   # real / fake
        nullable=True
    )

    comment = Column(
        Text,
        nullable=True
    )

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
