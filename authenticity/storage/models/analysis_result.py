import uuid
from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.sql import func

from authenticity.storage.base import Base


def _uuid_col_type():
    try:
        # SQLAlchemy 2.x portable UUID type
        from sqlalchemy import Uuid  # type: ignore

        return Uuid(as_uuid=False)
    except Exception:
        return String(36)


UUID_COL_TYPE = _uuid_col_type()


class AnalysisResult(Base):
    __tablename__ = "analysis_results"
    __table_args__ = (
        CheckConstraint(
            "authenticity_score >= 0 AND authenticity_score <= 100",
            name="analysis_results_authenticity_score_check",
        ),
        Index("idx_analysis_results_user_id", "user_id"),
        Index("idx_analysis_results_content_type", "content_type"),
        Index("idx_analysis_results_created_at", "created_at"),
    )

    id = Column(
        UUID_COL_TYPE,
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )

    user_id = Column(
        UUID_COL_TYPE,
        nullable=True
    )

    content_type = Column(
        String(10),   # text / image / audio / video
        nullable=False
    )

    authenticity_score = Column(
        Integer,
        nullable=False
    )

    detailed_analysis = Column(
        Text,
        nullable=False
    )

    manipulation_indicators = Column(
        JSON,
        nullable=False,
        default=list
    )

    content_preview = Column(
        Text,
        nullable=True
    )

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
