# Re-export all models for easy import and metadata discovery

from authenticity.storage.models.analysis_result import AnalysisResult
from authenticity.storage.models.user_feedback import UserFeedback

__all__ = [
    "AnalysisResult",
    "UserFeedback",
]
