from authenticity.storage.base import Base
from authenticity.storage.models import AnalysisResult, UserFeedback

__all__ = ["Base", "AnalysisResult", "UserFeedback"]
