"""
Error taxonomy for the analysis pipeline.

Every fatal path raises an AnalysisError subclass; the request handler turns
it into a structured JSON body. Parse and persistence failures are recovered
where they happen and never show up here.
"""

from typing import Dict, Optional

GENERIC_ERROR_DETAILS = "An error occurred during analysis. Please try again."


class AnalysisError(Exception):
    status_code: int = 500
    public_message: str = "Analysis failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.public_message)
        if message:
            self.public_message = message

    def to_body(self) -> Dict:
        return {
            "error": self.public_message,
            "authenticity": 0,
            "status": "error",
            "details": GENERIC_ERROR_DETAILS,
        }


class ConfigurationError(AnalysisError):
    public_message = "Service is not configured"


class InvalidRequestError(AnalysisError):
    public_message = "Invalid content type"


class AuthenticationError(AnalysisError):
    status_code = 401
    public_message = "Authentication required"

    def to_body(self) -> Dict:
        return {"error": self.public_message}


class EvidenceExhaustedError(AnalysisError):
    public_message = "Failed to verify article with search service"

    def __init__(self, attempts: int = 0):
        super().__init__()
        self.attempts = attempts


class UpstreamRateLimitedError(AnalysisError):
    status_code = 429
    public_message = "Rate limit exceeded. Please try again later."

    def to_body(self) -> Dict:
        return {"error": self.public_message}


class UpstreamBillingRequiredError(AnalysisError):
    status_code = 402
    public_message = "Credits depleted. Please add more credits to continue."

    def to_body(self) -> Dict:
        return {"error": self.public_message}


class UpstreamTransportError(AnalysisError):
    """Gateway failure. `diagnostic` is for logs only."""

    public_message = "AI Gateway error"

    def __init__(self, diagnostic: str = "", status: Optional[int] = None):
        super().__init__()
        self.diagnostic = diagnostic
        self.status = status
