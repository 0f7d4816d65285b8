"""
Custom exception classes for the call quality analyzer.
"""
from typing import Any, Dict, Optional


class AnalysisError(Exception):
    """Base exception class for failures that abort an analysis request."""

    kind = "AnalysisError"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        """Structured error payload handed to the transport layer."""
        return {"error": self.kind, "details": self.detail}


class InvalidInputError(AnalysisError):
    """Exception raised when the transcript is empty or missing."""

    kind = "InvalidInput"


class ModelUnavailableError(AnalysisError):
    """Exception raised when the generative model cannot produce a reply."""

    kind = "ModelUnavailable"

    def __init__(self, detail: str, reason: str = "provider", status_code: Optional[int] = None):
        super().__init__(detail)
        self.reason = reason
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["reason"] = self.reason
        return payload


class InputError(Exception):
    """Exception raised for CLI input-related errors."""
    pass
