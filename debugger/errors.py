"""Exceptions raised along the analysis pipeline."""

from __future__ import annotations

from debugger.models import ErrorCode


class AnalysisError(Exception):
    """Base class; every subclass carries a machine-readable code."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(AnalysisError):
    """Raised when a submission is rejected before analysis."""


class ProviderError(AnalysisError):
    """Raised when a single provider attempt fails (transport or format)."""

    def __init__(self, code: ErrorCode, message: str, model_id: str | None = None):
        super().__init__(code, message)
        self.model_id = model_id


class MalformedReportError(AnalysisError):
    """Raised when a report cannot be composed into a valid result."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.MALFORMED_REPORT, message)
