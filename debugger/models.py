"""Data models for the code debugger analysis service."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """Overall severity of the defects found in a submission."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    def __str__(self) -> str:
        return self.value


class AnalysisMode(str, Enum):
    """Which strategy produced the report."""

    PROVIDER = "provider"
    HEURISTIC = "heuristic"

    def __str__(self) -> str:
        return self.value


class AnalysisDepth(str, Enum):
    QUICK = "quick"
    STANDARD = "standard"
    COMPREHENSIVE = "comprehensive"

    def __str__(self) -> str:
        return self.value


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    # Caller-visible
    CODE_REQUIRED = "CODE_REQUIRED"
    CODE_TOO_SMALL = "CODE_TOO_SMALL"
    CODE_TOO_LARGE = "CODE_TOO_LARGE"
    ANALYSIS_FAILED = "ANALYSIS_FAILED"
    # Internal to the orchestrator
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    INVALID_RESPONSE_FORMAT = "INVALID_RESPONSE_FORMAT"
    TIMEOUT = "TIMEOUT"
    MALFORMED_REPORT = "MALFORMED_REPORT"

    def __str__(self) -> str:
        return self.value


class RuleKind(str, Enum):
    """Heuristic rule variants, in priority order."""

    MIXED_TYPE_ARITHMETIC = "mixed_type_arithmetic"
    OFF_BY_ONE_LOOP = "off_by_one_loop"
    ASYNC_STYLE_MIX = "async_style_mix"
    GENERIC = "generic"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AnalysisRequest:
    """A validated submission."""

    code: str
    language: str = "javascript"
    analysis_depth: AnalysisDepth = AnalysisDepth.COMPREHENSIVE


@dataclass
class Complexity:
    time: str = ""
    space: str = ""
    improvement: str = ""

    def to_dict(self) -> dict:
        return {"time": self.time, "space": self.space, "improvement": self.improvement}


@dataclass
class AnalysisReport:
    """Defects, fix and advice for one submission, from either strategy."""

    explanation: str = ""
    fixed_code: str = ""
    fix_explanation: str = ""
    severity: Optional[Severity] = None
    tips: list[str] = field(default_factory=list)
    complexity: Optional[Complexity] = None
    security: Optional[str] = None

    def to_dict(self) -> dict:
        d = {
            "explanation": self.explanation,
            "fixedCode": self.fixed_code,
            "fixExplanation": self.fix_explanation,
            "severity": str(self.severity) if self.severity else None,
            "tips": list(self.tips),
            "complexity": self.complexity.to_dict() if self.complexity else None,
            "security": self.security,
        }
        # Optional fields are omitted rather than sent as null
        return {k: v for k, v in d.items() if v is not None}


@dataclass
class AnalysisMetadata:
    analysis_id: str
    timestamp: str
    processing_time_ms: int
    language: str
    code_size: int
    mode: AnalysisMode
    analysis_depth: AnalysisDepth = AnalysisDepth.COMPREHENSIVE
    confidence: Optional[float] = None
    model: Optional[str] = None
    attempts: int = 0
    note: Optional[str] = None
    environment: Optional[str] = None

    def to_dict(self) -> dict:
        d = {
            "analysisId": self.analysis_id,
            "timestamp": self.timestamp,
            "processingTimeMs": self.processing_time_ms,
            "language": self.language,
            "codeSize": self.code_size,
            "mode": str(self.mode),
            "analysisDepth": str(self.analysis_depth),
            "confidence": self.confidence,
            "model": self.model,
            "attempts": self.attempts,
            "note": self.note,
            "environment": self.environment,
        }
        return {k: v for k, v in d.items() if v is not None}


@dataclass
class AnalysisResult:
    """What the caller receives: a composed report, or an error code."""

    success: bool
    report: Optional[AnalysisReport] = None
    metadata: Optional[AnalysisMetadata] = None
    error: Optional[ErrorCode] = None
    message: Optional[str] = None
    reference: Optional[str] = None
    timestamp: Optional[str] = None

    @classmethod
    def failure(
        cls,
        error: ErrorCode,
        message: str,
        reference: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> AnalysisResult:
        return cls(
            success=False,
            error=error,
            message=message,
            reference=reference,
            timestamp=timestamp,
        )

    def to_dict(self) -> dict:
        if not self.success:
            d = {
                "success": False,
                "error": str(self.error),
                "message": self.message,
                "reference": self.reference,
                "timestamp": self.timestamp,
            }
            return {k: v for k, v in d.items() if v is not None}

        d = {"success": True}
        if self.report is not None:
            d.update(self.report.to_dict())
        if self.metadata is not None:
            d["metadata"] = self.metadata.to_dict()
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
