"""Report composer: normalize a report and attach request metadata."""

from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Optional

from debugger.errors import MalformedReportError
from debugger.models import (
    AnalysisMetadata,
    AnalysisMode,
    AnalysisReport,
    AnalysisRequest,
    AnalysisResult,
    Complexity,
    ErrorCode,
    Severity,
)

logger = logging.getLogger(__name__)

# ── Defaults ─────────────────────────────────────────────────────────────────
DEFAULT_EXPLANATION = "No issues found."
DEFAULT_FIX_EXPLANATION = "No changes were necessary."
DEFAULT_TIPS = ("Keep functions small and cover edge cases with tests.",)
DEFAULT_SECURITY = "Security assessment completed"
DEFAULT_COMPLEXITY_FIELD = "Not assessed"

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _random_suffix(length: int = 9) -> str:
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))


def new_analysis_id() -> str:
    """ANALYSIS_<epoch-ms>_<9 random chars>."""
    return f"ANALYSIS_{int(time.time() * 1000)}_{_random_suffix()}"


def new_error_reference() -> str:
    return f"ERR_{int(time.time() * 1000)}_{_random_suffix(6)}"


def _backfill(report: AnalysisReport, code: str) -> AnalysisReport:
    complexity = None
    if report.complexity is not None:
        complexity = Complexity(
            time=report.complexity.time or DEFAULT_COMPLEXITY_FIELD,
            space=report.complexity.space or DEFAULT_COMPLEXITY_FIELD,
            improvement=report.complexity.improvement or DEFAULT_COMPLEXITY_FIELD,
        )
    tips = [t for t in report.tips if t and t.strip()]
    if not tips or not report.explanation.strip() or not report.fixed_code.strip():
        logger.debug("Back-filling empty report fields with defaults")
    return AnalysisReport(
        explanation=report.explanation.strip() or DEFAULT_EXPLANATION,
        # An empty fix means "nothing to change"
        fixed_code=report.fixed_code if report.fixed_code.strip() else code,
        fix_explanation=report.fix_explanation.strip() or DEFAULT_FIX_EXPLANATION,
        severity=report.severity,
        tips=tips or list(DEFAULT_TIPS),
        complexity=complexity,
        security=(report.security or "").strip() or DEFAULT_SECURITY,
    )


def compose(
    report: AnalysisReport,
    request: AnalysisRequest,
    mode: AnalysisMode,
    processing_time_ms: int,
    confidence: Optional[float] = None,
    model: Optional[str] = None,
    attempts: int = 0,
    note: Optional[str] = None,
    environment: Optional[str] = None,
) -> AnalysisResult:
    """Back-fill empty fields and wrap the report in a successful result.

    Raises:
        MalformedReportError: if the report has no valid severity
    """
    if not isinstance(report.severity, Severity):
        raise MalformedReportError(
            f"Report from {mode} path has invalid severity {report.severity!r}"
        )

    metadata = AnalysisMetadata(
        analysis_id=new_analysis_id(),
        timestamp=_now_iso(),
        processing_time_ms=processing_time_ms,
        language=request.language,
        code_size=len(request.code),
        mode=mode,
        analysis_depth=request.analysis_depth,
        confidence=confidence,
        model=model,
        attempts=attempts,
        note=note,
        environment=environment,
    )
    return AnalysisResult(
        success=True,
        report=_backfill(report, request.code),
        metadata=metadata,
    )


def compose_failure(error: ErrorCode, message: str, with_reference: bool = False) -> AnalysisResult:
    """Build the caller-facing failure result; never includes internal details."""
    return AnalysisResult.failure(
        error=error,
        message=message,
        reference=new_error_reference() if with_reference else None,
        timestamp=_now_iso(),
    )
