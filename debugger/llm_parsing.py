"""LLM response parsing: best-effort extraction of the report JSON."""

from __future__ import annotations

import json
import logging
from typing import Optional

from debugger.errors import ProviderError
from debugger.models import Complexity, AnalysisReport, ErrorCode, Severity

logger = logging.getLogger(__name__)


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` region of ``text``, or None.

    Providers often wrap the JSON in prose or markdown fences. Braces inside
    JSON string literals are ignored when balancing.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    # Unbalanced, most likely a truncated response
    return None


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()


def _parse_severity(value) -> Optional[Severity]:
    if not isinstance(value, str):
        return None
    try:
        return Severity(value.strip().lower())
    except ValueError:
        return None


def _parse_tips(value) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [_text(t) for t in value if _text(t)]


def _parse_complexity(value) -> Optional[Complexity]:
    if not isinstance(value, dict):
        return None
    return Complexity(
        time=_text(value.get("time")),
        space=_text(value.get("space")),
        improvement=_text(value.get("improvement")),
    )


def report_from_dict(data: dict) -> AnalysisReport:
    """Convert a parsed provider object into an AnalysisReport.

    Raises:
        ProviderError: INVALID_RESPONSE_FORMAT if severity is missing or unknown
    """
    severity = _parse_severity(data.get("severity"))
    if severity is None:
        raise ProviderError(
            ErrorCode.INVALID_RESPONSE_FORMAT,
            f"Missing or unknown severity: {data.get('severity')!r}",
        )
    security = _text(data.get("security")) or None
    return AnalysisReport(
        explanation=_text(data.get("explanation")),
        # Code keeps its indentation
        fixed_code=data["fixedCode"] if isinstance(data.get("fixedCode"), str) else "",
        fix_explanation=_text(data.get("fixExplanation")),
        severity=severity,
        tips=_parse_tips(data.get("tips")),
        complexity=_parse_complexity(data.get("complexity")),
        security=security,
    )


def parse_report(response_text: str) -> AnalysisReport:
    """Parse raw provider text into an AnalysisReport.

    Raises:
        ProviderError: INVALID_RESPONSE_FORMAT if no JSON object is found,
            it does not parse, or it lacks a valid severity
    """
    candidate = extract_json_object(response_text)
    if candidate is None:
        raise ProviderError(
            ErrorCode.INVALID_RESPONSE_FORMAT,
            "No JSON object found in provider response",
        )

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse provider response as JSON: %s", e)
        raise ProviderError(
            ErrorCode.INVALID_RESPONSE_FORMAT,
            f"Provider response is not valid JSON: {e}",
        ) from e

    return report_from_dict(data)
