"""Input validation: reject unusable submissions before any analysis work."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from debugger.config import (
    DEFAULT_ANALYSIS_DEPTH,
    DEFAULT_LANGUAGE,
    MAX_CODE_LENGTH,
    MIN_CODE_LENGTH_BY_TIER,
    SUPPORTED_LANGUAGES,
)
from debugger.errors import ValidationError
from debugger.models import AnalysisDepth, AnalysisRequest, ErrorCode

logger = logging.getLogger(__name__)


def _normalize_language(raw: Any) -> str:
    if not isinstance(raw, str) or not raw.strip():
        return DEFAULT_LANGUAGE
    language = raw.strip().lower()
    if language not in SUPPORTED_LANGUAGES:
        # Still analyzable: the prompt names the language and the
        # heuristic rules are not language-specific.
        logger.info("Unlisted language %r accepted as-is", language)
    return language


def _normalize_depth(raw: Any) -> AnalysisDepth:
    if not isinstance(raw, str) or not raw.strip():
        return AnalysisDepth(DEFAULT_ANALYSIS_DEPTH)
    try:
        return AnalysisDepth(raw.strip().lower())
    except ValueError:
        logger.warning("Unknown analysis depth %r, using %s", raw, DEFAULT_ANALYSIS_DEPTH)
        return AnalysisDepth(DEFAULT_ANALYSIS_DEPTH)


def validate(
    payload: Mapping[str, Any],
    min_length: int = MIN_CODE_LENGTH_BY_TIER["strict"],
    max_length: int = MAX_CODE_LENGTH,
) -> AnalysisRequest:
    """Check a raw submission and return it as an AnalysisRequest.

    Accepts both ``analysisDepth`` and ``analysis_depth`` keys. Language and
    depth are defaulted when absent. The code itself is passed through
    untrimmed.

    Raises:
        ValidationError: CODE_REQUIRED, CODE_TOO_LARGE or CODE_TOO_SMALL
    """
    code = payload.get("code")

    if not isinstance(code, str) or not code.strip():
        raise ValidationError(
            ErrorCode.CODE_REQUIRED, "Source code is required for analysis"
        )

    if len(code) > max_length:
        raise ValidationError(
            ErrorCode.CODE_TOO_LARGE,
            f"Code exceeds maximum analysis size ({max_length:,} characters)",
        )

    if len(code.strip()) < min_length:
        raise ValidationError(
            ErrorCode.CODE_TOO_SMALL, "Code is too short for meaningful analysis"
        )

    depth_raw = payload.get("analysisDepth", payload.get("analysis_depth"))
    return AnalysisRequest(
        code=code,
        language=_normalize_language(payload.get("language")),
        analysis_depth=_normalize_depth(depth_raw),
    )
