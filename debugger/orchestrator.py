"""Fallback orchestration: provider models in priority order, then heuristics."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from debugger.composer import compose, compose_failure
from debugger.config import AnalyzerConfig
from debugger.errors import MalformedReportError, ProviderError, ValidationError
from debugger.heuristics import heuristic_analyze
from debugger.llm import BedrockCompletion, ProgressCallback
from debugger.models import (
    AnalysisMode,
    AnalysisReport,
    AnalysisRequest,
    AnalysisResult,
    ErrorCode,
)
from debugger.provider import ProviderAdapter
from debugger.validation import validate

logger = logging.getLogger(__name__)


@dataclass
class ProviderAttempt:
    """Outcome of calling one model: exactly one of report / error is set."""

    model_id: str
    report: Optional[AnalysisReport] = None
    error: Optional[ProviderError] = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.report is not None

    @property
    def timed_out(self) -> bool:
        return self.error is not None and self.error.code == ErrorCode.TIMEOUT


class FallbackOrchestrator:
    """Produces a report for every valid request.

    Models from ``config.model_ids`` are tried one at a time, in order, until
    one returns a usable report. With no credential configured, or when every
    attempt fails or the time budget runs out, the heuristic engine answers
    instead.
    """

    def __init__(
        self,
        config: AnalyzerConfig,
        adapter: Optional[ProviderAdapter] = None,
    ):
        self.config = config
        self.adapter = adapter or ProviderAdapter(BedrockCompletion(config))

    async def handle(
        self,
        payload: Mapping[str, Any],
        timeout: Optional[float] = None,
        on_progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Validate a raw submission and analyze it.

        Returns a failure result for rejected input (CODE_REQUIRED,
        CODE_TOO_SMALL, CODE_TOO_LARGE) or for a report that cannot be
        composed (ANALYSIS_FAILED). Everything else succeeds.
        """
        started_at = time.monotonic()
        try:
            request = validate(
                payload,
                min_length=self.config.min_code_length,
                max_length=self.config.max_code_length,
            )
        except ValidationError as e:
            logger.info("Rejected submission: %s", e)
            return compose_failure(e.code, e.message)

        try:
            return await self.analyze(
                request,
                timeout=timeout,
                on_progress=on_progress,
                started_at=started_at,
            )
        except MalformedReportError as e:
            result = compose_failure(
                ErrorCode.ANALYSIS_FAILED,
                "Comprehensive code analysis failed",
                with_reference=True,
            )
            logger.error("Malformed report [%s]: %s", result.reference, e.message)
            return result

    async def analyze(
        self,
        request: AnalysisRequest,
        timeout: Optional[float] = None,
        on_progress: ProgressCallback | None = None,
        started_at: Optional[float] = None,
    ) -> AnalysisResult:
        """
        Analyze a validated request.

        ``started_at`` is the ``time.monotonic()`` value at request entry;
        processing time and the time budget both count from it.

        Raises:
            MalformedReportError: if the winning report cannot be composed
        """
        start = started_at if started_at is not None else time.monotonic()
        budget = timeout if timeout is not None else self.config.request_timeout
        deadline = start + budget

        logger.info(
            "[%s] Analyzing %d chars with %s depth",
            request.language.upper(),
            len(request.code),
            request.analysis_depth,
        )

        attempts: list[ProviderAttempt] = []
        winner: Optional[ProviderAttempt] = None
        note = None

        if not self.config.has_credential:
            note = "Provider credential not configured; heuristic analysis used."
            logger.info("No provider credential configured, skipping provider")
        else:
            for model_id in self.config.model_ids:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning("Time budget of %.1fs exhausted before %s", budget, model_id)
                    break
                attempt = await self._attempt(model_id, request, remaining, on_progress)
                attempts.append(attempt)
                if attempt.ok:
                    winner = attempt
                    break
                if attempt.timed_out:
                    break
            if winner is None:
                note = _fallback_note(attempts)

        if winner is not None:
            report = winner.report
            mode = AnalysisMode.PROVIDER
            confidence = self.config.provider_confidence
        else:
            report = heuristic_analyze(request.code, request.language)
            mode = AnalysisMode.HEURISTIC
            confidence = None

        processing_time_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Analysis complete: mode=%s attempts=%d time=%dms",
            mode,
            len(attempts),
            processing_time_ms,
        )
        return compose(
            report,
            request,
            mode=mode,
            processing_time_ms=processing_time_ms,
            confidence=confidence,
            model=winner.model_id if winner else None,
            attempts=len(attempts),
            note=note,
            environment=self.config.environment,
        )

    async def _attempt(
        self,
        model_id: str,
        request: AnalysisRequest,
        remaining: float,
        on_progress: ProgressCallback | None,
    ) -> ProviderAttempt:
        """Run one adapter call in a worker thread, bounded by ``remaining``."""
        start = time.monotonic()
        try:
            # On timeout the worker thread is abandoned, not interrupted
            report = await asyncio.wait_for(
                asyncio.to_thread(
                    self.adapter.invoke,
                    model_id,
                    request.code,
                    request.language,
                    request.analysis_depth,
                    on_progress,
                ),
                timeout=remaining,
            )
        except ProviderError as e:
            logger.warning("Model %s failed: %s", model_id, e)
            return ProviderAttempt(model_id, error=e, elapsed_ms=_elapsed_ms(start))
        except asyncio.TimeoutError:
            logger.warning("Model %s timed out after %.1fs", model_id, remaining)
            error = ProviderError(
                ErrorCode.TIMEOUT,
                f"No response within {remaining:.1f}s",
                model_id=model_id,
            )
            return ProviderAttempt(model_id, error=error, elapsed_ms=_elapsed_ms(start))
        return ProviderAttempt(model_id, report=report, elapsed_ms=_elapsed_ms(start))


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _fallback_note(attempts: list[ProviderAttempt]) -> str:
    if not attempts:
        return "Time budget exhausted before any provider call; heuristic analysis used."
    failures = ", ".join(f"{a.model_id}={a.error.code}" for a in attempts if a.error)
    return f"All provider attempts failed ({failures}); heuristic analysis used."
