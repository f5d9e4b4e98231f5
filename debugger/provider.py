"""Provider adapter: one model call turned into one structured report."""

from __future__ import annotations

import logging
from typing import Protocol

from debugger.errors import ProviderError
from debugger.llm import ProgressCallback
from debugger.llm_parsing import parse_report
from debugger.models import AnalysisDepth, AnalysisReport, ErrorCode
from debugger.prompts import ANALYZE_SYSTEM, build_analysis_message

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Anything that can produce raw text from a named model."""

    def complete(
        self,
        model_id: str,
        system_prompt: str,
        user_message: str,
        tool: str = ...,
        on_progress: ProgressCallback | None = ...,
    ) -> str: ...


class ProviderAdapter:
    """Calls one model and parses its reply.

    Makes exactly one completion call per ``invoke``; trying other models is
    the orchestrator's job.
    """

    def __init__(self, client: CompletionClient):
        self.client = client

    def invoke(
        self,
        model_id: str,
        code: str,
        language: str,
        depth: AnalysisDepth = AnalysisDepth.COMPREHENSIVE,
        on_progress: ProgressCallback | None = None,
    ) -> AnalysisReport:
        """
        Analyze ``code`` with ``model_id``.

        Raises:
            ProviderError: TRANSPORT_ERROR if the call fails,
                INVALID_RESPONSE_FORMAT if the reply cannot be parsed
        """
        user_message = build_analysis_message(code, language, depth)
        try:
            response_text = self.client.complete(
                model_id,
                ANALYZE_SYSTEM,
                user_message,
                tool="analyze_code",
                on_progress=on_progress,
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.warning("Completion call to model=%s failed: %s", model_id, e)
            raise ProviderError(
                ErrorCode.TRANSPORT_ERROR,
                f"Completion call failed: {type(e).__name__}",
                model_id=model_id,
            ) from e

        try:
            report = parse_report(response_text)
        except ProviderError as e:
            e.model_id = model_id
            logger.warning(
                "Unusable response from model=%s (%d chars): %s",
                model_id,
                len(response_text),
                e.message,
            )
            raise
        logger.info("Model %s returned a %s severity report", model_id, report.severity)
        return report
