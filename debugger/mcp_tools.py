"""MCP tool definitions for the code debugger."""

from __future__ import annotations

import asyncio
import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Optional

from fastmcp import Context, FastMCP

from debugger.composer import compose_failure
from debugger.config import SERVER_NAME, SERVER_VERSION, SUPPORTED_LANGUAGES
from debugger.models import ErrorCode
from debugger.orchestrator import FallbackOrchestrator

logger = logging.getLogger(__name__)


def _error_response(tool_name: str, error: Exception) -> str:
    """Build a caller-safe JSON error for unexpected tool failures."""
    result = compose_failure(
        ErrorCode.ANALYSIS_FAILED,
        "Comprehensive code analysis failed",
        with_reference=True,
    )
    logger.error(
        "Tool %s failed [%s]: %s\n%s",
        tool_name,
        result.reference,
        error,
        traceback.format_exc(),
    )
    return result.to_json()


def _make_progress_bridge(ctx: Context, loop: asyncio.AbstractEventLoop):
    """Create a sync callback that sends MCP log notifications during streaming.

    Called from the provider's worker thread, so notifications are scheduled
    back onto the server's event loop.
    """
    call_count = 0

    def on_progress(chars_so_far: int, elapsed: float, message: str) -> None:
        nonlocal call_count
        call_count += 1
        try:
            future = asyncio.run_coroutine_threadsafe(
                ctx.log(
                    message=f"[analyze] {message}",
                    level="info",
                    logger_name="debugger.llm",
                ),
                loop,
            )
            future.result(timeout=2.0)
        except Exception as e:
            logger.warning("Log notification failed (call #%d): %s", call_count, e)

    return on_progress


def register_tools(mcp: FastMCP, orchestrator: FallbackOrchestrator) -> None:
    """Register the analysis tools on the given FastMCP server instance."""

    @mcp.tool()
    async def analyze_code(
        code: str,
        ctx: Context,
        language: str = "javascript",
        analysis_depth: str = "comprehensive",
        timeout_seconds: Optional[float] = None,
    ) -> str:
        """Find defects in a code snippet and return a corrected version.

        Returns a JSON analysis result: explanation, fixedCode, fixExplanation,
        severity, tips, complexity, security and metadata. On rejected input
        the result has success=false and an error code.

        Args:
            code: The source code to analyze (10 to 15,000 characters)
            language: Language of the code (e.g., "javascript", "python")
            analysis_depth: "quick", "standard" or "comprehensive"
            timeout_seconds: Optional overall time budget for the analysis
        """
        try:
            loop = asyncio.get_running_loop()
            result = await orchestrator.handle(
                {"code": code, "language": language, "analysisDepth": analysis_depth},
                timeout=timeout_seconds,
                on_progress=_make_progress_bridge(ctx, loop),
            )
            return result.to_json()
        except Exception as e:
            return _error_response("analyze_code", e)

    @mcp.tool()
    def supported_languages() -> str:
        """List the languages the analyzer is tuned for."""
        return json.dumps(list(SUPPORTED_LANGUAGES))

    @mcp.tool()
    def health() -> str:
        """Report service status and whether a provider credential is configured."""
        return json.dumps(
            {
                "status": "OK",
                "service": SERVER_NAME,
                "version": SERVER_VERSION,
                "providerConfigured": orchestrator.config.has_credential,
                "models": list(orchestrator.config.model_ids),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            indent=2,
        )
