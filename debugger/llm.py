"""Bedrock completion client used by the provider adapter."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig

from debugger.config import USAGE_LOG_PATH, AnalyzerConfig
from debugger.errors import ProviderError
from debugger.models import ErrorCode

logger = logging.getLogger(__name__)

# Type alias for progress callbacks: (chars_so_far, elapsed_seconds, message) -> None
ProgressCallback = Callable[[int, float, str], None]

# Bedrock stream error event keys
_STREAM_ERROR_KEYS = (
    "internalServerException",
    "modelStreamErrorException",
    "throttlingException",
    "validationException",
    "serviceUnavailableException",
)

# ── Usage log setup ──────────────────────────────────────────────────────────

_usage_logger = None


def _get_usage_logger() -> logging.Logger:
    """Lazy-init a dedicated file logger for token usage."""
    global _usage_logger
    if _usage_logger is not None:
        return _usage_logger

    _usage_logger = logging.getLogger("debugger.usage")
    _usage_logger.setLevel(logging.INFO)
    _usage_logger.propagate = False

    log_path = Path(USAGE_LOG_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Check before the handler creates the file
    needs_header = not log_path.exists() or log_path.stat().st_size == 0

    if not _usage_logger.handlers:
        handler = logging.FileHandler(str(log_path), mode="a")
        handler.setFormatter(logging.Formatter("%(message)s"))
        _usage_logger.addHandler(handler)

    if needs_header:
        _usage_logger.info(
            "timestamp\tmodel\ttool\tinput_tokens\toutput_tokens\ttotal_tokens\tlatency_ms"
        )

    return _usage_logger


def _log_usage(
    model_id: str,
    tool: str,
    input_tokens: int,
    output_tokens: int,
    latency_ms: int,
) -> None:
    """Log token usage to both the usage log file and the standard logger."""
    total = input_tokens + output_tokens

    logger.info(
        "Bedrock usage [%s]: input=%d output=%d total=%d latency=%dms model=%s",
        tool,
        input_tokens,
        output_tokens,
        total,
        latency_ms,
        model_id,
    )

    usage = _get_usage_logger()
    ts = datetime.now(timezone.utc).isoformat()
    usage.info(
        "%s\t%s\t%s\t%d\t%d\t%d\t%d",
        ts,
        model_id,
        tool,
        input_tokens,
        output_tokens,
        total,
        latency_ms,
    )


# ── Bedrock client ───────────────────────────────────────────────────────────


class BedrockCompletion:
    """Generates a text completion from a named Bedrock model.

    The boto3 client is created lazily on first use and reused for the
    life of the process. Any failure to reach the model is raised as
    ``ProviderError(TRANSPORT_ERROR)``; interpreting the text is left to
    the caller.
    """

    def __init__(self, config: AnalyzerConfig, client=None):
        self.config = config
        self._client = client

    def _get_client(self):
        if self._client is None:
            session = boto3.Session(
                profile_name=self.config.bedrock_profile,
                region_name=self.config.bedrock_region,
            )
            self._client = session.client(
                "bedrock-runtime",
                config=BotoConfig(
                    retries={"max_attempts": 2, "mode": "adaptive"},
                    read_timeout=60,
                    connect_timeout=10,
                    max_pool_connections=8,
                    tcp_keepalive=True,
                ),
            )
            logger.info(
                "Bedrock client initialized: profile=%s region=%s",
                self.config.bedrock_profile,
                self.config.bedrock_region,
            )
        return self._client

    def complete(
        self,
        model_id: str,
        system_prompt: str,
        user_message: str,
        tool: str = "analyze_code",
        on_progress: ProgressCallback | None = None,
    ) -> str:
        """
        Stream a completion from ``model_id`` and return the accumulated text.

        Args:
            model_id: Bedrock model identifier to call
            system_prompt: The system/persona prompt
            user_message: The user message carrying the code
            tool: Name of the calling tool (for usage logging)
            on_progress: Optional callback called during streaming with
                         (chars_so_far, elapsed_seconds, message)

        Returns:
            The response text. Partial text is returned if the stream broke
            after some text arrived.

        Raises:
            ProviderError: TRANSPORT_ERROR if the model could not be reached
        """
        body = {
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": system_prompt,
            "messages": [
                {"role": "user", "content": user_message},
            ],
        }

        start = time.monotonic()
        logger.info("Bedrock stream starting [%s] model=%s", tool, model_id)

        # Declared outside try so partial results are available in except
        text_chunks: list[str] = []
        input_tokens = 0
        output_tokens = 0

        try:
            response = self._get_client().invoke_model_with_response_stream(
                modelId=model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(body),
            )

            stop_reason = "unknown"
            chunk_count = 0
            total_chars = 0

            for event in response["body"]:
                if "chunk" not in event:
                    for key in _STREAM_ERROR_KEYS:
                        if key in event:
                            err_msg = event[key].get("message", str(event[key]))
                            logger.error(
                                "Bedrock stream error [%s] model=%s: %s: %s",
                                tool,
                                model_id,
                                key,
                                err_msg,
                            )
                            raise ProviderError(
                                ErrorCode.TRANSPORT_ERROR,
                                f"Bedrock stream error ({key}): {err_msg}",
                                model_id=model_id,
                            )
                    logger.warning(
                        "Unknown non-chunk event in stream: %s", list(event.keys())
                    )
                    continue

                try:
                    chunk = json.loads(event["chunk"]["bytes"])
                except (json.JSONDecodeError, KeyError) as parse_err:
                    logger.warning("Malformed stream chunk, skipping: %s", parse_err)
                    continue

                chunk_type = chunk.get("type", "")

                if chunk_type == "content_block_delta":
                    delta = chunk.get("delta", {})
                    if delta.get("type") == "text_delta":
                        text = delta.get("text", "")
                        text_chunks.append(text)
                        total_chars += len(text)
                        chunk_count += 1

                        if chunk_count % 20 == 0:
                            elapsed = time.monotonic() - start
                            msg = f"{model_id}: streaming {total_chars} chars, {elapsed:.0f}s"
                            logger.info("  [%s] %s", tool, msg)
                            _report_progress(on_progress, total_chars, elapsed, msg)

                elif chunk_type == "message_delta":
                    stop_reason = chunk.get("delta", {}).get("stop_reason", "unknown")
                    output_tokens = chunk.get("usage", {}).get("output_tokens", 0)

                elif chunk_type == "message_start":
                    input_tokens = (
                        chunk.get("message", {}).get("usage", {}).get("input_tokens", 0)
                    )

            full_text = "".join(text_chunks)
            latency_ms = int((time.monotonic() - start) * 1000)

            if total_chars > 0:
                elapsed = time.monotonic() - start
                _report_progress(
                    on_progress,
                    total_chars,
                    elapsed,
                    f"{model_id}: complete {total_chars} chars, {elapsed:.0f}s",
                )

            _log_usage(
                model_id=model_id,
                tool=tool,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                latency_ms=latency_ms,
            )

            if stop_reason == "max_tokens":
                logger.warning(
                    "Response truncated (hit max_tokens=%d) model=%s. "
                    "Output may be incomplete.",
                    self.config.max_tokens,
                    model_id,
                )

            if not full_text:
                logger.warning("Empty response from Bedrock stream model=%s", model_id)
            return full_text

        except ProviderError:
            raise
        except Exception as e:
            latency_ms = int((time.monotonic() - start) * 1000)
            partial = "".join(text_chunks)
            if partial:
                logger.error(
                    "Bedrock stream failed after %dms with %d chars received: %s",
                    latency_ms,
                    len(partial),
                    e,
                )
                _log_usage(
                    model_id=model_id,
                    tool=tool,
                    input_tokens=input_tokens,
                    output_tokens=output_tokens,
                    latency_ms=latency_ms,
                )
                return partial
            logger.error(
                "Bedrock inference failed after %dms model=%s: %s", latency_ms, model_id, e
            )
            raise ProviderError(
                ErrorCode.TRANSPORT_ERROR,
                f"Bedrock inference failed: {e}",
                model_id=model_id,
            ) from e


def _report_progress(
    on_progress: ProgressCallback | None, chars: int, elapsed: float, message: str
) -> None:
    if on_progress is None:
        return
    try:
        on_progress(chars, elapsed, message)
    except Exception as cb_err:
        logger.warning("on_progress callback raised: %s", cb_err)
