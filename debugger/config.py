"""Configuration for the code debugger analysis service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import boto3
from botocore.exceptions import BotoCoreError

logger = logging.getLogger(__name__)

# ── Input Limits ─────────────────────────────────────────────────────────────
MAX_CODE_LENGTH = 15_000

# Minimum trimmed length per strictness tier
MIN_CODE_LENGTH_BY_TIER = {
    "strict": 10,
    "lenient": 5,
}
DEFAULT_STRICTNESS = "strict"

DEFAULT_LANGUAGE = "javascript"
DEFAULT_ANALYSIS_DEPTH = "comprehensive"

SUPPORTED_LANGUAGES = (
    "javascript",
    "typescript",
    "python",
    "java",
    "c",
    "cpp",
    "csharp",
    "go",
    "rust",
    "ruby",
    "php",
    "kotlin",
    "swift",
)

# ── Model Priority ───────────────────────────────────────────────────────────
# Tried in order; the first model that returns a usable report wins.
MODEL_IDS = (
    "eu.anthropic.claude-sonnet-4-6",
    "eu.anthropic.claude-opus-4-6-v1",
    "eu.anthropic.claude-3-haiku-20240307-v1:0",
)

# Reported for provider-sourced analyses
PROVIDER_CONFIDENCE = 0.92

# Overall budget for one request, provider attempts included
REQUEST_TIMEOUT_SECONDS = 45.0

# ── Bedrock Config ───────────────────────────────────────────────────────────
BEDROCK_PROFILE = "bedrock"
BEDROCK_REGION = "eu-west-1"
BEDROCK_MAX_TOKENS = 4096
BEDROCK_TEMPERATURE = 0.2

# Bedrock API key env var read by botocore itself
CREDENTIAL_ENV_VAR = "AWS_BEARER_TOKEN_BEDROCK"
CREDENTIAL_PLACEHOLDER = "your_bedrock_api_key_here"

# ── Server Config ────────────────────────────────────────────────────────────
SERVER_NAME = "code-debugger-mcp"
SERVER_VERSION = "1.0.0"
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 8089

# ── Usage Logging ────────────────────────────────────────────────────────────
USAGE_LOG_PATH = "usage.log"


def _resolve_profile_credential(profile: str | None, region: str) -> str | None:
    """Return the access key boto3 resolves for the profile, if any."""
    try:
        session = boto3.Session(profile_name=profile, region_name=region)
        credentials = session.get_credentials()
    except BotoCoreError as e:
        logger.info("No AWS credentials for profile=%s: %s", profile, e)
        return None
    if credentials is None:
        return None
    return credentials.access_key


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class AnalyzerConfig:
    """Process-wide settings, built once at start and read-only afterwards."""

    model_ids: tuple[str, ...] = MODEL_IDS
    credential: str | None = None
    min_code_length: int = MIN_CODE_LENGTH_BY_TIER[DEFAULT_STRICTNESS]
    max_code_length: int = MAX_CODE_LENGTH
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    provider_confidence: float = PROVIDER_CONFIDENCE
    bedrock_profile: str | None = BEDROCK_PROFILE
    bedrock_region: str = BEDROCK_REGION
    max_tokens: int = BEDROCK_MAX_TOKENS
    temperature: float = BEDROCK_TEMPERATURE
    environment: str = "development"

    @property
    def has_credential(self) -> bool:
        return bool(self.credential) and self.credential != CREDENTIAL_PLACEHOLDER

    @classmethod
    def from_env(cls) -> AnalyzerConfig:
        """Build the configuration from environment variables and AWS profile."""
        raw_models = os.environ.get("DEBUGGER_MODEL_IDS", "")
        model_ids = tuple(m.strip() for m in raw_models.split(",") if m.strip())

        tier = os.environ.get("DEBUGGER_STRICTNESS", DEFAULT_STRICTNESS).lower()
        if tier not in MIN_CODE_LENGTH_BY_TIER:
            logger.warning("Unknown strictness tier %r, using %s", tier, DEFAULT_STRICTNESS)
            tier = DEFAULT_STRICTNESS
        min_length = int(
            _env_float("DEBUGGER_MIN_CODE_LENGTH", MIN_CODE_LENGTH_BY_TIER[tier])
        )

        profile = os.environ.get("BEDROCK_PROFILE", BEDROCK_PROFILE) or None
        region = os.environ.get("BEDROCK_REGION", BEDROCK_REGION)

        credential = os.environ.get(CREDENTIAL_ENV_VAR)
        if not credential:
            credential = _resolve_profile_credential(profile, region)

        config = cls(
            model_ids=model_ids or MODEL_IDS,
            credential=credential,
            min_code_length=min_length,
            request_timeout=_env_float("DEBUGGER_TIMEOUT_SECONDS", REQUEST_TIMEOUT_SECONDS),
            bedrock_profile=profile,
            bedrock_region=region,
            environment=os.environ.get("DEBUGGER_ENV", "development"),
        )
        logger.info(
            "Config loaded: models=%s credential=%s min_length=%d timeout=%.0fs",
            ",".join(config.model_ids),
            "present" if config.has_credential else "absent",
            config.min_code_length,
            config.request_timeout,
        )
        return config
