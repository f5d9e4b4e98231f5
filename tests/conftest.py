"""Pytest configuration and fixtures for debugger tests."""

import logging

import pytest

from debugger import llm
from debugger.config import AnalyzerConfig

from helpers import MODEL_IDS


@pytest.fixture
def config() -> AnalyzerConfig:
    """Configuration with a credential and three models."""
    return AnalyzerConfig(model_ids=MODEL_IDS, credential="test-key", request_timeout=5.0)


@pytest.fixture
def config_without_credential() -> AnalyzerConfig:
    return AnalyzerConfig(model_ids=MODEL_IDS, credential=None)


@pytest.fixture(autouse=True)
def quiet_usage_log(monkeypatch):
    """Keep the Bedrock usage log out of the working directory."""
    usage = logging.getLogger("tests.usage")
    usage.propagate = False
    monkeypatch.setattr(llm, "_usage_logger", usage)
