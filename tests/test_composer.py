"""Tests for report composition."""

import pytest

from debugger.composer import (
    DEFAULT_EXPLANATION,
    DEFAULT_SECURITY,
    DEFAULT_TIPS,
    compose,
    compose_failure,
    new_analysis_id,
)
from debugger.errors import MalformedReportError
from debugger.models import (
    AnalysisMode,
    AnalysisReport,
    AnalysisRequest,
    Complexity,
    ErrorCode,
    Severity,
)


REQUEST = AnalysisRequest(code="let total = price * qty;", language="javascript")


def _compose(report, **kwargs):
    return compose(report, REQUEST, mode=AnalysisMode.PROVIDER, processing_time_ms=12, **kwargs)


class TestBackfill:
    def test_empty_tips_replaced(self):
        result = _compose(AnalysisReport(severity=Severity.LOW, tips=[]))
        assert result.report.tips == list(DEFAULT_TIPS)

    def test_blank_tips_dropped(self):
        result = _compose(AnalysisReport(severity=Severity.LOW, tips=["", "  ", "Real tip"]))
        assert result.report.tips == ["Real tip"]

    def test_empty_text_fields_defaulted(self):
        result = _compose(AnalysisReport(severity=Severity.LOW))
        assert result.report.explanation == DEFAULT_EXPLANATION
        assert result.report.fix_explanation
        assert result.report.security == DEFAULT_SECURITY

    def test_empty_fixed_code_is_original(self):
        result = _compose(AnalysisReport(severity=Severity.LOW, fixed_code="  "))
        assert result.report.fixed_code == REQUEST.code

    def test_partial_complexity_filled(self):
        report = AnalysisReport(severity=Severity.LOW, complexity=Complexity(time="O(n)"))
        complexity = _compose(report).report.complexity
        assert complexity.time == "O(n)"
        assert complexity.space and complexity.improvement

    def test_absent_complexity_stays_absent(self):
        result = _compose(AnalysisReport(severity=Severity.LOW))
        assert "complexity" not in result.to_dict()

    def test_source_report_not_mutated(self):
        report = AnalysisReport(severity=Severity.LOW, tips=[])
        _compose(report)
        assert report.tips == []


class TestMetadata:
    def test_fields_stamped(self):
        result = _compose(AnalysisReport(severity=Severity.HIGH), confidence=0.92, model="m", attempts=2)
        meta = result.to_dict()["metadata"]
        assert meta["processingTimeMs"] == 12
        assert meta["codeSize"] == len(REQUEST.code)
        assert meta["language"] == "javascript"
        assert meta["mode"] == "provider"
        assert meta["confidence"] == 0.92
        assert meta["model"] == "m"
        assert meta["attempts"] == 2
        assert meta["analysisId"].startswith("ANALYSIS_")
        assert meta["timestamp"]

    def test_result_shape(self):
        data = _compose(AnalysisReport(severity=Severity.HIGH, fixed_code="x")).to_dict()
        assert data["success"] is True
        assert data["severity"] == "high"
        assert data["fixedCode"] == "x"
        assert "fixExplanation" in data

    def test_ids_unique(self):
        ids = {new_analysis_id() for _ in range(1000)}
        assert len(ids) == 1000


class TestFailures:
    @pytest.mark.parametrize("severity", [None, "extreme"])
    def test_invalid_severity_rejected(self, severity):
        with pytest.raises(MalformedReportError) as exc:
            _compose(AnalysisReport(severity=severity))
        assert exc.value.code == ErrorCode.MALFORMED_REPORT

    def test_failure_with_reference(self):
        data = compose_failure(ErrorCode.ANALYSIS_FAILED, "failed", with_reference=True).to_dict()
        assert data["success"] is False
        assert data["error"] == "ANALYSIS_FAILED"
        assert data["reference"].startswith("ERR_")

    def test_validation_failure_has_no_reference(self):
        data = compose_failure(ErrorCode.CODE_REQUIRED, "required").to_dict()
        assert data["error"] == "CODE_REQUIRED"
        assert "reference" not in data
