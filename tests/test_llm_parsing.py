"""Tests for provider response parsing."""

import json

import pytest

from debugger.errors import ProviderError
from debugger.llm_parsing import extract_json_object, parse_report
from debugger.models import ErrorCode, Severity

from helpers import provider_json


class TestExtractJsonObject:
    def test_object_inside_prose(self):
        text = 'Sure! {"severity": "low"} Let me know.'
        assert extract_json_object(text) == '{"severity": "low"}'

    def test_nested_objects(self):
        text = 'x {"a": {"b": {"c": 1}}} y {"d": 2}'
        assert extract_json_object(text) == '{"a": {"b": {"c": 1}}}'

    def test_braces_inside_strings_ignored(self):
        obj = {"fixedCode": "function f() { return '}'; }", "severity": "low"}
        text = "Result: " + json.dumps(obj) + " done"
        assert json.loads(extract_json_object(text)) == obj

    def test_escaped_quotes_inside_strings(self):
        obj = {"explanation": 'say "hi" {', "severity": "low"}
        assert json.loads(extract_json_object(json.dumps(obj))) == obj

    def test_no_object(self):
        assert extract_json_object("I could not analyze this code.") is None

    def test_truncated_object(self):
        assert extract_json_object('{"explanation": "cut off') is None


class TestParseReport:
    def test_full_report(self):
        report = parse_report(provider_json())
        assert report.severity == Severity.HIGH
        assert report.tips == ["Use for...of"]
        assert report.complexity.time == "O(n)"
        assert report.security == "No issues."
        assert report.fixed_code.startswith("for (let i = 0;")

    def test_severity_case_insensitive(self):
        assert parse_report(provider_json(severity="CRITICAL")).severity == Severity.CRITICAL

    def test_tip_string_becomes_list(self):
        assert parse_report(provider_json(tips="Only one tip")).tips == ["Only one tip"]

    def test_missing_optional_fields(self):
        raw = json.dumps({"severity": "medium", "explanation": "ok"})
        report = parse_report(raw)
        assert report.complexity is None
        assert report.security is None
        assert report.tips == []

    def test_fixed_code_indentation_kept(self):
        code = "def f():\n    return 1\n"
        assert parse_report(provider_json(fixedCode=code)).fixed_code == code

    @pytest.mark.parametrize(
        "text",
        [
            "no json here",
            "{not: valid json}",
            provider_json(severity="catastrophic"),
            json.dumps({"explanation": "missing severity"}),
        ],
    )
    def test_invalid_format(self, text):
        with pytest.raises(ProviderError) as exc:
            parse_report(text)
        assert exc.value.code == ErrorCode.INVALID_RESPONSE_FORMAT
