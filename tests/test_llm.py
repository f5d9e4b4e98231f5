"""Tests for the Bedrock completion client, using a fake boto3 client."""

import json

import pytest
from botocore.exceptions import ClientError

from debugger.config import AnalyzerConfig
from debugger.errors import ProviderError
from debugger.llm import BedrockCompletion
from debugger.models import ErrorCode


def _chunk(payload: dict) -> dict:
    return {"chunk": {"bytes": json.dumps(payload).encode()}}


def _text_events(*texts: str) -> list[dict]:
    events = [_chunk({"type": "message_start", "message": {"usage": {"input_tokens": 42}}})]
    for text in texts:
        events.append(
            _chunk({"type": "content_block_delta", "delta": {"type": "text_delta", "text": text}})
        )
    events.append(
        _chunk({"type": "message_delta", "delta": {"stop_reason": "end_turn"}, "usage": {"output_tokens": 7}})
    )
    return events


class FakeBedrockClient:
    def __init__(self, events=None, error: Exception | None = None):
        self.events = events or []
        self.error = error
        self.requests: list[dict] = []

    def invoke_model_with_response_stream(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return {"body": iter(self.events)}


def _completion(client) -> BedrockCompletion:
    return BedrockCompletion(AnalyzerConfig(credential="test-key"), client=client)


class TestComplete:
    def test_accumulates_stream_text(self):
        client = FakeBedrockClient(_text_events('{"severity": ', '"low"}'))
        text = _completion(client).complete("model-a", "system", "user")
        assert text == '{"severity": "low"}'

    def test_request_targets_model(self):
        client = FakeBedrockClient(_text_events("ok"))
        _completion(client).complete("model-b", "system prompt", "user message")
        request = client.requests[0]
        assert request["modelId"] == "model-b"
        body = json.loads(request["body"])
        assert body["system"] == "system prompt"
        assert body["messages"] == [{"role": "user", "content": "user message"}]

    def test_progress_reported(self):
        client = FakeBedrockClient(_text_events(*["x"] * 25))
        seen = []
        _completion(client).complete(
            "model-a", "s", "u", on_progress=lambda chars, elapsed, msg: seen.append(chars)
        )
        assert seen == [20, 25]

    def test_failing_progress_callback_ignored(self):
        def explode(chars, elapsed, msg):
            raise ValueError("ui went away")

        client = FakeBedrockClient(_text_events("done"))
        assert _completion(client).complete("model-a", "s", "u", on_progress=explode) == "done"

    def test_malformed_chunk_skipped(self):
        events = _text_events("a", "b")
        events.insert(2, {"chunk": {"bytes": b"not json"}})
        assert _completion(FakeBedrockClient(events)).complete("m", "s", "u") == "ab"


class TestErrors:
    def test_client_error_is_transport_error(self):
        error = ClientError(
            {"Error": {"Code": "ValidationException", "Message": "unknown model"}},
            "InvokeModelWithResponseStream",
        )
        with pytest.raises(ProviderError) as exc:
            _completion(FakeBedrockClient(error=error)).complete("bogus-model", "s", "u")
        assert exc.value.code == ErrorCode.TRANSPORT_ERROR
        assert exc.value.model_id == "bogus-model"

    def test_stream_error_event(self):
        events = [{"throttlingException": {"message": "slow down"}}]
        with pytest.raises(ProviderError) as exc:
            _completion(FakeBedrockClient(events)).complete("m", "s", "u")
        assert exc.value.code == ErrorCode.TRANSPORT_ERROR
        assert "slow down" in exc.value.message

    def test_partial_text_returned_on_stream_failure(self):
        def broken_stream():
            yield from _text_events('{"severity": "low"')[:2]
            raise ConnectionError("reset by peer")

        class BrokenClient(FakeBedrockClient):
            def invoke_model_with_response_stream(self, **kwargs):
                return {"body": broken_stream()}

        assert _completion(BrokenClient()).complete("m", "s", "u") == '{"severity": "low"'
