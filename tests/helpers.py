"""Shared fakes and sample inputs for debugger tests."""

import json
import time

from debugger.errors import ProviderError
from debugger.models import ErrorCode


MODEL_IDS = ("model-a", "model-b", "model-c")

OFF_BY_ONE_JS = """function sum(arr) {
    let total = 0;
    for (let i = 0; i <= arr.length; i++) {
        total += arr[i];
    }
    return total;
}"""


def provider_json(**overrides) -> str:
    """A well-formed provider reply wrapped in prose."""
    data = {
        "explanation": "Loop reads past the end of the array.",
        "fixedCode": "for (let i = 0; i < arr.length; i++) {}",
        "fixExplanation": "Use an exclusive bound.",
        "severity": "high",
        "tips": ["Use for...of"],
        "complexity": {"time": "O(n)", "space": "O(1)", "improvement": "none"},
        "security": "No issues.",
    }
    data.update(overrides)
    return f"Here is my analysis:\n```json\n{json.dumps(data)}\n```\nHope this helps."


class FakeCompletion:
    """Stands in for BedrockCompletion; replies are keyed by model id.

    A reply may be a string (returned), an exception (raised) or a float
    (seconds to sleep before returning a valid reply).
    """

    def __init__(self, replies: dict):
        self.replies = replies
        self.calls: list[str] = []

    def complete(self, model_id, system_prompt, user_message, tool="analyze_code", on_progress=None):
        self.calls.append(model_id)
        reply = self.replies[model_id]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, float):
            time.sleep(reply)
            return provider_json()
        return reply


def transport_error(model_id: str) -> ProviderError:
    return ProviderError(ErrorCode.TRANSPORT_ERROR, "connection refused", model_id=model_id)
