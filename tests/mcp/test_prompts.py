"""Tests for prompts/list and prompts/get."""

from __future__ import annotations

from codeview.mcp_server import McpDispatcher
from tests.mcp._helpers import rpc


class TestPromptsList:
    def test_single_prompt_with_required_args(self, dispatcher: McpDispatcher) -> None:
        prompts = rpc(dispatcher, "prompts/list")["result"]["prompts"]
        assert len(prompts) == 1
        prompt = prompts[0]
        assert prompt["name"] == "codebase-tests-review"
        assert "submit-test-metadata" in prompt["description"]
        assert {(a["name"], a["required"]) for a in prompt["arguments"]} == {
            ("functionName", True),
            ("filePath", True),
        }


class TestPromptsGet:
    def test_renders_arguments_into_template(self, dispatcher: McpDispatcher) -> None:
        result = rpc(
            dispatcher,
            "prompts/get",
            params={"name": "codebase-tests-review", "arguments": {"functionName": "Add", "filePath": "pkg/calc.go"}},
        )["result"]
        message = result["messages"][0]
        assert message["role"] == "user"
        text = message["content"]["text"]
        assert "**Add**" in text
        assert "**pkg/calc.go**" in text
        assert "submit-test-metadata" in text
        assert '"sourceFile": "pkg/calc.go"' in text
        assert "coveredLines" in text
        assert "in the test file" in text

    def test_missing_argument(self, dispatcher: McpDispatcher) -> None:
        resp = rpc(
            dispatcher,
            "prompts/get",
            params={"name": "codebase-tests-review", "arguments": {"filePath": "pkg/calc.go"}},
        )
        assert resp["error"] == {"code": -32603, "message": "functionName argument is required"}

    def test_empty_argument_counts_as_missing(self, dispatcher: McpDispatcher) -> None:
        resp = rpc(
            dispatcher,
            "prompts/get",
            params={"name": "codebase-tests-review", "arguments": {"functionName": "Add", "filePath": ""}},
        )
        assert resp["error"]["message"] == "filePath argument is required"

    def test_unknown_prompt(self, dispatcher: McpDispatcher) -> None:
        resp = rpc(dispatcher, "prompts/get", params={"name": "nope"})
        assert resp["error"]["message"] == "prompt not found: nope"
