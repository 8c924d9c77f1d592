"""Tests for tool execution policies."""

from llm_orchestrator.core.tool_executor import (
    CANCELLED_RESULT,
    CallableToolExecutor,
    ToolDispatcher,
    needs_confirmation,
    should_continue,
)
from llm_orchestrator.types import AgentConfig, AgentState, ToolCall

CONFIRMING = AgentConfig(require_confirmation=True)


class TestNeedsConfirmation:
    def test_disabled_policy(self):
        assert not needs_confirmation("delete_file", {"path": "x"}, AgentConfig())

    def test_dangerous_operation(self):
        assert needs_confirmation("git_push", {}, CONFIRMING)

    def test_large_edit(self):
        assert needs_confirmation("write_file", {"content": "x" * 5001}, CONFIRMING)
        assert not needs_confirmation("write_file", {"content": "x" * 10}, CONFIRMING)

    def test_destructive_command(self):
        config = AgentConfig(require_confirmation=True, dangerous_operations=())
        assert needs_confirmation("run_terminal_command", {"command": "rm -rf build"}, config)
        assert needs_confirmation("run_terminal_command", {"command": "psql -c 'DROP TABLE users'"}, config)
        assert not needs_confirmation("run_terminal_command", {"command": "ls -la"}, config)


class TestShouldContinue:
    def test_fresh_state(self):
        assert should_continue(AgentState(), AgentConfig()).proceed

    def test_error_with_stop_on_error(self):
        state = AgentState(error="boom")
        check = should_continue(state, AgentConfig(stop_on_error=True))
        assert not check.proceed
        assert check.reason == "Error: boom"

    def test_error_without_stop_on_error(self):
        assert should_continue(AgentState(error="boom"), AgentConfig()).proceed

    def test_complete(self):
        check = should_continue(AgentState(is_complete=True), AgentConfig())
        assert check.reason == "Task completed"


class TestCallableToolExecutor:
    async def test_sync_and_async_tools(self):
        async def fetch(url):
            return f"<html>{url}</html>"

        executor = CallableToolExecutor({"add": lambda a, b: a + b, "fetch": fetch})
        assert await executor.execute("add", {"a": 1, "b": 2}) == "3"
        assert await executor.execute("fetch", {"url": "x"}) == "<html>x</html>"

    async def test_unknown_tool(self):
        assert await CallableToolExecutor({}).execute("nope", {}) == "Tool 'nope' not found"


class TestToolDispatcher:
    async def test_runs_and_times_call(self):
        dispatcher = ToolDispatcher(CallableToolExecutor({"echo": lambda text: text}), AgentConfig())
        outcome = await dispatcher.dispatch(ToolCall(id="1", name="echo", input={"text": "hi"}))
        assert outcome.executed
        assert outcome.result == "hi"
        assert outcome.duration_ms is not None

    async def test_no_confirmer_cancels(self):
        dispatcher = ToolDispatcher(CallableToolExecutor({"delete_file": lambda path: "gone"}), CONFIRMING)
        outcome = await dispatcher.dispatch(ToolCall(id="1", name="delete_file", input={"path": "x"}))
        assert not outcome.executed
        assert outcome.result == CANCELLED_RESULT

    async def test_approved_call_runs(self):
        seen = []

        async def approve(tool_call):
            seen.append(tool_call.name)
            return True

        dispatcher = ToolDispatcher(
            CallableToolExecutor({"delete_file": lambda path: "gone"}), CONFIRMING, confirm=approve
        )
        outcome = await dispatcher.dispatch(ToolCall(id="1", name="delete_file", input={"path": "x"}))
        assert outcome.result == "gone"
        assert seen == ["delete_file"]

    async def test_executor_exception_becomes_text(self):
        class Exploding:
            async def execute(self, name, input):
                raise RuntimeError("kaboom")

        dispatcher = ToolDispatcher(Exploding(), AgentConfig())
        outcome = await dispatcher.dispatch(ToolCall(id="1", name="x", input={}))
        assert outcome.executed
        assert outcome.result == "Tool execution failed: kaboom"
