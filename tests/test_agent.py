"""Tests for the agent loop."""

from conftest import FakeProvider, tool_response

from llm_orchestrator.agent import AgentLoop, estimate_remaining_iterations, format_agent_state
from llm_orchestrator.core.prompt_builder import TOOL_CALLS_MARKER
from llm_orchestrator.core.tool_executor import CANCELLED_RESULT, CallableToolExecutor
from llm_orchestrator.exceptions import ProviderCallError
from llm_orchestrator.types import AgentConfig, MessageRole, StepType, ToolCall


def read_call(path: str = "a.py", call_id: str = "call_1") -> ToolCall:
    return ToolCall(id=call_id, name="read_file", input={"path": path})


class MemoryStub:
    def build_system_prompt_additions(self) -> str:
        return "\n\nRemember: tabs not spaces."


class ContextStub:
    def build_context_string(self) -> str:
        return "Open file: main.py"


def test_agent_initialization(manager):
    agent = AgentLoop(manager)
    assert agent.manager is manager
    assert agent.tools == []
    assert agent.history == []
    assert agent.config.max_iterations == 25


async def test_plain_answer_completes_in_one_iteration(manager, fake_provider):
    fake_provider.replies = ["Paris."]
    agent = AgentLoop(manager)

    response = await agent.run("Capital of France?")

    assert response.content == "Paris."
    assert response.state.is_complete
    assert response.state.stop_reason == "Task completed"
    assert [step.type for step in response.state.steps] == [StepType.RESPONSE]
    assert [m.role for m in agent.history] == [MessageRole.USER, MessageRole.ASSISTANT]
    assert response.usage.total_tokens == 150


async def test_tool_round_then_answer(manager, fake_provider, sample_tool):
    fake_provider.replies = [tool_response(read_call()), "The file defines main()."]
    executor = CallableToolExecutor({"read_file": lambda path: f"contents of {path}"})
    agent = AgentLoop(manager, tools=[sample_tool], executor=executor)

    response = await agent.run("What is in a.py?")

    assert response.content == "The file defines main()."
    assert response.tool_calls == [read_call()]
    assert [step.type for step in response.state.steps] == [
        StepType.TOOL_CALL, StepType.TOOL_RESULT, StepType.RESPONSE,
    ]
    assert response.state.steps[1].tool_result == "contents of a.py"

    # every call carries the system prompt and the full catalog
    first, second = fake_provider.requests
    assert first.messages[0].role == MessageRole.SYSTEM
    assert first.tools == [sample_tool]
    assert first.max_tokens == 8192

    assistant_turn, results_turn = second.messages[2], second.messages[3]
    assert assistant_turn.content.endswith(TOOL_CALLS_MARKER)
    assert results_turn.role == MessageRole.USER
    assert 'tool_use_id="call_1">contents of a.py' in results_turn.content


async def test_always_calling_tools_stops_at_max_iterations(manager, fake_provider):
    fake_provider.replies = [tool_response(read_call())]
    agent = AgentLoop(manager, executor=CallableToolExecutor({"read_file": lambda path: "x"}))

    response = await agent.run("loop forever")

    assert len(fake_provider.requests) == 25
    assert response.state.count_steps(StepType.TOOL_CALL) == 25
    assert not response.state.is_complete
    assert response.state.stop_reason == "Reached maximum iterations (25)"


async def test_max_iterations_argument(manager, fake_provider):
    fake_provider.replies = [tool_response(read_call())]
    agent = AgentLoop(manager)

    response = await agent.run("loop", max_iterations=3)

    assert len(fake_provider.requests) == 3
    assert response.state.stop_reason == "Reached maximum iterations (3)"


async def test_missing_executor_reports_tool_not_found(manager, fake_provider):
    fake_provider.replies = [tool_response(read_call()), "done"]
    agent = AgentLoop(manager)

    await agent.run("read it")

    results_turn = fake_provider.requests[1].messages[-1]
    assert "Tool 'read_file' not found" in results_turn.content


async def test_tool_failure_becomes_result_text(manager, fake_provider):
    def broken(path):
        raise OSError("disk on fire")

    fake_provider.replies = [tool_response(read_call()), "sorry"]
    agent = AgentLoop(manager, executor=CallableToolExecutor({"read_file": broken}))

    response = await agent.run("read it")

    assert response.state.is_complete
    assert response.state.steps[1].tool_result == "Tool execution failed: disk on fire"


async def test_provider_error_is_recorded_and_loop_continues(manager, fake_provider):
    fake_provider.replies = [ProviderCallError("overloaded"), "recovered"]
    agent = AgentLoop(manager)

    response = await agent.run("hi")

    assert response.content == "recovered"
    assert response.state.error == "overloaded"
    assert response.state.is_complete


async def test_stop_on_error(manager, fake_provider):
    fake_provider.replies = [ProviderCallError("overloaded"), "never reached"]
    agent = AgentLoop(manager, config=AgentConfig(stop_on_error=True))

    response = await agent.run("hi")

    assert len(fake_provider.requests) == 1
    assert response.state.stop_reason == "Error: overloaded"
    assert not response.state.is_complete


async def test_denied_confirmation_cancels_tool(manager, fake_provider):
    calls = []

    async def deny(tool_call):
        return False

    fake_provider.replies = [
        tool_response(ToolCall(id="c1", name="delete_file", input={"path": "x"})),
        "ok, left it alone",
    ]
    agent = AgentLoop(
        manager,
        executor=CallableToolExecutor({"delete_file": lambda path: calls.append(path)}),
        config=AgentConfig(require_confirmation=True),
        confirm=deny,
    )

    response = await agent.run("delete x")

    assert calls == []
    assert response.state.count_steps(StepType.TOOL_RESULT) == 0
    assert CANCELLED_RESULT in fake_provider.requests[1].messages[-1].content


async def test_thinking_extraction(manager, fake_provider):
    fake_provider.replies = ["<thinking>check the docs</thinking>Use asyncio.gather."]
    agent = AgentLoop(manager)

    response = await agent.run("how?", enable_thinking=True)

    assert response.content == "Use asyncio.gather."
    assert "check the docs" in response.thinking
    assert response.state.steps[0].type == StepType.THINKING
    system = fake_provider.requests[0].messages[0].content
    assert "<thinking>" in system


async def test_memory_and_context_are_included(manager, fake_provider):
    agent = AgentLoop(manager, system_prompt="Base.", memory=MemoryStub(), context=ContextStub())

    await agent.run("fix it")

    messages = fake_provider.requests[0].messages
    assert messages[0].content == "Base.\n\nRemember: tabs not spaces."
    assert messages[1].content == "Open file: main.py\n\nfix it"


async def test_history_persists_across_runs(manager, fake_provider):
    fake_provider.replies = ["first", "second"]
    agent = AgentLoop(manager)

    await agent.run("one")
    await agent.run("two")

    assert len(fake_provider.requests[1].messages) == 4
    agent.clear_history()
    assert agent.history == []
    assert agent.total_usage.total_tokens == 300


def test_configure_returns_new_config(manager):
    agent = AgentLoop(manager)
    original = agent.config
    assert agent.configure(max_iterations=5).max_iterations == 5
    assert original.max_iterations == 25


async def test_format_agent_state(manager, fake_provider):
    fake_provider.replies = [tool_response(read_call()), "done"]
    agent = AgentLoop(manager, executor=CallableToolExecutor({"read_file": lambda path: "body"}))
    response = await agent.run("read")

    text = format_agent_state(response.state)
    assert text.startswith("Agent State: Complete")
    assert "🔧 read_file" in text
    assert estimate_remaining_iterations(response.state, agent.config) == 24


async def test_uses_manager_default_provider():
    from llm_orchestrator.manager import ProviderManager
    from llm_orchestrator.types import ProviderType

    groq = FakeProvider(ProviderType.GROQ, "llama-3.1-70b-versatile", replies=["from groq"])
    manager = ProviderManager(default_provider="groq", smart_routing=False)
    manager.add_provider("groq", groq)

    response = await AgentLoop(manager).run("hi")
    assert response.content == "from groq"
