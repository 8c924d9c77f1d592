import asyncio

from dotenv import load_dotenv

from llm_orchestrator import Engine, ToolDefinition
from llm_orchestrator.core.tool_executor import CallableToolExecutor
from llm_orchestrator.multi_agent import get_preset

# Load environment variables (API keys)
load_dotenv()


def multiply(a: float, b: float) -> str:
    return str(a * b)


MULTIPLY = ToolDefinition(
    name="multiply",
    description="Multiply two numbers",
    input_schema={
        "type": "object",
        "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
        "required": ["a", "b"],
    },
)


async def main():
    # 1. Build the engine from environment settings and probe the providers
    async with Engine.from_settings() as engine:
        print(f"Providers: {engine.manager.provider_names}")

        # 2. Single agent with a tool
        agent = engine.agent(
            tools=[MULTIPLY],
            executor=CallableToolExecutor({"multiply": multiply}),
        )
        response = await agent.run("What is 123 * 456?", enable_thinking=True)
        print(f"Agent: {response.content}")
        print(f"Stopped because: {response.state.stop_reason}")

        # 3. Two agents reviewing each other
        orchestrator = engine.orchestrator(get_preset("code_review"))
        result = await orchestrator.execute(
            "Review this function for bugs",
            context="def mean(xs): return sum(xs) / len(xs)",
        )
        print(f"Review ({result.mode.value}, confidence {result.confidence:.2f}):")
        print(result.final_response)

        # 4. Cost summary
        print(engine.manager.get_cost_summary())


if __name__ == "__main__":
    asyncio.run(main())
