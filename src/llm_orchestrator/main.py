"""Main entry point for the llm-orchestrator CLI.

Sub-commands:
    classify  show how a prompt would be classified and routed
    ask       run the agent loop on one message (no tools)
    collab    run a dual-agent collaboration
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv

from .classifier import TaskClassifier
from .config import get_settings
from .engine import Engine
from .exceptions import AgentError, AuthenticationError, ProviderUnavailableError, RateLimitError
from .logging import setup_logging
from .multi_agent import DEFAULT_CONFIG, DUAL_AGENT_PRESETS, CollaborationMode, get_preset
from .types import ProviderType


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llm-orchestrator",
        description="Multi-provider LLM orchestration",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (also settable via LLM_ORCHESTRATOR_LOG_LEVEL env var)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    classify = subparsers.add_parser("classify", help="Classify a prompt and show the routing decision")
    classify.add_argument("prompt", help="Text to classify")
    classify.add_argument(
        "--no-local",
        action="store_true",
        help="Do not recommend local models"
    )

    ask = subparsers.add_parser("ask", help="Run the agent loop on a message")
    ask.add_argument("message", help="The user's message")
    ask.add_argument(
        "--thinking",
        action="store_true",
        help="Ask for <thinking> blocks and print them"
    )
    ask.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Bound on loop iterations (default: 25)"
    )

    collab = subparsers.add_parser("collab", help="Run a dual-agent collaboration")
    collab.add_argument("query", help="The query to collaborate on")
    collab.add_argument(
        "--mode",
        choices=[mode.value for mode in CollaborationMode],
        help="Collaboration mode (overrides the preset's mode)"
    )
    collab.add_argument(
        "--preset",
        choices=list(DUAL_AGENT_PRESETS),
        help="Preset configuration"
    )
    collab.add_argument("--context", help="Optional context for the query")
    collab.add_argument(
        "--show-thinking",
        action="store_true",
        help="Print the transcript of every step"
    )
    return parser


def run_classify(args: argparse.Namespace) -> None:
    settings = get_settings()
    classifier = TaskClassifier(use_local_models=settings.use_local_models and not args.no_local)
    result = classifier.classify(args.prompt)

    print(f"Category:   {result.category.value}")
    print(f"Complexity: {result.complexity.value} (score {result.score})")
    print(f"Confidence: {result.confidence:.2f}")
    print(f"Suggested:  {result.suggested_provider.value} / {result.suggested_model}")
    print(f"Reasoning:  {result.reasoning}")


async def run_ask(args: argparse.Namespace) -> None:
    async with Engine.from_settings() as engine:
        agent = engine.agent()
        response = await agent.run(
            args.message,
            enable_thinking=args.thinking,
            max_iterations=args.max_iterations,
        )

        if response.thinking:
            print(response.thinking)
            print("-" * 50)
        print(response.content)
        if response.state.error:
            print(f"\nError: {response.state.error}", file=sys.stderr)
        print(f"\n[{response.state.stop_reason}] tokens: {response.state.total_tokens}, "
              f"cost: ${engine.manager.total_cost:.4f}")


async def run_collab(args: argparse.Namespace) -> None:
    config = get_preset(args.preset) if args.preset else DEFAULT_CONFIG
    if args.mode:
        config = config.with_overrides(mode=args.mode)

    async with Engine.from_settings() as engine:
        orchestrator = engine.orchestrator(config)
        result = await orchestrator.execute(args.query, context=args.context)

        if result.error:
            print(f"Error: {result.error}", file=sys.stderr)
            sys.exit(1)

        if args.show_thinking and result.thinking:
            print(result.thinking)
            print("-" * 50)
        print(result.final_response)
        print(f"\n[{result.mode.value}] iterations: {result.iterations}, "
              f"consensus: {result.consensus_reached}, confidence: {result.confidence:.2f}, "
              f"tokens: {result.total_tokens}, cost: ${result.total_cost:.4f}")


def main():
    """Main entry point for the llm-orchestrator CLI."""
    load_dotenv()
    args = build_parser().parse_args()

    # setup logging early
    setup_logging(args.log_level)

    try:
        if args.command == "classify":
            run_classify(args)
        elif args.command == "ask":
            asyncio.run(run_ask(args))
        elif args.command == "collab":
            asyncio.run(run_collab(args))
    except AuthenticationError as e:
        print(f"Authentication error: {e}")
        print("Please check your API key.")
        sys.exit(1)
    except RateLimitError as e:
        print(f"Rate limit exceeded: {e}")
        sys.exit(1)
    except ProviderUnavailableError as e:
        print(f"Provider unavailable: {e}")
        print(f"Configure an API key for one of: {', '.join(p.value for p in ProviderType)}")
        sys.exit(1)
    except AgentError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
