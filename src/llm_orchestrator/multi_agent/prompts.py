"""Prompts for the multi-agent orchestrator.

This module contains the default role prompts and the user-turn templates
of each collaboration protocol.
"""

GENERATOR_PROMPT = """You are a Generator agent. Your role is to:
1. Analyze the user's request thoroughly
2. Generate a comprehensive, well-reasoned response
3. Show your reasoning step by step
4. Be creative but accurate

Focus on producing the best possible initial response."""

CRITIC_PROMPT = """You are a Critic agent. Your role is to:
1. Carefully review the Generator's response
2. Identify any errors, gaps, or areas for improvement
3. Provide specific, actionable feedback
4. Suggest concrete improvements

Be constructive but thorough. If the response is good, acknowledge it.
Format your response as:
STRENGTHS: [list strengths]
WEAKNESSES: [list issues]
SUGGESTIONS: [specific improvements]
REVISED: [improved version if needed]"""

VERIFIER_PROMPT = """You are a Verifier agent. Your role is to:
1. Check the logical consistency of the response
2. Verify any facts or claims made
3. Ensure the response fully addresses the request
4. Rate confidence in the response (0-100%)

Format: VERIFIED: yes/no | CONFIDENCE: X% | ISSUES: [list any issues]"""

SYNTHESIZER_PROMPT = """You are a Synthesizer agent. Your role is to:
1. Combine multiple responses into one optimal answer
2. Take the best elements from each response
3. Resolve any contradictions
4. Produce a final, polished response

Your output should be the definitive answer incorporating all valuable insights."""

JUDGE_PROMPT = (
    "You are a fair judge. Compare two responses and select the better one. "
    "Explain your reasoning briefly, then output WINNER: 1 or WINNER: 2"
)

ENSEMBLE_DEFAULT_PROMPT = "Generate the best possible response."

DEBATE_OPENING_PREFIX = "You are debating agent. Take a clear position and defend it with reasoning. "
DEBATE_RESPONSE_PREFIX = (
    "You are debating agent. Consider the other perspective and provide your analysis. "
)

BREAKDOWN_SYSTEM_PROMPT = (
    "Break down complex problems into steps. Think carefully about what needs to be done."
)
SOLVE_SYSTEM_PROMPT = "Solve problems methodically, showing your reasoning at each step."


# ==================== user turn templates ====================

def with_context(query: str, context: str | None, template: str = "{context}\n\n{query}") -> str:
    """Prefix the query with context when there is any."""
    if not context:
        return query
    return template.format(context=context, query=query)


def review_request(query: str, response: str) -> str:
    return f"Original query: {query}\n\nResponse to review:\n{response}"


def refine_request(feedback: str) -> str:
    return f"Please refine your response based on this feedback:\n{feedback}"


DEBATE_OPENING_QUESTION = "What is your perspective? Do you agree or disagree? Why?"


def debate_reply_request(other: str) -> str:
    return (
        f"The other agent responds: {other}\n\n"
        "Do you want to update your position? Have you reached agreement?"
    )


def synthesis_request(query: str, position1: str, position2: str) -> str:
    return (
        f"Query: {query}\n\n"
        f"Agent 1's final position: {position1}\n\n"
        f"Agent 2's final position: {position2}\n\n"
        "Synthesize the best answer from both perspectives."
    )


def judge_request(query: str, response1: str, response2: str) -> str:
    return (
        f"Query: {query}\n\n"
        f"Response 1:\n{response1}\n\n"
        f"Response 2:\n{response2}\n\n"
        "Which response is better and why?"
    )


def breakdown_request(query: str, context: str | None) -> str:
    context_line = f"\nContext: {context}" if context else ""
    return (
        f"Let's solve this step by step.\n\nProblem: {query}\n{context_line}\n\n"
        "First, break this down into smaller steps. What do we need to figure out?"
    )


SOLVE_REQUEST = "Now solve each step you identified. Show your work and reasoning clearly."


def verification_request(query: str, solution: str) -> str:
    return (
        f"Original problem: {query}\n\nProposed solution:\n{solution}\n\n"
        "Verify this solution. Check the logic, look for errors, and rate your confidence."
    )


def fix_request(verification: str) -> str:
    return (
        f"The verifier found issues:\n{verification}\n\n"
        "Please fix these issues and provide a corrected solution."
    )
