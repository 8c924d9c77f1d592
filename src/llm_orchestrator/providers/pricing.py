"""Model pricing in USD per million tokens (input/output)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ModelPrice:
    input: float
    output: float

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        return (input_tokens * self.input + output_tokens * self.output) / 1_000_000


MODEL_PRICING: dict[str, ModelPrice] = {
    # anthropic
    "claude-opus-4-20250514": ModelPrice(15, 75),
    "claude-sonnet-4-20250514": ModelPrice(3, 15),
    "claude-3-5-sonnet-20241022": ModelPrice(3, 15),
    "claude-3-haiku-20240307": ModelPrice(0.25, 1.25),
    "claude-3-5-haiku-20241022": ModelPrice(0.8, 4),
    # openai
    "gpt-4o": ModelPrice(2.5, 10),
    "gpt-4o-mini": ModelPrice(0.15, 0.6),
    "gpt-4-turbo": ModelPrice(10, 30),
    "gpt-3.5-turbo": ModelPrice(0.5, 1.5),
    # groq
    "llama-3.1-70b-versatile": ModelPrice(0.59, 0.79),
    "llama-3.1-8b-instant": ModelPrice(0.05, 0.08),
    "mixtral-8x7b-32768": ModelPrice(0.24, 0.24),
    # together
    "meta-llama/Meta-Llama-3.1-70B-Instruct-Turbo": ModelPrice(0.88, 0.88),
    # google
    "gemini-2.0-flash": ModelPrice(0.1, 0.4),
    "gemini-1.5-pro-latest": ModelPrice(1.25, 5),
    # ollama (local, free)
    "llama3.2": ModelPrice(0, 0),
    "codellama": ModelPrice(0, 0),
    "deepseek-coder-v2": ModelPrice(0, 0),
    "qwen2.5-coder": ModelPrice(0, 0),
    "mistral": ModelPrice(0, 0),
}

# reference model for savings estimates and the fallback route
REFERENCE_MODEL = "claude-sonnet-4-20250514"


def get_price(model: str, default: ModelPrice) -> ModelPrice:
    """Return the price of a model, or the given default when unknown."""
    return MODEL_PRICING.get(model, default)
