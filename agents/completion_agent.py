from functools import lru_cache

from pydantic_ai import Agent
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.providers.google import GoogleProvider
from configurations.config import GEMINI_MODEL_NAME, get_env_var


# Single-shot text completion agent.
# Everything the model needs (capabilities, prior turn, rules) is embedded
# by the caller in the prompt; no history is passed here.
@lru_cache(maxsize=1)
def get_completion_agent() -> Agent:
    provider = GoogleProvider(api_key=get_env_var("GOOGLE_API_KEY"))
    model = GoogleModel(GEMINI_MODEL_NAME, provider=provider)
    return Agent(
        model,
        system_prompt=(
            "You are the language core of a personal assistant bot that manages "
            "a household budget and plans trips. Follow the instructions in each "
            "message exactly. When asked for JSON, return ONLY valid JSON."
        ),
        output_type=str,
    )


async def complete_prompt(prompt: str) -> str:
    """
    Run one completion and return the raw text.
    Errors propagate; callers decide on their own fallback.
    """
    result = await get_completion_agent().run(prompt)
    if hasattr(result, "output"):
        return result.output
    return str(result)
