import os
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()

def get_env_var(name: str) -> str:
    """Get environment variable or raise a clear error if missing."""
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"❌ Missing required environment variable: {name}\n"
            f"👉 Did you copy .env.example to .env and fill in your keys?"
        )
    return value

# LLM (read lazily through get_env_var when the model is built)
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-1.5-flash")

# Optional vars (with defaults)
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
PORT = int(os.getenv("PORT", "8000"))

# Routing
DEFAULT_AGENT = os.getenv("DEFAULT_AGENT", "budget")
SWITCH_CONFIDENCE_THRESHOLD = float(os.getenv("SWITCH_CONFIDENCE_THRESHOLD", "0.9"))

# Approval threshold, in major currency units
APPROVAL_THRESHOLD = os.getenv("APPROVAL_THRESHOLD", "150")

# Windows (seconds)
CONTEXT_FRESHNESS_SECONDS = int(os.getenv("CONTEXT_FRESHNESS_SECONDS", str(5 * 60)))
EXTRACTION_TTL_SECONDS = int(os.getenv("EXTRACTION_TTL_SECONDS", str(30 * 60)))
PENDING_CONFIRMATION_TTL_SECONDS = int(os.getenv("PENDING_CONFIRMATION_TTL_SECONDS", str(5 * 60)))
