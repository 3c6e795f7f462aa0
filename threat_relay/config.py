import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _int_env(name: str, default: int) -> int:
    try:
        value = int(os.getenv(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


# --- Gemini ---
GOOGLE_API_KEY = os.getenv("SECRET_GOOGLE_GEMINI_KEY") or os.getenv("GOOGLE_API_KEY", "")
MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.5-flash")
GEMINI_TIMEOUT_MS = _int_env("GEMINI_TIMEOUT_MS", 10000)  # default 10s
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL") or None

# --- Server ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _int_env("PORT", 3000)
MAX_BODY_BYTES = _int_env("MAX_BODY_BYTES", 20 * 1024 * 1024)  # large dataURLs
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
