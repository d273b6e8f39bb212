"""Global configuration values."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, str(default)))
    except ValueError:
        return default


# ============== Data directory ==============
# Mounted disk in production, ./data for local development.
DATA_DIR = Path(os.environ.get("DATA_DIR", Path(__file__).parent / "data"))
try:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
except PermissionError:
    # Local test runs may not be allowed to create /var/data.
    pass

# ============== Users / auth ==============
# Single JSON document holding every user record.
USERS_FILE = Path(os.environ.get("USERS_FILE", str(DATA_DIR / "users.json")))

# Shared secret for signing bearer tokens. JWT_SECRET is accepted for older deployments.
SESSION_SECRET = os.environ.get("SESSION_SECRET") or os.environ.get("JWT_SECRET") or "supersecretkey"
SESSION_SECRET_IS_DEFAULT = SESSION_SECRET == "supersecretkey"

# Bearer token validity (days)
SESSION_TTL_DAYS = _env_int("SESSION_TTL_DAYS", 7)

# werkzeug hashing method; the iteration count is the fixed work factor
PASSWORD_HASH_METHOD = os.environ.get("PASSWORD_HASH_METHOD", "pbkdf2:sha256:600000")

# ============== OpenAI ==============
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")

# Per-request timeout; the SDK's own retries are disabled
OPENAI_TIMEOUT_SECONDS = _env_float("OPENAI_TIMEOUT_SECONDS", 60.0)

# Recommendations: gpt-3.5-turbo has been the most stable for JSON mode
RECOMMENDATION_MODEL = os.environ.get("OPENAI_RECOMMENDATION_MODEL", "gpt-3.5-turbo")
RECOMMENDATION_TEMPERATURE = _env_float("RECOMMENDATION_TEMPERATURE", 0.4)

# "structured" (exactly 4 universities as JSON) or "narrative" (free text)
RECOMMENDATION_MODE = os.environ.get("RECOMMENDATION_MODE", "structured").strip().lower()

# Advisor cat chat
CHAT_MODEL = os.environ.get("OPENAI_CHAT_MODEL", "gpt-4")
CHAT_TEMPERATURE = _env_float("CHAT_TEMPERATURE", 0.7)

# Non-system messages kept per transcript (the system directive is always kept)
CHAT_HISTORY_MAX_MESSAGES = _env_int("CHAT_HISTORY_MAX_MESSAGES", 20)

# ============== Server ==============
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
PORT = _env_int("PORT", 10000)
