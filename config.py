"""
Config for the attendance question service (Flask + OpenAI + JSON store).
Set environment variables or put them in a .env file in the project root.
"""
import os

from dotenv import load_dotenv

# Load .env from project root
_CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
_ENV_FILE = os.path.join(_CONFIG_DIR, ".env")
load_dotenv(_ENV_FILE)
load_dotenv()


def _read_openai_key_from_file():
    """Read OPENAI_API_KEY from env, else directly from the .env file."""
    key = (os.environ.get("OPENAI_API_KEY") or "").strip()
    if key and key.startswith("sk-"):
        return key
    if not os.path.isfile(_ENV_FILE):
        return ""
    try:
        with open(_ENV_FILE, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line.startswith("OPENAI_API_KEY=") and not line.startswith("OPENAI_API_KEY=#"):
                    val = line.split("=", 1)[1].strip().strip("\"'")
                    if val and val.startswith("sk-"):
                        return val
    except OSError:
        return ""
    return ""


# Flask
SECRET_KEY = os.environ.get("SECRET_KEY", "change-me-in-production-use-long-random-string")
PORT = int(os.environ.get("PORT", "3000"))

# Attendance store: JSON file with {"students": [...]}
ATTENDANCE_DB_PATH = os.environ.get(
    "ATTENDANCE_DB_PATH", os.path.join(_CONFIG_DIR, "data", "students.json")
)

# Reference zone for "today", "minggu ini", ... (WIB, Asia/Jakarta, no DST)
WIB_UTC_OFFSET_HOURS = 7


def get_openai_api_key():
    """Return API key; reload .env then read from env or .env file."""
    load_dotenv(_ENV_FILE)
    load_dotenv()
    return _read_openai_key_from_file()


OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_MAX_TOKENS = int(os.environ.get("OPENAI_MAX_TOKENS", "800"))
OPENAI_TEMPERATURE = float(os.environ.get("OPENAI_TEMPERATURE", "0.7"))

# Ask rate limits (per IP)
CHAT_RATE_LIMIT_PER_MINUTE = int(os.environ.get("CHAT_RATE_LIMIT_PER_MINUTE", "10"))
CHAT_DAILY_CAP = int(os.environ.get("CHAT_DAILY_CAP", "200"))
