import os
from pathlib import Path
import dotenv
import logging

dotenv.load_dotenv()

GITHUB_API_URL = os.environ.get("GITHUB_API_URL", "https://api.github.com")
GITHUB_TOKEN = os.environ.get("GITHUB_TOKEN")
GITHUB_LOGIN = os.environ.get("GITHUB_LOGIN")

GITHUB_EMAILS = [
    e.strip() for e in os.environ.get("GITHUB_EMAILS", "").split(",") if e.strip()
]

SETTINGS_DIR = os.environ.get(
    "SETTINGS_DIR", str(Path.home() / ".cache" / "tripwire")
)

OVERRIDE_LOGGING = logging.getLevelName(os.environ.get("OVERRIDE_LOGGING", "WARNING"))

TELEGRAM_TOKEN = os.environ.get("TELEGRAM_TOKEN")
TELEGRAM_CHAT_ID = os.environ.get("TELEGRAM_CHAT_ID")

HTTP_CACHE_SIZE = int(os.environ.get("HTTP_CACHE_SIZE", 500))

NOTIFIER = os.environ.get("NOTIFIER", "log")
