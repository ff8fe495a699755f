"""Configuration for the form autofiller."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from a .env file when present.
load_dotenv()

PRESETS_PATH = Path(os.getenv("AUTOFILL_PRESETS", "presets.json"))

USER_DATA_DIR = Path("profiles/default")

OPENAI_MODEL = os.getenv("AUTOFILL_OPENAI_MODEL", "gpt-4o-mini")

DEFAULT_BROWSER = os.getenv("AUTOFILL_BROWSER", "chromium").lower()

PLAYWRIGHT_CHANNEL = os.getenv("PLAYWRIGHT_CHANNEL")

PLAYWRIGHT_EXECUTABLE = os.getenv("PLAYWRIGHT_EXECUTABLE")

# Google Forms render every question as a role=listitem container.
STRUCTURED_FORM_MARKER = "docs.google.com/forms"

DROPDOWN_RENDER_DELAY_MS = 300

AUTO_FILL_DELAY_MS = 1500

FIELD_WAIT_TIMEOUT_MS = 15000

PRESET_POLL_INTERVAL_S = 1.0

CONTEXT_SEARCH_DEPTH = 5


def get_openai_api_key() -> str | None:
    """Return the OpenAI API key or None when it is not configured."""
    return os.getenv("OPENAI_API_KEY") or None


def is_structured_form(url: str | None) -> bool:
    return STRUCTURED_FORM_MARKER in (url or "")

LOG_DIR = Path(os.getenv("AUTOFILL_LOG_DIR", "logs"))

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that log every HTTP request at INFO.
QUIET_LOGGERS = ("httpx", "openai")
