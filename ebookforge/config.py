# ebookforge/config.py
import os
from pathlib import Path

from ebookforge import __version__

SERVICE_NAME = "AI EbookForge"
APP_VERSION  = __version__

# -------- OpenAI config --------
OPENAI_API_KEY     = os.getenv("OPENAI_API_KEY", "")
OPENAI_ORG_ID      = os.getenv("OPENAI_ORG_ID", "")
OPENAI_BASE_URL    = os.getenv("OPENAI_BASE_URL", "")   # any OpenAI-compatible endpoint
OPENAI_TEXT_MODEL  = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gpt-image-1")
COVER_SIZE         = os.getenv("COVER_SIZE", "1024x1536")  # portrait; cropped to 3:4 afterwards
REQUEST_TIMEOUT    = float(os.getenv("REQUEST_TIMEOUT", "120"))

# keys typed in the browser; the worker never accepts them
ALLOW_USER_API_KEY = os.getenv("ALLOW_USER_API_KEY", "1").strip().lower() not in ("0", "false", "no", "off")

# -------- Studio sessions --------
MAX_SESSIONS         = max(1, int(os.getenv("MAX_SESSIONS", "64")))
SESSION_IDLE_SECONDS = float(os.getenv("SESSION_IDLE_SECONDS", "1800"))

# -------- Media root (worker exports) --------
DEFAULT_MEDIA = Path(__file__).resolve().parent.parent / "data"
DATA_ROOT  = Path(os.getenv("MEDIA_ROOT", str(DEFAULT_MEDIA)))
EXPORT_DIR = DATA_ROOT / "exports"

# -------- Worker --------
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# -------- Logging --------
LOG_LEVEL  = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
