import atexit
import os
import logging
import logging.config
from pathlib import Path

# Base Paths
APP_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = APP_DIR.parent


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


# Logging Setup
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_TO_FILE = _env_bool("LOG_TO_FILE", True)
LOG_FILE_PATH = os.getenv(
    "LOG_FILE_PATH",
    str((PROJECT_ROOT / "logs" / "combined.log").resolve()),
)
LOG_ERROR_FILE_PATH = os.getenv(
    "LOG_ERROR_FILE_PATH",
    str(Path(LOG_FILE_PATH).with_name("error.log")),
)

LOG_HANDLERS = {
    "console": {
        "class": "logging.StreamHandler",
        "level": LOG_LEVEL,
        "formatter": "standard",
        "stream": "ext://sys.stdout",
    },
}

if LOG_TO_FILE:
    Path(LOG_FILE_PATH).parent.mkdir(parents=True, exist_ok=True)
    Path(LOG_ERROR_FILE_PATH).parent.mkdir(parents=True, exist_ok=True)
    LOG_HANDLERS["file"] = {
        "class": "logging.handlers.RotatingFileHandler",
        "level": LOG_LEVEL,
        "formatter": "standard",
        "filename": LOG_FILE_PATH,
        "maxBytes": 5 * 1024 * 1024,  # 5 MB
        "backupCount": 5,
        "encoding": "utf8",
        "delay": True,
    }
    LOG_HANDLERS["error_file"] = {
        "class": "logging.handlers.RotatingFileHandler",
        "level": "ERROR",
        "formatter": "standard",
        "filename": LOG_ERROR_FILE_PATH,
        "maxBytes": 5 * 1024 * 1024,  # 5 MB
        "backupCount": 5,
        "encoding": "utf8",
        "delay": True,
    }

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": LOG_FORMAT,
            "datefmt": LOG_DATE_FORMAT,
        }
    },
    "handlers": {
        **LOG_HANDLERS,
        # Sink I/O runs on the listener thread; records keep their call-time timestamps.
        "queue": {
            "class": "logging.handlers.QueueHandler",
            "handlers": list(LOG_HANDLERS),
            "respect_handler_level": True,
        },
    },
    "loggers": {
        "streamguard": {
            "handlers": ["queue"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "uvicorn.error": {"level": "INFO"},
        "uvicorn.access": {"level": "INFO"},
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
}

logging.config.dictConfig(LOGGING_CONFIG)
logger = logging.getLogger("streamguard")

_queue_handler = logging.getHandlerByName("queue")
if _queue_handler is not None and _queue_handler.listener is not None:
    _queue_handler.listener.start()
    atexit.register(_queue_handler.listener.stop)


# -----------------------------------------------------------------------------
# Security Configuration
# -----------------------------------------------------------------------------

# Rate limiting
RATE_LIMIT_WINDOW_MS = int(os.getenv("RATE_LIMIT_WINDOW_MS", "900000"))  # 15 minutes
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))  # requests per window
RATE_LIMIT_CLEANUP_INTERVAL = int(os.getenv("RATE_LIMIT_CLEANUP_INTERVAL", "0"))  # 0 disables eviction
TRUST_PROXY_HEADERS = _env_bool("TRUST_PROXY_HEADERS", False)

# Untrusted input limits
MAX_URL_LENGTH = int(os.getenv("MAX_URL_LENGTH", "2048"))
MAX_CONTENT_TYPE_LENGTH = int(os.getenv("MAX_CONTENT_TYPE_LENGTH", "100"))
MAX_METADATA_STRING_LENGTH = int(os.getenv("MAX_METADATA_STRING_LENGTH", "10000"))
MAX_STREAMING_SOURCES = int(os.getenv("MAX_STREAMING_SOURCES", "50"))
MAX_SUBTITLE_SOURCES = int(os.getenv("MAX_SUBTITLE_SOURCES", "20"))

# Paths that bypass rate limiting
RATE_LIMIT_EXEMPT_PATHS = _split_csv(os.getenv("RATE_LIMIT_EXEMPT_PATHS", "/health,/healthz"))

# Environment
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
IS_PRODUCTION = ENVIRONMENT == "production"
DEBUG = not IS_PRODUCTION
