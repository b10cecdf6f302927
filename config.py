"""Application configuration loaded from the environment."""
import os
import logging
from typing import List, Mapping, Optional
from urllib.parse import quote_plus
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Searches the current directory and its parents for a .env file
load_dotenv()

DEFAULT_MONGODB_URI = "mongodb://localhost:27017"


def build_mongodb_uri(env: Optional[Mapping[str, str]] = None) -> str:
    """Return the MongoDB connection string.

    MONGODB_URI wins when set. Otherwise an Atlas style SRV URI is assembled
    from MONGO_USERNAME, MONGO_PASSWORD and MONGO_HOST.
    """
    env = os.environ if env is None else env
    uri = env.get("MONGODB_URI")
    if uri:
        return uri

    username = env.get("MONGO_USERNAME")
    password = env.get("MONGO_PASSWORD")
    host = env.get("MONGO_HOST")
    if username and password and host:
        return (
            f"mongodb+srv://{quote_plus(username)}:{quote_plus(password)}@{host}/"
            "?retryWrites=true&w=majority"
        )

    logger.warning(f"MONGODB_URI not set, falling back to {DEFAULT_MONGODB_URI}")
    return DEFAULT_MONGODB_URI


def parse_origins(raw: Optional[str]) -> List[str]:
    """Split a comma separated CORS_ORIGIN value; empty means allow all."""
    origins = [origin.strip() for origin in (raw or "").split(",") if origin.strip()]
    return origins or ["*"]


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes"}


MONGODB_URI = build_mongodb_uri()
DB_NAME = os.getenv("DB_NAME", "finance_db")
COLLECTION_NAME = os.getenv("COLLECTION_NAME", "transactions")
PORT = int(os.getenv("PORT", "3000"))
CORS_ORIGINS = parse_origins(os.getenv("CORS_ORIGIN"))

# Day boundaries for searches and the dates written to CSV exports use this zone
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")
REFERENCE_TZ = ZoneInfo(APP_TIMEZONE)

RATE_LIMIT = os.getenv("RATE_LIMIT", "100/minute")
RATE_LIMIT_ENABLED = env_flag("RATE_LIMIT_ENABLED", True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")
