"""Runtime configuration, read from the environment (and .env when present)."""

import os

from dotenv import load_dotenv

load_dotenv(override=False)


def _env_bool(key: str, default: bool = False) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes"}


DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./namematch.db")
SQL_ECHO = _env_bool("SQL_ECHO")
NAMES_FILE = os.environ.get("NAMES_FILE", "data/processed-names.json")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
JOIN_CODE_MAX_ATTEMPTS = int(os.environ.get("JOIN_CODE_MAX_ATTEMPTS", "10"))

# 0/O and 1/I are left out so codes can be read aloud
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6
PARTNER_LINK_LENGTH = 12

CATALOG_BATCH_SIZE = 500
