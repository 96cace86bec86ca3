"""
Configuration module for the job engine
"""

# Application configuration
import os
from pathlib import Path
from typing import Dict


def env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable"""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes", "on")


def env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return int(value)


def _read_version_from_repo(default: str = "dev") -> str:
    try:
        # repo root: jobengine/.. (one parent up from the package)
        version_file = Path(__file__).resolve().parents[1] / "VERSION"
        v = version_file.read_text(encoding="utf-8").strip()
        if v:
            return v
    except OSError:
        pass
    return os.getenv("APP_VERSION", default)

API_VERSION = _read_version_from_repo()

# Database configuration
SQLITE_PATH = os.getenv("SQLITE_PATH", "./jobengine.db")
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{SQLITE_PATH}")
AUTO_MIGRATE = env_bool("AUTO_MIGRATE", False)

# API configuration
API_PREFIX = "/v1"
APP_PORT = int(os.getenv("APP_PORT", "8080"))

# Logging configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
LOG_SAMPLE_RATE = float(os.getenv("LOG_SAMPLE_RATE", "1.0"))
LOG_EXCLUDE_PATHS = os.getenv("LOG_EXCLUDE_PATHS", "/v1/health,/v1/metrics/prometheus").split(",")


def _parse_admin_keys(raw: str) -> Dict[str, str]:
    """Parse `key_id:token` pairs into a token -> key_id map"""
    keys = {}
    for item in [p.strip() for p in raw.split(",") if p.strip()]:
        if ":" in item:
            key_id, token = item.split(":", 1)
        else:
            key_id, token = "admin", item
        keys[token.strip()] = key_id.strip()
    return keys

# Admin configuration
ADMIN_API_KEYS = _parse_admin_keys(os.getenv("ADMIN_API_KEYS", "admin:TEST_ADMIN_KEY"))
ADMIN_AUDIT_MAX = int(os.getenv("ADMIN_AUDIT_MAX", "1000"))

# Location gate: max distance from the registered home coordinate
LOCATION_GATE_DISTANCE = float(os.getenv("LOCATION_GATE_DISTANCE", "50"))

# Job lifecycle knobs
JOB_MAX_PAUSE_SECONDS = env_int("JOB_MAX_PAUSE_SECONDS", 0)  # 0 = unlimited
JOB_CLAIM_REPLAY_SECONDS = env_int("JOB_CLAIM_REPLAY_SECONDS", 300)

# Per-category durations (seconds)
CATEGORY_DURATIONS = {
    "construction": {
        "default": env_int("JOB_CONSTRUCTION_DEFAULT_SECONDS", 300),
        "min": env_int("JOB_CONSTRUCTION_MIN_SECONDS", 1),
        "max": env_int("JOB_CONSTRUCTION_MAX_SECONDS", 7 * 24 * 3600),
    },
    "crafting": {
        "default": env_int("JOB_CRAFTING_DEFAULT_SECONDS", 60),
        "min": env_int("JOB_CRAFTING_MIN_SECONDS", 1),
        "max": env_int("JOB_CRAFTING_MAX_SECONDS", 24 * 3600),
    },
    "gathering": {
        "default": env_int("JOB_GATHERING_DEFAULT_SECONDS", 60),
        "min": env_int("JOB_GATHERING_MIN_SECONDS", 1),
        "max": env_int("JOB_GATHERING_MAX_SECONDS", 24 * 3600),
    },
    "collection": {
        "default": env_int("JOB_COLLECTION_DEFAULT_SECONDS", 5 * 60),
        "min": env_int("JOB_COLLECTION_MIN_SECONDS", 5 * 60),
        "max": env_int("JOB_COLLECTION_MAX_SECONDS", 480 * 60),
    },
}
