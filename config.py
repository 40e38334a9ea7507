"""
Centralized settings for the waitlist service.

This file reads environment variables (optionally from a .env file)
and provides sane defaults so the app can boot locally.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Any
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the .env file NEXT TO THIS FILE
BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str(name: str, default: str = "") -> str:
    raw = os.getenv(name)
    return default if raw is None else raw.strip()


# ---------------------------
# Persistence (Supabase)
# ---------------------------
SUPABASE_URL: str = _get_str("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_ROLE_KEY: str = _get_str("SUPABASE_SERVICE_ROLE_KEY", "")
SIGNUPS_TABLE: str = _get_str("SIGNUPS_TABLE", "email_signups")
SIGNUP_STORE_TIMEOUT_SECONDS: float = _get_float("SIGNUP_STORE_TIMEOUT_SECONDS", 5.0)

# Local fallback when Supabase is not configured
WAITLIST_PATH: str = _get_str("WAITLIST_PATH", "data/waitlist.json")

# ---------------------------
# Rate limiting
# ---------------------------
RATE_LIMIT_WINDOW_SECONDS: int = _get_int("RATE_LIMIT_WINDOW_SECONDS", 60 * 60)
RATE_LIMIT_MAX_REQUESTS: int = _get_int("RATE_LIMIT_MAX_REQUESTS", 5)
RATE_LIMIT_MAX_CLIENTS: int = _get_int("RATE_LIMIT_MAX_CLIENTS", 10_000)
RATE_LIMIT_IDLE_WINDOWS: int = _get_int("RATE_LIMIT_IDLE_WINDOWS", 3)

# ---------------------------
# Site plumbing
# ---------------------------
PRIVACY_POLICY_PATH: str = _get_str(
    "PRIVACY_POLICY_PATH", str(BASE_DIR / "public" / "privacy-policy.json")
)
FRONTEND_BUILD_DIR: str = _get_str("FRONTEND_BUILD_DIR", str(BASE_DIR / "build"))
PORT: int = _get_int("PORT", 3001)
LOG_LEVEL: str = _get_str("LOG_LEVEL", "INFO").upper()

# ---------------------------
# Logging
# ---------------------------
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("waitlist")


@dataclass(frozen=True)
class Settings:
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    SIGNUPS_TABLE: str
    SIGNUP_STORE_TIMEOUT_SECONDS: float
    WAITLIST_PATH: str
    RATE_LIMIT_WINDOW_SECONDS: int
    RATE_LIMIT_MAX_REQUESTS: int
    RATE_LIMIT_MAX_CLIENTS: int
    RATE_LIMIT_IDLE_WINDOWS: int
    PRIVACY_POLICY_PATH: str
    FRONTEND_BUILD_DIR: str
    PORT: int
    LOG_LEVEL: str


def get_settings() -> Dict[str, Any]:
    return {
        "SUPABASE_URL": SUPABASE_URL,
        "SUPABASE_SERVICE_ROLE_KEY": SUPABASE_SERVICE_ROLE_KEY,
        "SIGNUPS_TABLE": SIGNUPS_TABLE,
        "SIGNUP_STORE_TIMEOUT_SECONDS": SIGNUP_STORE_TIMEOUT_SECONDS,
        "WAITLIST_PATH": WAITLIST_PATH,
        "RATE_LIMIT_WINDOW_SECONDS": RATE_LIMIT_WINDOW_SECONDS,
        "RATE_LIMIT_MAX_REQUESTS": RATE_LIMIT_MAX_REQUESTS,
        "RATE_LIMIT_MAX_CLIENTS": RATE_LIMIT_MAX_CLIENTS,
        "RATE_LIMIT_IDLE_WINDOWS": RATE_LIMIT_IDLE_WINDOWS,
        "PRIVACY_POLICY_PATH": PRIVACY_POLICY_PATH,
        "FRONTEND_BUILD_DIR": FRONTEND_BUILD_DIR,
        "PORT": PORT,
        "LOG_LEVEL": LOG_LEVEL,
    }


def get_settings_obj() -> Settings:
    return Settings(**get_settings())


def supabase_configured() -> bool:
    return bool(SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY)
