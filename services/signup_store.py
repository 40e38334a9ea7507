# services/signup_store.py

"""
Persistence for waitlist signups.

Two backends share one contract, insert(email) -> InsertResult:

- SupabaseSignupStore: the production table (PostgREST over HTTP).
  Uniqueness of `email` is enforced by the database; a unique-violation
  comes back as Postgres error code 23505.
- JsonFileSignupStore: a JSON file on disk for local development.
  Same outcomes, deduped in-process.

A duplicate is a normal outcome ("conflict"), not an exception. Anything
else that goes wrong is a "failure" whose detail is for logs only.
"""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

import config

UNIQUE_VIOLATION_CODE = "23505"

STATUS_OK = "ok"
STATUS_CONFLICT = "conflict"
STATUS_FAILURE = "failure"


@dataclass(frozen=True)
class SignupRecord:
    email: str
    created_at: str


@dataclass(frozen=True)
class InsertResult:
    status: str
    record: Optional[SignupRecord] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def conflict(self) -> bool:
        return self.status == STATUS_CONFLICT

    @classmethod
    def accepted(cls, record: SignupRecord) -> "InsertResult":
        return cls(status=STATUS_OK, record=record)

    @classmethod
    def duplicate(cls) -> "InsertResult":
        return cls(status=STATUS_CONFLICT)

    @classmethod
    def failed(cls, detail: str) -> "InsertResult":
        return cls(status=STATUS_FAILURE, detail=detail)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# --------------------------------------------------
# Supabase (PostgREST)
# --------------------------------------------------


class SupabaseSignupStore:
    def __init__(
        self,
        url: str,
        service_role_key: str,
        table: str = "email_signups",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        if not url or not service_role_key:
            raise ValueError("Supabase URL and service role key are required.")
        self.endpoint = f"{url.rstrip('/')}/rest/v1/{table}"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "apikey": service_role_key,
            "Authorization": f"Bearer {service_role_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def insert(self, email: str) -> InsertResult:
        payload = [{"email": email, "created_at": _now_iso()}]

        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.Timeout:
            return InsertResult.failed(f"timed out after {self.timeout}s")
        except requests.RequestException as e:
            return InsertResult.failed(f"request error: {e}")

        if response.status_code >= 400:
            error = _error_body(response)
            if str(error.get("code")) == UNIQUE_VIOLATION_CODE:
                return InsertResult.duplicate()
            return InsertResult.failed(
                f"HTTP {response.status_code}: {error.get('message') or response.text[:200]}"
            )

        rows = _json_or_none(response)
        row: Dict[str, Any] = rows[0] if isinstance(rows, list) and rows else {}
        return InsertResult.accepted(
            SignupRecord(
                email=row.get("email") or email,
                created_at=row.get("created_at") or payload[0]["created_at"],
            )
        )


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_body(response: requests.Response) -> Dict[str, Any]:
    data = _json_or_none(response)
    return data if isinstance(data, dict) else {}


# --------------------------------------------------
# JSON file (local development)
# --------------------------------------------------


class JsonFileSignupStore:
    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> List[Dict[str, str]]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, list) else []

    def _save(self, rows: List[Dict[str, str]]) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)

    def insert(self, email: str) -> InsertResult:
        with self._lock:
            try:
                rows = self._load()
                if any(r.get("email") == email for r in rows):
                    return InsertResult.duplicate()

                record = SignupRecord(email=email, created_at=_now_iso())
                rows.append({"email": record.email, "created_at": record.created_at})
                self._save(rows)
            except (OSError, ValueError) as e:
                return InsertResult.failed(f"{type(e).__name__}: {e}")

        return InsertResult.accepted(record)


# --------------------------------------------------
# Wiring
# --------------------------------------------------

_store = None
_store_lock = threading.Lock()


def get_signup_store():
    """Get or create the process-wide signup store."""
    global _store
    with _store_lock:
        if _store is None:
            if config.supabase_configured():
                _store = SupabaseSignupStore(
                    url=config.SUPABASE_URL,
                    service_role_key=config.SUPABASE_SERVICE_ROLE_KEY,
                    table=config.SIGNUPS_TABLE,
                    timeout=config.SIGNUP_STORE_TIMEOUT_SECONDS,
                )
                config.logger.info("[signups] using Supabase table %s", config.SIGNUPS_TABLE)
            else:
                _store = JsonFileSignupStore(config.WAITLIST_PATH)
                config.logger.warning(
                    "[signups] SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set - writing to %s",
                    config.WAITLIST_PATH,
                )
        return _store
