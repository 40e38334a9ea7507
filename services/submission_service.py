# services/submission_service.py

"""
Signup submission pipeline.

rate limit -> validate -> store -> outcome

Every path ends in a SubmissionResult. Nothing raised inside the pipeline
escapes; unexpected errors are logged and reported like a storage failure.
A failed storage write still counts against the client's rate limit.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from config import logger
from logic.rate_limit import RateLimiter
from logic.validation import validate_email

ACCEPTED = "accepted"
RATE_LIMITED = "rate_limited"
INVALID_EMAIL = "invalid_email"
DUPLICATE_EMAIL = "duplicate_email"
STORE_FAILURE = "store_failure"

MSG_ACCEPTED = "Email successfully added to waitlist!"
MSG_RATE_LIMITED = "Too many requests. Please try again later."
MSG_INVALID_EMAIL = "Invalid email address"
MSG_DUPLICATE_EMAIL = "This email is already registered!"
MSG_STORE_FAILURE = "Failed to submit email. Please try again."


@dataclass(frozen=True)
class SubmissionResult:
    outcome: str
    status_code: int
    message: str

    @property
    def success(self) -> bool:
        return self.outcome == ACCEPTED

    def to_body(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "message": self.message}
        return {"error": self.message}


def submit_email(
    client_id: str,
    raw_email: Optional[Any],
    limiter: RateLimiter,
    store,
) -> SubmissionResult:
    try:
        if not limiter.admit(client_id):
            logger.debug("[submit] rate limited client=%s", client_id)
            return SubmissionResult(RATE_LIMITED, 429, MSG_RATE_LIMITED)

        try:
            email = validate_email(raw_email)
        except ValueError:
            return SubmissionResult(INVALID_EMAIL, 400, MSG_INVALID_EMAIL)

        result = store.insert(email)

        if result.ok:
            logger.info("[submit] email saved: %s", email)
            return SubmissionResult(ACCEPTED, 200, MSG_ACCEPTED)

        if result.conflict:
            return SubmissionResult(DUPLICATE_EMAIL, 400, MSG_DUPLICATE_EMAIL)

        logger.error("[submit] signup store failure: %s", result.detail)
        return SubmissionResult(STORE_FAILURE, 500, MSG_STORE_FAILURE)

    except Exception:
        logger.exception("[submit] unexpected error submitting email")
        return SubmissionResult(STORE_FAILURE, 500, MSG_STORE_FAILURE)
