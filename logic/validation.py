"""
logic/validation.py
Pure logic: validates signup emails before any rate-limit or storage work
is committed. No I/O. Simple syntactic checks only (no DNS / MX lookups,
no disposable-domain filtering).
"""

import re

# local-part@domain.tld where no part contains whitespace or a literal "@"
_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def validate_email(raw) -> str:
    """
    Validates a waitlist email address.

    Rules:
    - must be a string (None / numbers / objects are rejected)
    - the whole value must look like local-part@domain.tld
    - returned value is stripped + lowercased

    Returns:
        normalized email address.

    Raises:
        ValueError if the email is missing or malformed.
    """
    if raw is None or not isinstance(raw, str):
        raise ValueError("Invalid email address")

    if _EMAIL_PATTERN.fullmatch(raw) is None:
        raise ValueError("Invalid email address")

    return raw.strip().lower()
