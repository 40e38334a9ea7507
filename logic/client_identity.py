"""
logic/client_identity.py
Derives the rate-limit bucket key for an incoming request.

Known limitation: X-Forwarded-For / X-Real-IP are trusted as sent. There is
no check that they were set by a trusted proxy, so a client can spoof them.
"""

from typing import Mapping, Optional

from logic.rate_limit import UNKNOWN_CLIENT


def resolve_client_id(headers: Mapping[str, str]) -> str:
    """
    First hop of X-Forwarded-For, else X-Real-IP, else "unknown".

    All clients without either header share the "unknown" bucket.
    """
    forwarded: Optional[str] = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip: Optional[str] = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_CLIENT
