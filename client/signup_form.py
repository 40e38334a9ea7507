# client/signup_form.py

"""
Client-side controller for the "Get Early Access" signup modal.

Phases:

    Idle --submit--> Submitting --ok--> Success --(2s)--> closed/reset
                     Submitting --fail--> Error --submit--> Submitting
                                          Error --edit--> Idle

Runs on a single asyncio loop (the UI thread). Only one request can be in
flight: submit() is ignored unless the form is open and Idle or Error, and
the input is disabled while Submitting.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx

IDLE = "idle"
SUBMITTING = "submitting"
SUCCESS = "success"
ERROR = "error"

SUCCESS_CLOSE_DELAY_SECONDS = 2.0

MSG_REQUEST_FAILED = "Failed to submit email"
MSG_TRANSPORT_FAILED = "Something went wrong. Please try again."

# (status_code, parsed JSON body or None)
Transport = Callable[[str, Dict[str, Any]], Awaitable[Tuple[int, Any]]]


@dataclass
class FormState:
    email: str = ""
    phase: str = IDLE
    error_message: Optional[str] = None


class HttpxTransport:
    """POSTs JSON to the site origin with httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        base_url = (base_url or "").strip().rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must be an absolute http(s) origin.")
        self.base_url = base_url
        self.timeout = timeout
        self._http_transport = http_transport

    async def __call__(self, path: str, payload: Dict[str, Any]) -> Tuple[int, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._http_transport,
        ) as client:
            response = await client.post(path, json=payload)
        try:
            body = response.json()
        except ValueError:
            body = None
        return response.status_code, body


class SignupFormController:
    def __init__(
        self,
        transport: Optional[Transport] = None,
        base_url: Optional[str] = None,
        on_close: Optional[Callable[[], None]] = None,
        endpoint: str = "/api/submit-email",
        close_delay: float = SUCCESS_CLOSE_DELAY_SECONDS,
    ):
        if transport is None:
            if not base_url:
                raise ValueError("Pass a transport or the site base_url.")
            transport = HttpxTransport(base_url)
        self._transport = transport
        self._on_close = on_close
        self.endpoint = endpoint
        self.close_delay = close_delay

        self.state = FormState()
        self.is_open = False
        self._reset_handle: Optional[asyncio.TimerHandle] = None
        # bumped on every close so late responses can tell they are stale
        self._session = 0

    @property
    def input_disabled(self) -> bool:
        return self.state.phase == SUBMITTING

    @property
    def close_pending(self) -> bool:
        return self._reset_handle is not None

    def open(self) -> None:
        if self.is_open:
            return
        self.is_open = True
        self.state = FormState()

    def set_email(self, value: str) -> None:
        if not self.is_open or self.input_disabled:
            return
        self.state.email = value
        if self.state.phase == ERROR:
            self.state.phase = IDLE
            self.state.error_message = None

    async def submit(self) -> None:
        if not self.is_open or self.state.phase not in (IDLE, ERROR):
            return

        session = self._session
        self.state.phase = SUBMITTING
        self.state.error_message = None

        try:
            status, body = await self._transport(self.endpoint, {"email": self.state.email})
        except Exception:
            if session == self._session:
                self._fail(MSG_TRANSPORT_FAILED)
            return

        if session != self._session:
            # modal was closed while the request was in flight
            return

        if 200 <= status < 300:
            self.state.phase = SUCCESS
            loop = asyncio.get_running_loop()
            self._reset_handle = loop.call_later(self.close_delay, self._close_after_success)
            return

        message = body.get("error") if isinstance(body, dict) else None
        self._fail(message or MSG_REQUEST_FAILED)

    def close(self) -> None:
        self._cancel_reset()
        self._session += 1
        was_open = self.is_open
        self.is_open = False
        self.state = FormState()
        if was_open and self._on_close:
            self._on_close()

    def _fail(self, message: str) -> None:
        self.state.phase = ERROR
        self.state.error_message = message

    def _close_after_success(self) -> None:
        self._reset_handle = None
        self.close()

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
