import json
from pathlib import Path
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.concurrency import run_in_threadpool

import config
from config import logger
from logic.client_identity import resolve_client_id
from logic.rate_limit import RateLimiter
from services.signup_store import get_signup_store
from services.submission_service import submit_email


settings = config.get_settings_obj()

app = FastAPI(
    title="Waitlist API",
    description="Email capture for the marketing site waitlist.",
    version="0.1.0",
)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@app.middleware("http")
async def cors(request: Request, call_next):
    """Any origin may call the API. Preflights are answered here with an empty 200."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    for key, value in CORS_HEADERS.items():
        response.headers.setdefault(key, value)
    return response


# One limiter for the whole process; every signup goes through it.
limiter = RateLimiter(
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
    max_clients=settings.RATE_LIMIT_MAX_CLIENTS,
    idle_windows=settings.RATE_LIMIT_IDLE_WINDOWS,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=CORS_HEADERS)


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("[app] unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error(500, "Internal server error")


@app.on_event("startup")
def _startup() -> None:
    logger.info(
        "[app] rate limit: %s requests / %ss per client",
        settings.RATE_LIMIT_MAX_REQUESTS,
        settings.RATE_LIMIT_WINDOW_SECONDS,
    )
    get_signup_store()


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/api/submit-email")
async def api_submit_email(request: Request) -> JSONResponse:
    client_id = resolve_client_id(request.headers)

    raw_email: Any = None
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        raw_email = payload.get("email")

    # storage is blocking I/O; keep it off the event loop
    result = await run_in_threadpool(
        submit_email, client_id, raw_email, limiter, get_signup_store()
    )
    return JSONResponse(status_code=result.status_code, content=result.to_body())


@app.api_route("/api/submit-email", methods=["GET", "PUT", "PATCH", "DELETE"])
def api_submit_email_not_allowed() -> JSONResponse:
    return _error(405, "Method not allowed")


@app.get("/api/privacy-policy")
def api_privacy_policy() -> Any:
    try:
        with open(settings.PRIVACY_POLICY_PATH, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error("[app] error reading privacy policy: %s", e)
        return _error(500, "Failed to load privacy policy")


# Keep last: serves the built frontend and falls back to index.html.
@app.get("/{full_path:path}")
def frontend(full_path: str) -> Response:
    build_dir = Path(settings.FRONTEND_BUILD_DIR).resolve()
    index = build_dir / "index.html"

    if full_path:
        candidate = (build_dir / full_path).resolve()
        if candidate.is_file() and build_dir in candidate.parents:
            return FileResponse(str(candidate))

    if index.is_file():
        return FileResponse(str(index))
    return _error(404, "Not found")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=settings.PORT)
