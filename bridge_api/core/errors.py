"""
errors.py — Exception → HTTP response mapping.

Every failure is handled at the route boundary; nothing propagates past
the handler and nothing is retried.

  RequestValidationError → 400  names the missing / invalid fields
                           (a body that is not valid JSON is unexpected: 500)
  RateLimitDenied        → 429  X-RateLimit-* + Retry-After, readable wait
  slowapi RateLimitExceeded → 429 via slowapi's default handler
  anything else          → 500  generic message, full traceback in the log

Wire into app (in main.py):
    from bridge_api.core.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from bridge_api.core.rate_limit import RateLimitDenied

logger = logging.getLogger(__name__)


def _internal_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


def _field_name(loc: tuple) -> str:
    # ("body", "eventType") → "eventType";  ("query", "minutes") → "minutes"
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


def describe_validation_errors(errors: list[dict]) -> str:
    missing = [_field_name(e["loc"]) for e in errors if e.get("type") == "missing"]
    if missing:
        return f"Missing required field(s): {', '.join(dict.fromkeys(missing))}"

    invalid = [_field_name(e["loc"]) for e in errors]
    if invalid:
        return f"Invalid field(s): {', '.join(dict.fromkeys(invalid))}"
    return "Validation failed"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        logger.error("Malformed JSON body on %s %s: %s", request.method, request.url.path, errors)
        return _internal_error_response()

    message = describe_validation_errors(errors)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": message,
            "details": [
                {"field": _field_name(e["loc"]), "message": e.get("msg", ""), "type": e.get("type", "")}
                for e in errors
            ],
        },
    )


async def rate_limit_denied_handler(request: Request, exc: RateLimitDenied) -> JSONResponse:
    headers = exc.result.headers()
    headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=429,
        content={"success": False, "error": exc.message, "retryAfter": exc.retry_after},
        headers=headers,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _internal_error_response()


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitDenied, rate_limit_denied_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
