"""Error taxonomy and FastAPI handlers.

Every error raised across a route boundary derives from AppError and is
rendered with the same envelope:

    {"error": {"code", "message", "request_id", ...}, "detail": message}
"""

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request

from tubescript.core.logging import get_request_id


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id

    def extra_payload(self) -> Dict[str, Any]:
        return {}


class ValidationError(AppError, ValueError):
    code = "validation_error"
    status_code = 400

    def __init__(self, message: str, *, fields: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.fields = fields or {}

    def extra_payload(self) -> Dict[str, Any]:
        return {"fields": self.fields} if self.fields else {}


class StyleAnalysisError(AppError):
    """Style analysis failed. Recovered by the orchestrator, never user-facing."""
    code = "style_analysis_failed"
    status_code = 502


class GenerationError(AppError):
    """Script generation failed or produced no content."""
    code = "generation_failed"
    status_code = 502

    USER_MESSAGE = "There was a problem generating your script."


class QuotaExceededError(AppError):
    code = "quota_exceeded"
    status_code = 403

    TITLE = "Free Limit Reached"

    def __init__(self, message: str, *, action: str = "upgrade", **kwargs):
        super().__init__(message, **kwargs)
        self.action = action

    def extra_payload(self) -> Dict[str, Any]:
        return {"title": self.TITLE, "action": self.action}


class BillingError(AppError):
    code = "billing_error"
    status_code = 502


class RateLimitError(AppError):
    code = "rate_limited"
    status_code = 429


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, message: str, request_id: str, extra: Optional[Dict[str, Any]] = None) -> dict:
    error = {"code": code, "message": message, "request_id": request_id}
    if extra:
        error.update(extra)
    return {
        "error": error,
        "detail": message,
    }


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    payload = _error_payload(exc.code, exc.message, rid, exc.extra_payload())
    logger = logging.getLogger("tubescript")
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def request_validation_handler(request: Request, exc: RequestValidationError):
    rid = _extract_request_id(request)
    fields: Dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "header")]
        fields[".".join(loc) or "body"] = err.get("msg", "Invalid value")
    message = "; ".join(f"{k}: {v}" for k, v in fields.items()) or "Invalid request"
    payload = _error_payload(ValidationError.code, message, rid, {"fields": fields})
    logging.getLogger("tubescript").warning(
        "request.invalid", extra={"request_id": rid, "error_code": ValidationError.code, "status": 400}
    )
    response = JSONResponse(status_code=400, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    message = exc.detail if exc.detail else "HTTP error"
    payload = _error_payload(code, message, rid)
    logger = logging.getLogger("tubescript")
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger = logging.getLogger("tubescript")
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    payload = _error_payload("internal_error", "Unexpected error", rid)
    response = JSONResponse(status_code=500, content=payload)
    response.headers["x-request-id"] = rid
    return response
