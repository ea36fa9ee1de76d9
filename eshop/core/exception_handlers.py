import logging
import uuid
from collections import defaultdict

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from eshop.core.exceptions import AppError

log = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


# Generate a clean trace id for every error response
def _trace_id():
    """Generates a unique trace ID for correlating responses with logs."""
    return uuid.uuid4().hex


def _problem(request: Request, status_code: int, title: str, detail: str, trace_id: str, **extensions):
    body = {
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": request.url.path,
        "traceId": trace_id,
    }
    body.update(extensions)
    return JSONResponse(status_code=status_code, content=body, media_type=PROBLEM_JSON)


# ----------- Exception Handlers (called by FastAPI) -----------

def app_exception_handler(request: Request, exc: AppError):
    """Handles domain errors (NotFound, BadRequest, InternalServer)."""
    trace_id = _trace_id()
    log.error(f"{type(exc).__name__} on {request.url.path} [{trace_id}]: {exc.message}")
    return _problem(request, exc.status_code, type(exc).__name__, exc.message, trace_id)


def http_exception_handler(request: Request, exc: HTTPException):
    """Handles exceptions raised by HTTPException (e.g., 404, 400)."""
    return _problem(request, exc.status_code, "HTTPException", str(exc.detail), _trace_id())


def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles Pydantic validation errors with field-level detail."""
    errors = defaultdict(list)
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        if error["msg"] not in errors[field]:
            errors[field].append(error["msg"])

    return _problem(
        request,
        400,
        "ValidationException",
        "Validation failed. See validationErrors.",
        _trace_id(),
        validationErrors=dict(errors),
    )


def generic_exception_handler(request: Request, exc: Exception):
    """Handles all unhandled exceptions (500 Internal Server Error)."""
    trace_id = _trace_id()
    log.error(f"Unhandled exception on path: {request.url.path} [{trace_id}]", exc_info=exc)
    return _problem(request, 500, "InternalServerError", "An unexpected error occurred.", trace_id)


# ----------- Registration Function -----------

def setup_exception_handlers(app: FastAPI):
    """Registers all custom exception handlers with the FastAPI application."""
    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    return app
