"""Exception handlers that normalize every failure into the response envelope."""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker.config import Settings

logger = logging.getLogger(__name__)

VALUE_ERROR_PREFIX = "Value error, "

# Human-readable names used when rewording pydantic's constraint errors
FIELD_LABELS = {
    "name": "Name",
    "email": "Email",
    "password": "Password",
    "currentPassword": "Current password",
    "newPassword": "New password",
    "avatar": "Avatar URL",
    "title": "Task title",
    "description": "Task description",
    "notes": "Notes",
    "search": "Search term",
}

# Messages for a specific (field, error type) pair
FIELD_MESSAGES = {
    ("email", "value_error"): "Please provide a valid email address",
    ("priority", "enum"): "Priority must be low, medium, or high",
    ("status", "enum"): "Status must be pending or completed",
    ("tags", "too_long"): "Cannot have more than {max_length} tags",
}


def _readable_message(field: str, is_item: bool, error: dict) -> str | None:
    error_type = error.get("type")
    ctx = error.get("ctx") or {}

    if is_item and field == "tags" and error_type == "string_too_long":
        return f"Tag cannot exceed {ctx.get('max_length')} characters"
    template = FIELD_MESSAGES.get((field, error_type))
    if template is not None and not is_item:
        return template.format(**ctx)

    label = FIELD_LABELS.get(field)
    if label is None or is_item:
        return None
    if error_type == "missing":
        return f"{label} is required"
    if error_type == "string_too_short":
        if ctx.get("min_length") == 1:
            return f"{label} cannot be empty"
        return f"{label} must be at least {ctx.get('min_length')} characters long"
    if error_type == "string_too_long":
        return f"{label} cannot exceed {ctx.get('max_length')} characters"
    return None


def error_response(
    status_code: int,
    message: str,
    errors: list[str] | None = None,
    headers: dict[str, str] | None = None,
    **extra,
) -> JSONResponse:
    """Build a failure envelope."""
    content: dict = {"success": False, "message": message}
    if errors is not None:
        content["errors"] = errors
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def format_validation_error(error: dict) -> str:
    """Render one pydantic error as "field: message".

    Constraint violations on known fields are reworded into plain sentences;
    anything else keeps pydantic's message.
    """
    message = error.get("msg", "Invalid value")
    if message.startswith(VALUE_ERROR_PREFIX):
        message = message[len(VALUE_ERROR_PREFIX) :]
    if error.get("type") == "json_invalid":
        # loc holds a character offset, not a field
        return f"Malformed JSON body: {message}"

    loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    if not loc:
        return message

    field = str(loc[0])
    readable = _readable_message(field, len(loc) > 1, error)
    return f"{'.'.join(str(part) for part in loc)}: {readable or message}"


def server_error_response(request: Request, exc: Exception, settings: Settings) -> JSONResponse:
    """Log an unclassified failure and build the 500 envelope."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc!r}",
        exc_info=exc,
    )
    extra = {}
    if settings.is_development:
        extra["stack"] = "".join(traceback.format_exception(exc))
        extra["error"] = repr(exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Error", **extra)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the terminal error handlers on the app."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = f"Route {request.url.path} not found"
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if any(err.get("loc", ())[:1] == ("path",) for err in errors):
            # A malformed identifier can never name an existing resource
            return error_response(status.HTTP_404_NOT_FOUND, "Resource not found")

        messages = [format_validation_error(err) for err in errors]
        if all(err.get("loc", ())[:1] == ("query",) for err in errors):
            message = "Invalid query parameters"
        else:
            message = "Validation failed"
        return error_response(status.HTTP_400_BAD_REQUEST, message, errors=messages)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Duplicate field value. Please use another value.",
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        return server_error_response(request, exc, settings)
