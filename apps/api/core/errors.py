"""RFC 7807 Problem Details error handling.

Provides centralized exception handling and the API's own exception
classes. Ledger errors raised by the engine packages are translated here
so the packages stay free of HTTP concerns. All errors return:

    {
        "type": "about:blank",
        "title": "Conflict",
        "status": 409,
        "detail": "Category 'Groceries' in use by 12 transaction(s)",
        "instance": "/api/v1/categories/abc"
    }
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from packages.import_engine import errors as ledger_errors

logger = structlog.get_logger()


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str, status_code: int = 500, error_type: str = "about:blank"):
        self.detail = detail
        self.status_code = status_code
        self.error_type = error_type
        super().__init__(detail)


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(detail=detail, status_code=404)


class ValidationError(AppError):
    """Request validation failed."""

    def __init__(self, detail: str = "Validation failed"):
        super().__init__(detail=detail, status_code=422)


class AuthenticationError(AppError):
    """Authentication failed."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail=detail, status_code=401)


class PayloadTooLargeError(AppError):
    """Uploaded file exceeds the configured limit."""

    def __init__(self, detail: str = "File too large"):
        super().__init__(detail=detail, status_code=413)


# Most specific first: lookups walk this list and take the first isinstance match
_LEDGER_STATUS = [
    (ledger_errors.MappingError, 422),
    (ledger_errors.EntryValidationError, 422),
    (ledger_errors.SpreadsheetError, 400),
    (ledger_errors.CategoryInUseError, 409),
    (ledger_errors.ConflictError, 409),
    (ledger_errors.NotFoundError, 404),
    (ledger_errors.MigrationIncompleteError, 500),
]


def ledger_status(exc: ledger_errors.LedgerError) -> int:
    for error_class, status in _LEDGER_STATUS:
        if isinstance(exc, error_class):
            return status
    return 500


def _build_problem_detail(
    status: int,
    title: str,
    detail: str,
    error_type: str = "about:blank",
    instance: str = "",
    request_id: str = "",
) -> dict:
    """Build RFC 7807 Problem Details response body."""
    body = {
        "type": error_type,
        "title": title,
        "status": status,
        "detail": detail,
    }
    if instance:
        body["instance"] = instance
    if request_id:
        body["request_id"] = request_id
    return body


# HTTP status code to title mapping
_STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _problem_response(request: Request, status: int, detail: str, error_type: str = "about:blank") -> JSONResponse:
    body = _build_problem_detail(
        status=status,
        title=_STATUS_TITLES.get(status, "Error"),
        detail=detail,
        error_type=error_type,
        instance=str(request.url.path),
        request_id=getattr(request.state, "request_id", ""),
    )
    return JSONResponse(status_code=status, content=body)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _problem_response(request, exc.status_code, exc.detail, exc.error_type)

    @app.exception_handler(ledger_errors.LedgerError)
    async def ledger_error_handler(request: Request, exc: ledger_errors.LedgerError) -> JSONResponse:
        status = ledger_status(exc)
        if status >= 500:
            logger.error("ledger_error", error=str(exc), error_class=type(exc).__name__)
        return _problem_response(request, status, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return _problem_response(request, exc.status_code, detail)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=str(request.url.path))
        return _problem_response(request, 500, "An unexpected error occurred")
