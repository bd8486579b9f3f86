"""Map domain exceptions to API error responses.

Every error body carries ``success: false`` and a human-readable ``message``
that clients display verbatim; ``error`` holds the per-field messages.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from returns.order.order import StaleReplacementState
from returns.utils.logging import get_logger

logger = get_logger(__name__)


def _flatten(messages) -> str:
    if isinstance(messages, dict):
        parts = []
        for value in messages.values():
            if isinstance(value, (list, tuple)):
                parts.extend(str(v) for v in value)
            else:
                parts.append(str(value))
        return "; ".join(parts)
    return str(messages)


def _error_response(status_code: int, exc) -> JSONResponse:
    messages = getattr(exc, "messages", None) or {"_entity": [str(exc)]}
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": _flatten(messages), "error": messages},
    )


async def stale_state_handler(request: Request, exc: StaleReplacementState) -> JSONResponse:
    logger.warning(
        "Rejected stale replacement update",
        path=request.url.path,
        current_status=exc.current.value,
        expected_status=exc.expected.value,
    )
    return _error_response(409, exc)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("Rejected request", path=request.url.path, errors=exc.messages)
    return _error_response(400, exc)


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _error_response(404, exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handlers on an application."""
    app.add_exception_handler(StaleReplacementState, stale_state_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
