"""Exception handling utilities for API routes.

Domain errors raised anywhere below the routers are rendered here, so route
functions contain no try/except for the common cases:

- ControlError subclasses: their own status code and ``to_dict()`` payload
- Anything else: 500 with a generic message, logged with traceback
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import ControlError, ErrorCode

logger = logging.getLogger(__name__)


async def control_error_handler(request: Request, exc: ControlError) -> JSONResponse:
    """Render a ControlError as ``{error, code, details}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render an unexpected exception as a generic 500 response."""
    logger.error(f"Unhandled error in {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "code": ErrorCode.INTERNAL_ERROR.value,
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the control error handlers to an application."""
    app.add_exception_handler(ControlError, control_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
