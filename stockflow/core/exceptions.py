# stockflow/core/exceptions.py
"""
Errores tipados del dominio y su traducción a respuestas HTTP.

Los servicios lanzan subclases de ``StockFlowError``; la capa HTTP las
convierte una sola vez en ``{"success": false, "message": ...}``.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stockflow.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class StockFlowError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(StockFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class Forbidden(StockFlowError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class NotFound(StockFlowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InvalidRequest(StockFlowError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InsufficientStock(StockFlowError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Insufficient stock"


class InvalidState(StockFlowError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state"


def _error_response(status_code: int, message: str, headers: dict = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers=headers,
    )


def _format_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item not in ("body", "query", "path"))
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "Invalid request: " + "; ".join(parts)


def setup_exception_handlers(app: FastAPI):
    """Registrar los manejadores que producen el sobre de error uniforme"""

    @app.exception_handler(StockFlowError)
    async def stockflow_error_handler(request: Request, exc: StockFlowError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} - {exc.message}")
        return _error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(status.HTTP_400_BAD_REQUEST, _format_validation_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"❌ Error inesperado en {request.method} {request.url.path}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
