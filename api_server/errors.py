"""Error rendering for the gateway.

Maps client errors, backend gRPC failures and unexpected exceptions to HTTP
status codes and a JSON body of the form ``{"status": ..., "error": ...}``.
"""

import logging
from typing import Dict, Optional

import grpc
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INVALID_REQUEST = "Invalid request."


class GatewayError(Exception):
    """Base class for errors raised by the gateway itself."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    status_text = "Internal server error."

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(GatewayError):
    """Malformed client input, rejected before any backend call."""

    status_code = status.HTTP_400_BAD_REQUEST
    status_text = INVALID_REQUEST


class ClientDisconnectedError(GatewayError):
    """The client went away before the backend answered."""

    status_code = 499
    status_text = "Client closed request."


class BackendUnavailableError(GatewayError):
    """The TodoManager channel is not connected."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    status_text = "Backend unavailable."


GRPC_STATUS_TO_HTTP: Dict[grpc.StatusCode, int] = {
    grpc.StatusCode.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    grpc.StatusCode.OUT_OF_RANGE: status.HTTP_400_BAD_REQUEST,
    grpc.StatusCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    grpc.StatusCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    grpc.StatusCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    grpc.StatusCode.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    grpc.StatusCode.ABORTED: status.HTTP_409_CONFLICT,
    grpc.StatusCode.FAILED_PRECONDITION: status.HTTP_412_PRECONDITION_FAILED,
    grpc.StatusCode.RESOURCE_EXHAUSTED: status.HTTP_429_TOO_MANY_REQUESTS,
    grpc.StatusCode.CANCELLED: 499,
    grpc.StatusCode.UNIMPLEMENTED: status.HTTP_501_NOT_IMPLEMENTED,
    grpc.StatusCode.UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    grpc.StatusCode.DEADLINE_EXCEEDED: status.HTTP_504_GATEWAY_TIMEOUT,
}


def http_status_for(code: Optional[grpc.StatusCode]) -> int:
    """HTTP status code for a gRPC status code."""
    return GRPC_STATUS_TO_HTTP.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_body(status_text: str, error: str) -> Dict[str, str]:
    return {"status": status_text, "error": error}


def rpc_error_body(exc: grpc.aio.AioRpcError) -> Dict[str, str]:
    """JSON body for a failed backend call."""
    code = exc.code()
    status_text = code.name if code is not None else "UNKNOWN"
    return error_body(status_text, exc.details() or "")


def _error_response(
    status_code: int, body: Dict[str, str], headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    """Register the gateway's exception handlers on the application."""

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        if exc.status_code < 500:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
        else:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error_response(exc.status_code, error_body(exc.status_text, exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Routing errors such as unknown paths (404) or unsupported methods (405).
        message = str(exc.detail)
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.status_code} {message}")
        return _error_response(
            exc.status_code, error_body(message, message), headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in errors
        ) or "malformed request"
        logger.warning(f"{request.method} {request.url.path} rejected: {message}")
        return _error_response(
            status.HTTP_400_BAD_REQUEST, error_body(INVALID_REQUEST, message)
        )

    @app.exception_handler(grpc.aio.AioRpcError)
    async def handle_rpc_error(request: Request, exc: grpc.aio.AioRpcError) -> JSONResponse:
        logger.error(
            f"{request.method} {request.url.path} backend call failed: "
            f"{exc.code()} {exc.details()}"
        )
        return _error_response(http_status_for(exc.code()), rpc_error_body(exc))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unexpected error on {request.method} {request.url.path}")
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_body("Internal server error.", "internal server error"),
        )
