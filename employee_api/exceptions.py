"""
Error handlers mapping service errors to HTTP responses
"""

import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from employee_api.services.errors import (
    EmployeeNotFoundError,
    MappingError,
    OperationFailedError,
    RateLimitError,
    ServiceUnavailableError,
    ValidationFailedError,
)


class InvalidIdentifierError(ValueError):
    """Path identifier is not a valid employee id"""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Invalid employee id: {identifier}")


def validation_errors(exc: RequestValidationError) -> dict[str, str]:
    """Flatten pydantic errors into a field -> message map"""
    errors = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "body"
        message = error.get("msg", "Invalid value")
        errors[field] = message.removeprefix("Value error, ")
    return errors


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return await handle_validation_failed(
        request, ValidationFailedError(validation_errors(exc))
    )


async def handle_validation_failed(
    request: Request, exc: ValidationFailedError
) -> JSONResponse:
    logger.warning(f"Validation error occurred: {exc.errors}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.errors)


async def handle_invalid_identifier(
    request: Request, exc: InvalidIdentifierError
) -> JSONResponse:
    logger.warning(f"Illegal argument error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)}
    )


async def handle_not_found(
    request: Request, exc: EmployeeNotFoundError
) -> JSONResponse:
    logger.warning(f"Employee not found: {exc.identifier}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)}
    )


async def handle_rate_limit(request: Request, exc: RateLimitError) -> JSONResponse:
    logger.warning(f"Rate limit exceeded: {exc}")
    content = {
        "error": "Rate limit exceeded. Please try again later.",
        "message": str(exc),
        "retryAfterSeconds": exc.retry_after,
    }
    headers = {}
    if exc.retry_after is not None:
        headers["Retry-After"] = str(math.ceil(exc.retry_after))
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=content,
        headers=headers,
    )


async def handle_unavailable(
    request: Request, exc: ServiceUnavailableError
) -> JSONResponse:
    logger.error(f"Mock server unavailable: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "Mock server is unavailable. Please try again later.",
            "message": str(exc),
        },
    )


async def handle_mapping_error(request: Request, exc: MappingError) -> JSONResponse:
    logger.error(f"Upstream payload could not be mapped: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Unexpected upstream payload", "message": str(exc)},
    )


async def handle_operation_failed(
    request: Request, exc: OperationFailedError
) -> JSONResponse:
    logger.opt(exception=exc.cause).error(f"Operation failed: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc), "message": str(exc.cause or exc)},
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unexpected error occurred: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "An unexpected error occurred", "message": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error-to-status mapping on an app"""
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(ValidationFailedError, handle_validation_failed)
    app.add_exception_handler(InvalidIdentifierError, handle_invalid_identifier)
    app.add_exception_handler(EmployeeNotFoundError, handle_not_found)
    app.add_exception_handler(RateLimitError, handle_rate_limit)
    app.add_exception_handler(ServiceUnavailableError, handle_unavailable)
    app.add_exception_handler(MappingError, handle_mapping_error)
    app.add_exception_handler(OperationFailedError, handle_operation_failed)
    app.add_exception_handler(Exception, handle_unexpected)
