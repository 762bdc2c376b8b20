"""
Service layer exceptions.

Two families live here:
- Upstream failures raised by the transport adapter (UpstreamClient)
- Service errors raised by the resilience policy and employee operations,
  which the HTTP boundary maps to status codes
"""

from typing import Any


class UpstreamFailure(Exception):
    """Base exception for upstream transport failures."""

    def __init__(
        self, message: str, status_code: int | None = None, body: Any = None
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ConnectFailure(UpstreamFailure):
    """Upstream unreachable or timed out."""

    pass


class ServerFailure(UpstreamFailure):
    """Upstream answered with a 5xx status."""

    pass


class NotFoundFailure(UpstreamFailure):
    """Upstream answered with 404."""

    def __init__(self, message: str, body: Any = None):
        super().__init__(message, status_code=404, body=body)


class ClientFailure(UpstreamFailure):
    """Upstream answered with a 4xx status other than 404."""

    def __init__(
        self,
        status_code: int,
        body: Any = None,
        retry_after: float | None = None,
    ):
        self.retry_after = retry_after
        super().__init__(
            f"Upstream client error: HTTP {status_code}",
            status_code=status_code,
            body=body,
        )


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class EmployeeNotFoundError(ServiceError):
    """The requested employee does not exist upstream."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Employee not found: {identifier}")


class RateLimitError(ServiceError):
    """Rate limit exceeded."""

    def __init__(self, service_id: str, retry_after: float | None = None):
        self.retry_after = retry_after
        msg = f"Rate limit exceeded for service '{service_id}'"
        if retry_after:
            msg += f", retry after {retry_after}s"
        super().__init__(msg, service_id=service_id)


class ServiceUnavailableError(ServiceError):
    """Service is temporarily unavailable."""

    pass


class ValidationFailedError(ServiceError):
    """Input rejected before reaching the service layer."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__(f"Validation failed for fields: {', '.join(errors)}")


class MappingError(ServiceError):
    """Upstream payload is missing a required field."""

    pass


class OperationFailedError(ServiceError):
    """Upstream operation failed for a reason outside the other categories."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        service_id: str | None = None,
    ):
        self.cause = cause
        super().__init__(message, service_id=service_id)
