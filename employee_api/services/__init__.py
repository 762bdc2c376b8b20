"""
Service layer - resilience and caching between the public API and the
upstream employee service.

Provides:
- UpstreamClient: Async transport adapter with typed failures
- with_resilience / RetryPolicy: Retry, backoff and rate-limit translation
- CacheManager: Region-partitioned cache with TTL, LRU and invalidation
- RequestDeduplicator: Shares concurrent identical computations
"""

from employee_api.services.errors import (
    ServiceError,
    EmployeeNotFoundError,
    RateLimitError,
    ServiceUnavailableError,
    ValidationFailedError,
    MappingError,
    OperationFailedError,
    UpstreamFailure,
    ConnectFailure,
    ServerFailure,
    ClientFailure,
    NotFoundFailure,
)
from employee_api.services.cache import CacheManager, CacheEntry, CacheRegion, CacheResult
from employee_api.services.deduplicator import RequestDeduplicator
from employee_api.services.client import UpstreamClient, UpstreamResponse
from employee_api.services.retry import RetryPolicy, with_resilience

__all__ = [
    # Errors
    "ServiceError",
    "EmployeeNotFoundError",
    "RateLimitError",
    "ServiceUnavailableError",
    "ValidationFailedError",
    "MappingError",
    "OperationFailedError",
    "UpstreamFailure",
    "ConnectFailure",
    "ServerFailure",
    "ClientFailure",
    "NotFoundFailure",
    # Cache
    "CacheManager",
    "CacheEntry",
    "CacheRegion",
    "CacheResult",
    # Deduplicator
    "RequestDeduplicator",
    # Client
    "UpstreamClient",
    "UpstreamResponse",
    # Resilience
    "RetryPolicy",
    "with_resilience",
]
