"""
Resilience policy for upstream calls.

with_resilience() wraps a single upstream operation:
- ClientFailure (4xx other than 404/429): retried with exponential backoff
- HTTP 429: raised immediately as RateLimitError, carrying Retry-After
- ConnectFailure / ServerFailure: raised immediately as ServiceUnavailableError
- NotFoundFailure and ServiceError subclasses: propagated unchanged
- Anything else, or an exhausted retry budget: OperationFailedError
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from employee_api.services.client import SERVICE_ID
from employee_api.services.errors import (
    ClientFailure,
    ConnectFailure,
    NotFoundFailure,
    OperationFailedError,
    RateLimitError,
    ServerFailure,
    ServiceError,
    ServiceUnavailableError,
)
from employee_api.settings import global_settings

T = TypeVar("T")

TOO_MANY_REQUESTS = 429


@dataclass
class RetryPolicy:
    """Backoff schedule for retry-eligible failures."""

    max_attempts: int = 3
    initial_delay: float = 1.0  # seconds
    multiplier: float = 2.0
    max_delay: float = 5.0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=global_settings.retry_max_attempts,
            initial_delay=global_settings.retry_initial_delay,
            multiplier=global_settings.retry_multiplier,
            max_delay=global_settings.retry_max_delay,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (1-based)."""
        delay = self.initial_delay * (self.multiplier ** (attempt - 1))
        return min(delay, self.max_delay)


async def with_resilience(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    description: str = "upstream call",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run an upstream operation under the retry and translation rules.

    Args:
        operation: Zero-argument coroutine factory issuing one upstream call
        policy: Backoff schedule (defaults to the configured policy)
        description: Human-readable label used in log lines
        sleep: Awaitable used between attempts

    Returns:
        The operation's result

    Raises:
        RateLimitError: Upstream answered 429
        ServiceUnavailableError: Upstream unreachable or 5xx
        NotFoundFailure: Upstream answered 404
        OperationFailedError: Retries exhausted or unexpected failure
    """
    policy = policy or RetryPolicy.from_settings()

    for attempt in range(1, policy.max_attempts + 1):
        try:
            result = await operation()
            if attempt > 1:
                logger.info(f"{description} succeeded on attempt {attempt}")
            return result

        except ClientFailure as e:
            if e.status_code == TOO_MANY_REQUESTS:
                logger.warning(
                    f"Rate limit exceeded from upstream during {description}"
                    f" (retry after: {e.retry_after})"
                )
                raise RateLimitError(SERVICE_ID, retry_after=e.retry_after) from e

            if attempt == policy.max_attempts:
                logger.error(
                    f"{description} failed after {attempt} attempts: {e}"
                )
                raise OperationFailedError(
                    f"Failed to complete {description}",
                    cause=e,
                    service_id=SERVICE_ID,
                ) from e

            delay = policy.delay_for(attempt)
            logger.warning(
                f"{description} attempt {attempt}/{policy.max_attempts} failed"
                f" with HTTP {e.status_code}, retrying in {delay:.1f}s"
            )
            await sleep(delay)

        except (ConnectFailure, ServerFailure) as e:
            logger.error(f"Upstream unavailable during {description}: {e}")
            raise ServiceUnavailableError(
                "Mock server is unavailable. Please try again later.",
                service_id=SERVICE_ID,
            ) from e

        except (NotFoundFailure, ServiceError):
            raise

        except Exception as e:
            logger.error(f"Unexpected error during {description}: {e}")
            raise OperationFailedError(
                f"Failed to complete {description}",
                cause=e,
                service_id=SERVICE_ID,
            ) from e

    # max_attempts < 1
    raise OperationFailedError(
        f"No attempts made for {description}", service_id=SERVICE_ID
    )
