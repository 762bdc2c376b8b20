"""
EmployeeService - Orchestrates the public employee operations.

Reads go through the CacheManager (one region per operation) and, on a miss,
through the resilience policy to the upstream client. Writes go straight to
the upstream and invalidate every cache region on success.
"""

from typing import Any, Awaitable, Callable
from urllib.parse import quote
from uuid import UUID

from loguru import logger

from employee_api.mapper import to_public, to_public_list, to_upstream_create
from employee_api.models import Employee, EmployeeInput
from employee_api.services.cache import CacheManager, CacheRegion
from employee_api.services.client import SERVICE_ID, UpstreamClient, UpstreamResponse
from employee_api.services.errors import (
    EmployeeNotFoundError,
    NotFoundFailure,
    OperationFailedError,
)
from employee_api.services.retry import RetryPolicy, with_resilience
from employee_api.utils import log_operation

EMPLOYEE_PATH = "/employee"
TOP_EARNERS_LIMIT = 10


class EmployeeService:
    """
    Employee operations on top of the upstream mock service.

    Usage:
        service = EmployeeService(client, cache)

        employees = await service.list_all()
        fresh = await service.get_by_id(employee_id, bypass=True)
    """

    def __init__(
        self,
        client: UpstreamClient,
        cache: CacheManager,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        self.client = client
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self._sleep = sleep

    async def _call(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
    ) -> UpstreamResponse:
        """Issue one upstream call under the resilience policy."""
        kwargs = {"sleep": self._sleep} if self._sleep else {}
        return await with_resilience(
            lambda: self.client.fetch(method, path, body),
            policy=self.retry_policy,
            description=f"{method} {path}",
            **kwargs,
        )

    # Reads

    @log_operation
    async def list_all(self, bypass: bool = False) -> list[Employee]:
        """All employees known to the upstream service."""
        employees = await self.cache.get_or_compute(
            CacheRegion.EMPLOYEES, "", bypass, self._fetch_all
        )
        return list(employees)

    async def _fetch_all(self) -> list[Employee]:
        logger.info(f"Fetching all employees from {SERVICE_ID}")
        try:
            response = await self._call("GET", EMPLOYEE_PATH)
        except NotFoundFailure as e:
            logger.error(f"{SERVICE_ID} has no employee collection: {e}")
            raise OperationFailedError(
                "Failed to fetch employees", cause=e, service_id=SERVICE_ID
            ) from e
        employees = to_public_list(response.data)
        logger.info(f"Fetched {len(employees)} employees from {SERVICE_ID}")
        return employees

    @log_operation
    async def search(self, search_string: str, bypass: bool = False) -> list[Employee]:
        """Employees whose name contains search_string, case-insensitively."""
        needle = search_string.lower()

        async def filter_roster() -> list[Employee]:
            roster = await self.list_all(bypass=bypass)
            matches = [e for e in roster if e.name and needle in e.name.lower()]
            logger.info(f"Found {len(matches)} employees matching '{search_string}'")
            return matches

        employees = await self.cache.get_or_compute(
            CacheRegion.SEARCH, needle, bypass, filter_roster
        )
        return list(employees)

    @log_operation
    async def get_by_id(self, employee_id: UUID | str, bypass: bool = False) -> Employee:
        """
        Single employee by id.

        Raises:
            EmployeeNotFoundError: Upstream has no employee with this id
        """
        key = str(employee_id)

        async def fetch_one() -> Employee:
            try:
                response = await self._call("GET", f"{EMPLOYEE_PATH}/{quote(key)}")
            except NotFoundFailure as e:
                logger.warning(f"Employee with ID {key} not found in {SERVICE_ID}")
                raise EmployeeNotFoundError(key) from e

            if response.data is None:
                logger.warning(f"Employee with ID {key} returned no data")
                raise EmployeeNotFoundError(key)
            return to_public(response.data)

        return await self.cache.get_or_compute(
            CacheRegion.BY_ID, key, bypass, fetch_one
        )

    @log_operation
    async def highest_salary(self, bypass: bool = False) -> int:
        """Highest salary on the roster, 0 when the roster is empty."""

        async def compute() -> int:
            roster = await self.list_all(bypass=bypass)
            salaries = [e.salary for e in roster if e.salary is not None]
            highest = max(salaries, default=0)
            logger.info(f"Highest salary found: {highest}")
            return highest

        return await self.cache.get_or_compute(
            CacheRegion.HIGHEST_SALARY, "", bypass, compute
        )

    @log_operation
    async def top_ten_names(self, bypass: bool = False) -> list[str]:
        """Names of the ten highest earners, highest first; ties keep roster order."""

        async def compute() -> list[str]:
            roster = await self.list_all(bypass=bypass)
            earners = [e for e in roster if e.name and e.salary is not None]
            # sorted() is stable, reverse=True included
            earners = sorted(earners, key=lambda e: e.salary, reverse=True)
            names = [e.name for e in earners[:TOP_EARNERS_LIMIT]]
            logger.info(f"Found {len(names)} top earning employees")
            return names

        names = await self.cache.get_or_compute(
            CacheRegion.TOP_TEN, "", bypass, compute
        )
        return list(names)

    # Writes

    @log_operation
    async def create(self, employee_input: EmployeeInput) -> Employee:
        """Create an employee upstream and return it as echoed back."""
        payload = to_upstream_create(employee_input).model_dump()
        try:
            response = await self._call("POST", EMPLOYEE_PATH, payload)
        except NotFoundFailure as e:
            logger.error(f"{SERVICE_ID} rejected create with 404: {e}")
            raise OperationFailedError(
                f"Failed to create employee '{employee_input.name}'",
                cause=e,
                service_id=SERVICE_ID,
            ) from e

        if response.data is None:
            raise OperationFailedError(
                f"{SERVICE_ID} returned no data for created employee "
                f"'{employee_input.name}'",
                service_id=SERVICE_ID,
            )

        await self.cache.invalidate_all()
        created = to_public(response.data)
        logger.info(f"Created employee '{created.name}' with ID {created.id}")
        return created

    @log_operation
    async def delete_by_id(self, employee_id: UUID | str, bypass: bool = False) -> str:
        """
        Delete an employee by id and return their name.

        The upstream deletes by name, so the id is resolved first through
        get_by_id (cache-eligible unless bypass is set). If the name no longer
        resolves upstream by the time of the delete, EmployeeNotFoundError is
        raised even though the lookup succeeded.
        """
        employee = await self.get_by_id(employee_id, bypass=bypass)
        name = employee.name

        try:
            response = await self._call(
                "DELETE", f"{EMPLOYEE_PATH}/{quote(name, safe='')}"
            )
        except NotFoundFailure as e:
            logger.warning(f"Employee '{name}' vanished before delete")
            raise EmployeeNotFoundError(str(employee_id)) from e

        if response.data is not True:
            logger.warning(f"{SERVICE_ID} did not delete employee '{name}'")
            raise EmployeeNotFoundError(str(employee_id))

        await self.cache.invalidate_all()
        logger.info(f"Deleted employee with ID {employee_id} and name '{name}'")
        return name
