"""FastAPI server exposing the employee proxy API."""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
from uuid import UUID

from fastapi import FastAPI, Header, status
from loguru import logger

from employee_api.exceptions import InvalidIdentifierError, register_exception_handlers
from employee_api.models import Employee, EmployeeInput
from employee_api.services.cache import CacheManager
from employee_api.services.client import UpstreamClient
from employee_api.services.employee_service import EmployeeService
from employee_api.settings import global_settings

API_PREFIX = "/api/v1/employee"
TRUTHY = {"1", "true", "yes", "on"}


def wants_bypass(
    x_cache_bypass: Optional[str] = None, cache_control: Optional[str] = None
) -> bool:
    """Whether the request asks to skip the cache.

    Honours ``X-Cache-Bypass: true`` and ``Cache-Control: no-cache``.
    """
    if x_cache_bypass and x_cache_bypass.strip().lower() in TRUTHY:
        return True
    if cache_control:
        directives = {d.strip().lower() for d in cache_control.split(",")}
        return "no-cache" in directives
    return False


def parse_employee_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as e:
        raise InvalidIdentifierError(value) from e


def build_service() -> EmployeeService:
    """Create an EmployeeService wired from global settings."""
    cache = CacheManager(
        max_size=global_settings.cache_max_size,
        default_ttl=timedelta(seconds=global_settings.cache_ttl_seconds),
        debug=global_settings.cache_debug,
    )
    return EmployeeService(UpstreamClient(), cache)


class EmployeeServer:
    """HTTP server translating public routes into EmployeeService calls."""

    def __init__(self, service: EmployeeService):
        self.service = service
        self.app = FastAPI(title="Employee API", lifespan=self.lifespan)
        register_exception_handlers(self.app)

        # Register routes; fixed paths before /{employee_id}
        self.app.get(API_PREFIX, response_model=list[Employee])(self.list_employees)
        self.app.get(
            f"{API_PREFIX}/search/{{search_string}}", response_model=list[Employee]
        )(self.search_employees)
        self.app.get(f"{API_PREFIX}/highestSalary", response_model=int)(
            self.highest_salary
        )
        self.app.get(
            f"{API_PREFIX}/topTenHighestEarningEmployeeNames",
            response_model=list[str],
        )(self.top_ten_names)
        self.app.get(f"{API_PREFIX}/{{employee_id}}", response_model=Employee)(
            self.get_employee
        )
        self.app.post(
            API_PREFIX, response_model=Employee, status_code=status.HTTP_201_CREATED
        )(self.create_employee)
        self.app.delete(f"{API_PREFIX}/{{employee_id}}", response_model=str)(
            self.delete_employee
        )
        self.app.get("/health")(self.health_check)

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        logger.info(f"Employee API proxying {self.service.client.base_url}")
        async with self.service.client:
            yield
            await self.service.cache.close()
        logger.info("Employee API stopped")

    async def list_employees(
        self,
        x_cache_bypass: Optional[str] = Header(None),
        cache_control: Optional[str] = Header(None),
    ):
        logger.info(f"GET {API_PREFIX} - Fetching all employees")
        return await self.service.list_all(
            bypass=wants_bypass(x_cache_bypass, cache_control)
        )

    async def search_employees(
        self,
        search_string: str,
        x_cache_bypass: Optional[str] = Header(None),
        cache_control: Optional[str] = Header(None),
    ):
        logger.info(f"GET {API_PREFIX}/search/{search_string} - Searching employees")
        return await self.service.search(
            search_string, bypass=wants_bypass(x_cache_bypass, cache_control)
        )

    async def get_employee(
        self,
        employee_id: str,
        x_cache_bypass: Optional[str] = Header(None),
        cache_control: Optional[str] = Header(None),
    ):
        logger.info(f"GET {API_PREFIX}/{employee_id} - Fetching employee by ID")
        return await self.service.get_by_id(
            parse_employee_id(employee_id),
            bypass=wants_bypass(x_cache_bypass, cache_control),
        )

    async def highest_salary(
        self,
        x_cache_bypass: Optional[str] = Header(None),
        cache_control: Optional[str] = Header(None),
    ):
        logger.info(f"GET {API_PREFIX}/highestSalary - Fetching highest salary")
        return await self.service.highest_salary(
            bypass=wants_bypass(x_cache_bypass, cache_control)
        )

    async def top_ten_names(
        self,
        x_cache_bypass: Optional[str] = Header(None),
        cache_control: Optional[str] = Header(None),
    ):
        logger.info(
            f"GET {API_PREFIX}/topTenHighestEarningEmployeeNames - Fetching top earners"
        )
        return await self.service.top_ten_names(
            bypass=wants_bypass(x_cache_bypass, cache_control)
        )

    async def create_employee(self, employee_input: EmployeeInput):
        logger.info(f"POST {API_PREFIX} - Creating employee '{employee_input.name}'")
        return await self.service.create(employee_input)

    async def delete_employee(
        self,
        employee_id: str,
        x_cache_bypass: Optional[str] = Header(None),
        cache_control: Optional[str] = Header(None),
    ):
        logger.info(f"DELETE {API_PREFIX}/{employee_id} - Deleting employee by ID")
        return await self.service.delete_by_id(
            parse_employee_id(employee_id),
            bypass=wants_bypass(x_cache_bypass, cache_control),
        )

    async def health_check(self):
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "employee-api",
            "upstream": self.service.client.base_url,
            "cache": self.service.cache.get_stats().to_dict(),
        }


def create_app(service: EmployeeService | None = None) -> FastAPI:
    """Create the FastAPI app.

    Args:
        service: EmployeeService to expose; built from settings when omitted

    Returns:
        FastAPI app
    """
    server = EmployeeServer(service or build_service())
    return server.app
