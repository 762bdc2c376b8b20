"""
Shared fixtures: an in-memory fake of the upstream employee service served
through httpx.MockTransport, and an EmployeeService wired to it.
"""

import json
import uuid
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from employee_api.services.cache import CacheManager
from employee_api.services.client import UpstreamClient
from employee_api.services.employee_service import EmployeeService
from employee_api.services.retry import RetryPolicy

UPSTREAM_BASE_URL = "http://upstream.test/api/v1"
UPSTREAM_PREFIX = "/api/v1"


def upstream_employee(name: str, salary: int, age: int = 30, title: str = "Engineer"):
    """Upstream-shaped employee record."""
    slug = name.lower().replace(" ", ".")
    return {
        "id": str(uuid.uuid4()),
        "employee_name": name,
        "employee_salary": salary,
        "employee_age": age,
        "employee_title": title,
        "employee_email": f"{slug}@company.com",
    }


def envelope(data, status: str = "Successfully processed request.") -> dict:
    return {"data": data, "status": status}


class FakeUpstream:
    """
    Minimal stand-in for the mock employee service.

    Scripted responses (httpx.Response or an exception to raise) are served
    first, in order; after that requests hit the in-memory roster.
    """

    def __init__(self, employees: list[dict] | None = None):
        self.employees: list[dict] = list(employees or [])
        self.calls: list[tuple[str, str]] = []
        self.requests: list[httpx.Request] = []
        self.scripted: list[httpx.Response | Exception] = []

    def queue(self, *responses: httpx.Response | Exception) -> None:
        self.scripted.extend(responses)

    def count(self, method: str, path: str | None = None) -> int:
        return sum(
            1
            for m, p in self.calls
            if m == method and (path is None or p == path)
        )

    def find(self, employee_id: str) -> dict | None:
        return next((e for e in self.employees if e["id"] == employee_id), None)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix(UPSTREAM_PREFIX)
        self.calls.append((request.method, path))
        self.requests.append(request)

        if self.scripted:
            scripted = self.scripted.pop(0)
            if isinstance(scripted, Exception):
                raise scripted
            return scripted

        parts = [p for p in path.split("/") if p]

        if request.method == "GET" and parts == ["employee"]:
            return httpx.Response(200, json=envelope(self.employees))

        if request.method == "GET" and len(parts) == 2:
            employee = self.find(parts[1])
            if employee is None:
                return httpx.Response(404, json=envelope(None, "Not Found"))
            return httpx.Response(200, json=envelope(employee))

        if request.method == "POST" and parts == ["employee"]:
            body = json.loads(request.content)
            created = upstream_employee(
                body["name"], body["salary"], body["age"], body["title"]
            )
            self.employees.append(created)
            return httpx.Response(200, json=envelope(created))

        if request.method == "DELETE" and len(parts) == 2:
            for employee in self.employees:
                if employee["employee_name"] == parts[1]:
                    self.employees.remove(employee)
                    return httpx.Response(200, json=envelope(True))
            return httpx.Response(200, json=envelope(False))

        return httpx.Response(405)


class FakeClock:
    """Controllable clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def roster() -> list[dict]:
    """Twelve employees; two share the top salary."""
    return [
        upstream_employee("Alice Smith", 120000, title="Director"),
        upstream_employee("Bob Jones", 95000),
        upstream_employee("Carol White", 150000, title="VP"),
        upstream_employee("Dan Brown", 150000, title="VP"),
        upstream_employee("Eve Black", 60000),
        upstream_employee("Frank Green", 70000),
        upstream_employee("Grace Hall", 80000),
        upstream_employee("Heidi King", 85000),
        upstream_employee("Ivan Long", 90000),
        upstream_employee("Judy Moore", 100000),
        upstream_employee("Karl Nash", 110000),
        upstream_employee("Liam Olsen", 50000),
    ]


@pytest.fixture
def upstream(roster) -> FakeUpstream:
    return FakeUpstream(roster)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream_client(upstream) -> UpstreamClient:
    return UpstreamClient(
        base_url=UPSTREAM_BASE_URL,
        transport=httpx.MockTransport(upstream.handler),
    )


@pytest.fixture
def cache(clock) -> CacheManager:
    return CacheManager(max_size=1000, default_ttl=timedelta(seconds=60), clock=clock)


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(upstream_client, cache, sleep) -> EmployeeService:
    return EmployeeService(
        upstream_client,
        cache,
        retry_policy=RetryPolicy(max_attempts=3, initial_delay=1.0, multiplier=2.0, max_delay=5.0),
        sleep=sleep,
    )
