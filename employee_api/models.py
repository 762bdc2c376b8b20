"""
Employee data models.

Public models use the proxy's field names; upstream models mirror the
mock employee service, which prefixes entity fields with ``employee_``.
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

T = TypeVar("T")

MIN_AGE = 16
MAX_AGE = 75


class Employee(BaseModel):
    """Employee as exposed by the public API."""

    model_config = ConfigDict(frozen=True)

    id: UUID | None = None
    name: str
    salary: int
    age: int
    title: str
    email: str | None = None


class EmployeeInput(BaseModel):
    """Payload accepted by the create endpoint."""

    name: str
    salary: int
    age: int
    title: str
    email: str | None = None

    @field_validator("name", "title")
    @classmethod
    def not_blank(cls, value: str, info) -> str:
        if not value or not value.strip():
            raise ValueError(f"Employee {info.field_name} cannot be blank")
        return value

    @field_validator("salary")
    @classmethod
    def positive_salary(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Employee salary must be greater than zero")
        return value

    @field_validator("age")
    @classmethod
    def working_age(cls, value: int) -> int:
        if value < MIN_AGE:
            raise ValueError(f"Employee age must be at least {MIN_AGE}")
        if value > MAX_AGE:
            raise ValueError(f"Employee age must be at most {MAX_AGE}")
        return value


class UpstreamEmployee(BaseModel):
    """Employee as returned by the upstream service."""

    id: UUID | None = None
    employee_name: str | None = None
    employee_salary: int | None = None
    employee_age: int | None = None
    employee_title: str | None = None
    employee_email: str | None = None


class UpstreamCreateRequest(BaseModel):
    """Body of ``POST /employee`` on the upstream service."""

    name: str
    salary: int
    age: int
    title: str


class UpstreamEnvelope(BaseModel, Generic[T]):
    """Wrapper the upstream puts around every payload."""

    data: T | None = None
    status: str | None = None


def parse_envelope(payload: Any) -> UpstreamEnvelope[Any]:
    """Read an upstream JSON body into an envelope, tolerating bare payloads."""
    if isinstance(payload, dict) and ("data" in payload or "status" in payload):
        return UpstreamEnvelope[Any].model_validate(payload)
    return UpstreamEnvelope[Any](data=payload)
