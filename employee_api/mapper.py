"""
Field mapping between the public and upstream employee representations.

Correspondence:
    id              <-> id
    name            <-> employee_name
    salary          <-> employee_salary
    age             <-> employee_age
    title           <-> employee_title
    email           <-> employee_email (not sent on create)
"""

from typing import Any

from pydantic import ValidationError

from employee_api.models import (
    Employee,
    EmployeeInput,
    UpstreamCreateRequest,
    UpstreamEmployee,
)
from employee_api.services.errors import MappingError

REQUIRED_UPSTREAM_FIELDS = (
    "employee_name",
    "employee_salary",
    "employee_age",
    "employee_title",
)


def to_public(upstream: UpstreamEmployee | dict[str, Any]) -> Employee:
    """Convert an upstream employee into the public model."""
    if not isinstance(upstream, UpstreamEmployee):
        try:
            upstream = UpstreamEmployee.model_validate(upstream)
        except ValidationError as e:
            raise MappingError(f"Malformed upstream employee: {e}") from e

    missing = [f for f in REQUIRED_UPSTREAM_FIELDS if getattr(upstream, f) is None]
    if missing:
        raise MappingError(
            f"Upstream employee {upstream.id} is missing fields: {', '.join(missing)}"
        )

    return Employee(
        id=upstream.id,
        name=upstream.employee_name,
        salary=upstream.employee_salary,
        age=upstream.employee_age,
        title=upstream.employee_title,
        email=upstream.employee_email,
    )


def to_public_list(payload: list[Any] | None) -> list[Employee]:
    """Convert an upstream list payload; no payload means an empty roster."""
    if not payload:
        return []
    if not isinstance(payload, list):
        raise MappingError(f"Expected a list of employees, got {type(payload).__name__}")
    return [to_public(item) for item in payload]


def to_upstream_create(employee: EmployeeInput | Employee) -> UpstreamCreateRequest:
    """Build the upstream create payload. Email has no upstream equivalent."""
    return UpstreamCreateRequest(
        name=employee.name,
        salary=employee.salary,
        age=employee.age,
        title=employee.title,
    )
