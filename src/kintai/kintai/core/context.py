from __future__ import annotations

from dataclasses import dataclass

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class EmployeeContext:
    """Verified identity of the caller, passed explicitly into every service call."""

    employee_id: str
    name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_admin(self) -> None:
        if not self.is_admin:
            raise AuthorizationError("Administrator permission is required")

    def require_self_or_admin(self, employee_id: str, *, action: str = "access this record") -> None:
        if not self.is_admin and self.employee_id != employee_id:
            raise AuthorizationError(f"You are not allowed to {action} of another employee")
