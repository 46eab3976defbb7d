"""Per-operation role checks."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import Unauthorized


class Role(str, Enum):
    BORROWER = "borrower"
    EXECUTOR = "executor"
    GOVERNOR = "governor"


def _normalize(address: str) -> str:
    return address.strip().lower()


@dataclass(frozen=True)
class RoleGuard:
    """Borrower, executor and governor identities fixed at creation.

    Roles form no hierarchy: holding one grants nothing the others grant,
    even when the same address holds several.
    """

    borrower: str
    executor: str
    governor: str

    def __post_init__(self) -> None:
        for role in Role:
            object.__setattr__(self, role.value, _normalize(getattr(self, role.value)))

    def holder(self, role: Role) -> str:
        return getattr(self, role.value)

    def has_role(self, role: Role, caller: str) -> bool:
        return _normalize(caller) == self.holder(role)

    def require(self, role: Role, caller: str) -> None:
        """Raise :class:`Unauthorized` unless ``caller`` holds ``role``."""
        if not self.has_role(role, caller):
            raise Unauthorized(f"caller is not the {role.value}")
