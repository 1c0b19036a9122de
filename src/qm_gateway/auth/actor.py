"""Authenticated actor — the only source of identity for mutating operations.

Request bodies never carry buyer/provider/seller ids; every service call takes
the Actor derived from the verified bearer token.
"""

from dataclasses import dataclass, field

from src.qm_common.enums import Role
from src.qm_common.errors import RoleRequiredError


@dataclass(frozen=True)
class Actor:
    user_id: str
    roles: frozenset[Role] = field(default_factory=frozenset)
    rating: float | None = None  # provider rating claim, snapshotted onto quotes

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    def require(self, role: Role) -> None:
        if role not in self.roles:
            raise RoleRequiredError(role.value)
