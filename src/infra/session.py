"""Explicit per-request session context.

Operations that need to know who is acting receive a ``SessionContext``
argument; nothing reads the current user from module state.
"""

from __future__ import annotations

from dataclasses import dataclass

ADMIN_ROLES = frozenset({"admin", "administrator", "super admin"})


@dataclass(frozen=True, slots=True)
class SessionContext:
    user_id: str
    user_name: str
    role: str = "user"
    office_id: int | None = None
    wing_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role.strip().lower() in ADMIN_ROLES

    def can_see_office(self, office_ids: list[int]) -> bool:
        """Admins see everything; others see their office and unassigned records."""
        if self.is_admin or self.office_id is None or not office_ids:
            return True
        return self.office_id in office_ids


SYSTEM_SESSION = SessionContext(user_id="system", user_name="System", role="admin")


__all__ = ["ADMIN_ROLES", "SYSTEM_SESSION", "SessionContext"]
