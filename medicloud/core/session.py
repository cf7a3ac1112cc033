"""Explicit per-request session context.

Endpoints that care about who is calling receive a ``SessionContext`` through
dependency injection instead of reading ambient global state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .security import UserRole


class SessionState(str, Enum):
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


ROLE_HOME_PATHS = {
    UserRole.PATIENT: "/patient/dashboard",
    UserRole.DOCTOR: "/doctor/dashboard",
    UserRole.PHARMACIST: "/pharmacist/dashboard",
}

ANONYMOUS_HOME_PATH = "/"


@dataclass(frozen=True)
class SessionContext:
    state: SessionState = SessionState.LOADING
    user: Optional[object] = None
    role: Optional[UserRole] = None

    @classmethod
    def anonymous(cls) -> "SessionContext":
        return cls(state=SessionState.ANONYMOUS)

    @classmethod
    def for_user(cls, user) -> "SessionContext":
        return cls(
            state=SessionState.AUTHENTICATED,
            user=user,
            role=UserRole(user.role),
        )

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.AUTHENTICATED

    def home_path(self) -> str:
        """Route a client should land on for this session."""
        if not self.is_authenticated or self.role is None:
            return ANONYMOUS_HOME_PATH
        return ROLE_HOME_PATHS[self.role]

    def can_access(self, *allowed_roles: UserRole) -> bool:
        """Protected-route check: signed in, and in one of ``allowed_roles`` when any are given."""
        if not self.is_authenticated:
            return False
        return not allowed_roles or self.role in allowed_roles
