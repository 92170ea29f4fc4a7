from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from .models import Role


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a capability check, with the token's identity claims on success."""

    success: bool
    user_id: int | None = None
    username: str | None = None
    role: Role = Role.USER
    email: str | None = None
    error: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.success and self.role == Role.ADMIN

    @staticmethod
    def granted(claims: Mapping[str, Any]) -> "AuthResult":
        return AuthResult(
            success=True,
            user_id=int(claims["userId"]),
            username=(str(claims["username"]) if claims.get("username") is not None else None),
            role=Role(str(claims.get("role", Role.USER.value))),
            email=(str(claims["email"]) if claims.get("email") is not None else None),
        )

    @staticmethod
    def denied(error: str = "Unauthorized") -> "AuthResult":
        return AuthResult(success=False, error=error)


Authenticator = Callable[[], AuthResult]


def is_owner(auth: AuthResult, user_id: int) -> bool:
    return auth.success and auth.user_id == user_id


def can_manage(auth: AuthResult, owner_id: int) -> bool:
    return is_owner(auth, owner_id) or auth.is_admin
