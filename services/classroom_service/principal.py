from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from classroom_common.domain_enums import UserRole


@dataclass(frozen=True)
class CurrentPrincipal:
    """Identity resolved from a verified access token."""

    id: int
    email: str
    name: str
    role: UserRole

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> CurrentPrincipal:
        return cls(
            id=int(claims["sub"]),
            email=str(claims.get("email", "")),
            name=str(claims.get("name", "")),
            role=UserRole(claims.get("role")),
        )

    @property
    def is_teacher(self) -> bool:
        return self.role is UserRole.TEACHER
