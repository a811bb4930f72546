"""Course-level authorization predicates.

Every predicate is a single ledger lookup and returns a plain bool. Callers
decide whether a failed check degrades to an empty result or becomes an
authorization failure.
"""

from __future__ import annotations

from classroom_common.domain_enums import MembershipRole

from services.classroom_service.protocols import MembershipLedgerProtocol


class AuthorizationGuard:
    def __init__(self, ledger: MembershipLedgerProtocol) -> None:
        self._ledger = ledger

    async def is_enrolled(self, course_id: int, principal_id: int) -> bool:
        """True iff the principal holds any membership in the course."""
        return await self._ledger.get_role(course_id, principal_id) is not None

    async def is_teacher_of(self, course_id: int, principal_id: int) -> bool:
        return await self._ledger.get_role(course_id, principal_id) is MembershipRole.TEACHER

    async def is_owner_or_teacher(
        self, resource_owner_id: int, course_id: int, principal_id: int
    ) -> bool:
        if resource_owner_id == principal_id:
            return True
        return await self.is_teacher_of(course_id, principal_id)
