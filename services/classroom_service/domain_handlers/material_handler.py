"""Course materials: reading lists, slides and handouts posted by teachers."""

from __future__ import annotations

import secrets
from typing import Any

from classroom_service_libs.error_handling import Outcome
from classroom_service_libs.logging_utils import create_service_logger

from services.classroom_service.api.schemas import (
    MaterialCreateRequest,
    MaterialResponse,
    MaterialUpdateRequest,
    MessageResponse,
)
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import (
    CourseRepositoryProtocol,
    MaterialRepositoryProtocol,
)

logger = create_service_logger("classroom_service.domain_handlers.material")

# Card colours handed out when the teacher does not pick one
MATERIAL_COLORS = ("#1967d2", "#1e8e3e", "#e37400", "#d93025", "#9334e6", "#129eaf", "#c26401")


class MaterialHandler:
    def __init__(
        self,
        material_repo: MaterialRepositoryProtocol,
        course_repo: CourseRepositoryProtocol,
        guard: AuthorizationGuard,
    ) -> None:
        self._material_repo = material_repo
        self._course_repo = course_repo
        self._guard = guard

    async def list_course_materials(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[list[MaterialResponse]]:
        if not await self._guard.is_enrolled(course_id, principal.id):
            return Outcome.success([])
        rows = await self._material_repo.list_for_course(course_id)
        return Outcome.success([MaterialResponse.model_validate(m) for m in rows])

    async def get_material(
        self, principal: CurrentPrincipal, material_id: int
    ) -> Outcome[MaterialResponse]:
        material = await self._material_repo.get_by_id(material_id)
        if material is None or not await self._guard.is_enrolled(
            material.course_id, principal.id
        ):
            return Outcome.not_found("Material", material_id)
        return Outcome.success(MaterialResponse.model_validate(material))

    async def create_material(
        self, principal: CurrentPrincipal, course_id: int, request: MaterialCreateRequest
    ) -> Outcome[MaterialResponse]:
        if await self._course_repo.get_by_id(course_id) is None:
            return Outcome.not_found("Course", course_id)
        if not await self._guard.is_teacher_of(course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can post materials")

        fields = request.model_dump()
        fields["color"] = request.color or secrets.choice(MATERIAL_COLORS)
        material = await self._material_repo.create_material(course_id, principal.id, fields)
        logger.info(
            "Material created",
            extra={"material_id": material.id, "course_id": course_id},
        )
        return Outcome.success(MaterialResponse.model_validate(material))

    async def update_material(
        self, principal: CurrentPrincipal, material_id: int, request: MaterialUpdateRequest
    ) -> Outcome[MaterialResponse]:
        material = await self._material_repo.get_by_id(material_id)
        if material is None:
            return Outcome.not_found("Material", material_id)
        if not await self._guard.is_teacher_of(material.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can update materials")

        fields: dict[str, Any] = request.model_dump(exclude_unset=True)
        updated = await self._material_repo.update_material(material_id, fields)
        if updated is None:
            return Outcome.not_found("Material", material_id)
        return Outcome.success(MaterialResponse.model_validate(updated))

    async def delete_material(
        self, principal: CurrentPrincipal, material_id: int
    ) -> Outcome[MessageResponse]:
        material = await self._material_repo.get_by_id(material_id)
        if material is None:
            return Outcome.not_found("Material", material_id)
        if not await self._guard.is_teacher_of(material.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can delete materials")

        await self._material_repo.delete_material(material_id)
        return Outcome.success(MessageResponse(message="Material deleted"))
