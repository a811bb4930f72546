"""Course material routes."""

from __future__ import annotations

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, status

from services.classroom_service.api.request_utils import unwrap
from services.classroom_service.api.schemas import (
    MaterialCreateRequest,
    MaterialResponse,
    MaterialUpdateRequest,
    MessageResponse,
)
from services.classroom_service.domain_handlers.material_handler import MaterialHandler
from services.classroom_service.principal import CurrentPrincipal

router = APIRouter(prefix="/api", tags=["materials"], route_class=DishkaRoute)


@router.get("/courses/{course_id}/materials", response_model=list[MaterialResponse])
async def list_course_materials(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[MaterialHandler],
    correlation_id: FromDishka[UUID],
) -> list[MaterialResponse]:
    return unwrap(
        await handler.list_course_materials(principal, course_id),
        "list_course_materials",
        correlation_id,
    )


@router.post(
    "/courses/{course_id}/materials",
    response_model=MaterialResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_material(
    course_id: int,
    payload: MaterialCreateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[MaterialHandler],
    correlation_id: FromDishka[UUID],
) -> MaterialResponse:
    return unwrap(
        await handler.create_material(principal, course_id, payload),
        "create_material",
        correlation_id,
    )


@router.get("/materials/{material_id}", response_model=MaterialResponse)
async def get_material(
    material_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[MaterialHandler],
    correlation_id: FromDishka[UUID],
) -> MaterialResponse:
    return unwrap(
        await handler.get_material(principal, material_id), "get_material", correlation_id
    )


@router.put("/materials/{material_id}", response_model=MaterialResponse)
async def update_material(
    material_id: int,
    payload: MaterialUpdateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[MaterialHandler],
    correlation_id: FromDishka[UUID],
) -> MaterialResponse:
    return unwrap(
        await handler.update_material(principal, material_id, payload),
        "update_material",
        correlation_id,
    )


@router.delete("/materials/{material_id}", response_model=MessageResponse)
async def delete_material(
    material_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[MaterialHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.delete_material(principal, material_id), "delete_material", correlation_id
    )
