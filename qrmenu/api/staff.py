"""
Staff management (owners only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services, require_owner
from qrmenu.database import get_db
from qrmenu.models import User
from qrmenu.schemas import (
    ApiResponse,
    ErrorResponse,
    ListResponse,
    StaffCreate,
    StaffResponse,
    StaffUpdate,
)
from qrmenu.services.container import ServiceContainer

router = APIRouter(prefix="/api/staff", tags=["Staff"])


@router.get("", response_model=ListResponse[StaffResponse], summary="List Staff")
async def list_staff(
    owner: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ListResponse[StaffResponse]:
    staff = await services.staff.list_for_owner(db, owner.id)
    return ListResponse(
        count=len(staff),
        data=[StaffResponse.model_validate(member) for member in staff],
    )


@router.post(
    "",
    response_model=ApiResponse[StaffResponse],
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create Staff User",
)
async def create_staff(
    body: StaffCreate,
    owner: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[StaffResponse]:
    staff = await services.staff.create(
        db,
        owner,
        name=body.name,
        pin=body.pin,
        email=body.email,
        phone=body.phone,
        permissions=body.permissions,
        staff_role=body.staff_role,
    )
    return ApiResponse(
        message="Staff user created successfully",
        data=StaffResponse.model_validate(staff),
    )


@router.put(
    "/{staff_id}",
    response_model=ApiResponse[StaffResponse],
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Update Staff User",
)
async def update_staff(
    staff_id: str,
    body: StaffUpdate,
    owner: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse[StaffResponse]:
    staff = await services.staff.update(db, staff_id, owner.id, body.model_dump(exclude_unset=True))
    return ApiResponse(
        message="Staff user updated successfully",
        data=StaffResponse.model_validate(staff),
    )


@router.delete("/{staff_id}", response_model=ApiResponse, summary="Delete Staff User")
async def delete_staff(
    staff_id: str,
    owner: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse:
    await services.staff.delete(db, staff_id, owner.id)
    return ApiResponse(message="Staff user deleted successfully")
