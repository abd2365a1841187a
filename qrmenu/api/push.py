"""
Web push endpoints.

Browsers fetch the VAPID public key, subscribe, and register the
subscription against an owner id or a customer phone.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qrmenu.api.deps import get_services
from qrmenu.core.exceptions import ConfigurationError
from qrmenu.database import get_db
from qrmenu.schemas import ApiResponse, ErrorResponse, PushSubscribe
from qrmenu.services.container import ServiceContainer

router = APIRouter(prefix="/api/push", tags=["Push"])


@router.get("/public-key", response_model=ApiResponse[str], summary="VAPID Public Key")
async def public_key(services: ServiceContainer = Depends(get_services)) -> ApiResponse[str]:
    key = services.push.public_key
    if not key:
        raise ConfigurationError("Web push is not configured")
    return ApiResponse(data=key)


@router.post(
    "/subscribe",
    response_model=ApiResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    summary="Register Push Subscription",
)
async def subscribe(
    body: PushSubscribe,
    db: AsyncSession = Depends(get_db),
    services: ServiceContainer = Depends(get_services),
) -> ApiResponse:
    await services.push_registry.upsert(
        db,
        endpoint=body.endpoint,
        p256dh=body.keys.p256dh,
        auth=body.keys.auth,
        user_id=body.user_id,
        phone=body.phone,
    )
    return ApiResponse(message="Subscription saved")
