"""HTTP and WebSocket routers."""

from fastapi import APIRouter

from qrmenu.api import analytics, dashboard, inventory, menu, orders, printer, push, qr, realtime, staff

api_router = APIRouter()
api_router.include_router(orders.router)
api_router.include_router(qr.router)
api_router.include_router(menu.router)
api_router.include_router(staff.router)
api_router.include_router(inventory.router)
api_router.include_router(push.router)
api_router.include_router(printer.router)
api_router.include_router(analytics.router)
api_router.include_router(dashboard.router)
api_router.include_router(realtime.router)

__all__ = ["api_router"]
