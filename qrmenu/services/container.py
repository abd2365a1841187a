"""
Service Container

Wires every collaborator once at startup and hangs it on ``app.state``.
Tests build their own container with in-memory gateways and pass it to
``create_app``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from qrmenu.core.config import Settings
from qrmenu.database import build_engine, build_session_factory
from qrmenu.services.analytics import AnalyticsAggregator
from qrmenu.services.dashboard import DashboardService
from qrmenu.services.events import EventDispatcher
from qrmenu.services.fanout import NotificationFanOut
from qrmenu.services.inventory import InventoryService
from qrmenu.services.menu_catalog import MenuCatalog
from qrmenu.services.menu_extraction import MenuExtractionChain, build_extraction_chain
from qrmenu.services.notifications import BaseSMSService, get_sms_service
from qrmenu.services.orders import OrderLifecycleEngine
from qrmenu.services.printer import BasePrinterService, get_printer_service
from qrmenu.services.push import BasePushService, PushSubscriptionRegistry, get_push_service
from qrmenu.services.qr_registry import QRTokenRegistry
from qrmenu.services.qr_render import BaseQRRenderer, PillowQRRenderer
from qrmenu.services.realtime import RealtimeDirectory
from qrmenu.services.staff import StaffDirectory

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    registry: QRTokenRegistry
    directory: RealtimeDirectory
    sms: BaseSMSService
    push: BasePushService
    push_registry: PushSubscriptionRegistry
    fanout: NotificationFanOut
    dispatcher: EventDispatcher
    orders: OrderLifecycleEngine
    catalog: MenuCatalog
    staff: StaffDirectory
    inventory: InventoryService
    analytics: AnalyticsAggregator
    dashboard: DashboardService
    extraction: MenuExtractionChain
    printer: BasePrinterService

    @classmethod
    def build(
        cls,
        settings: Settings,
        engine: Optional[AsyncEngine] = None,
        sms: Optional[BaseSMSService] = None,
        push: Optional[BasePushService] = None,
        printer: Optional[BasePrinterService] = None,
        renderer: Optional[BaseQRRenderer] = None,
        extraction: Optional[MenuExtractionChain] = None,
    ) -> "ServiceContainer":
        """Any collaborator left as None comes from its environment-driven factory."""
        engine = engine or build_engine(settings.database_url, echo=settings.database_echo)
        session_factory = build_session_factory(engine)

        registry = QRTokenRegistry(renderer or PillowQRRenderer(), settings.frontend_app_url)
        directory = RealtimeDirectory()
        sms = sms or get_sms_service()
        push = push or get_push_service()
        push_registry = PushSubscriptionRegistry()
        printer = printer or get_printer_service()

        fanout = NotificationFanOut(
            directory=directory,
            push_service=push,
            push_registry=push_registry,
            sms_service=sms,
            session_factory=session_factory,
            currency_symbol=settings.currency_symbol,
        )
        dispatcher = EventDispatcher(fanout)

        logger.info(
            f"Service container ready (sms={sms.provider_name}, push={push.provider_name}, "
            f"printer={printer.provider_name})"
        )

        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            registry=registry,
            directory=directory,
            sms=sms,
            push=push,
            push_registry=push_registry,
            fanout=fanout,
            dispatcher=dispatcher,
            orders=OrderLifecycleEngine(registry, dispatcher),
            catalog=MenuCatalog(registry, settings.default_currency),
            staff=StaffDirectory(),
            inventory=InventoryService(),
            analytics=AnalyticsAggregator(registry),
            dashboard=DashboardService(registry),
            extraction=extraction or build_extraction_chain(settings),
            printer=printer,
        )

    async def close(self) -> None:
        """Flush pending notifications, then release database connections."""
        if self.dispatcher.pending:
            logger.info(f"Draining {self.dispatcher.pending} pending notification(s)")
        await self.dispatcher.drain()
        await self.engine.dispose()
