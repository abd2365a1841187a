"""Pytest configuration and fixtures."""

from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from qrmenu.core.config import Settings
from qrmenu.core.security import create_access_token
from qrmenu.database import Base, build_engine, build_session_factory, init_db
from qrmenu.main import create_app
from qrmenu.models import QRCode, QRType, User, UserRole
from qrmenu.services.container import ServiceContainer
from qrmenu.services.events import EventDispatcher
from qrmenu.services.menu_extraction import HeuristicMenuParser, MenuExtractionChain
from qrmenu.services.notifications.mock import MockSMSService
from qrmenu.services.orders import OrderLifecycleEngine
from qrmenu.services.printer.mock import MockPrinterService
from qrmenu.services.push.mock import MockPushService
from qrmenu.services.qr_registry import QRTokenRegistry
from qrmenu.services.qr_render import BaseQRRenderer, QRStyle

FRONTEND_URL = "http://menu.test"


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================

class FakeRenderer(BaseQRRenderer):
    """Skips image generation; records the URLs it was asked to render."""

    def __init__(self):
        self.urls: list[str] = []

    def render(self, url: str, style: QRStyle = QRStyle()) -> str:
        self.urls.append(url)
        return "data:image/png;base64,ZmFrZQ=="


class RecordingSink:
    """NotificationSink that only remembers the events it received."""

    def __init__(self):
        self.events: list[Any] = []

    async def handle(self, event: Any) -> None:
        self.events.append(event)


class FakeSender:
    """Stands in for a WebSocket in the realtime directory."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[dict] = []

    async def send_json(self, data: Any) -> None:
        if self.fail:
            raise ConnectionResetError("socket closed")
        self.messages.append(data)


# =============================================================================
# SETTINGS & DATABASE
# =============================================================================

@pytest.fixture
def settings(tmp_path) -> Settings:
    """File-backed SQLite so separate sessions (and threads) share one database."""
    return Settings(
        env_mode="development",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'qrmenu.db'}",
        frontend_app_url=FRONTEND_URL,
        cors_origins="http://localhost:3000",
    )


@pytest.fixture
async def engine(settings):
    engine = build_engine(settings.database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# =============================================================================
# DOMAIN OBJECTS
# =============================================================================

async def add_user(db, **values) -> User:
    user = User(**values)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def owner(db) -> User:
    return await add_user(
        db,
        name="Asha Rao",
        email="owner@spicegarden.test",
        phone="+919800000001",
        role=UserRole.OWNER,
        restaurant_name="Spice Garden",
        restaurant_address="12 MG Road",
    )


@pytest.fixture
async def other_owner(db) -> User:
    return await add_user(
        db,
        name="Marco Bianchi",
        email="owner@trattoria.test",
        role=UserRole.OWNER,
        restaurant_name="Trattoria",
    )


@pytest.fixture
async def staff(db, owner) -> User:
    return await add_user(
        db,
        name="Kitchen Ken",
        email="ken@spicegarden.test",
        role=UserRole.STAFF,
        owner_id=owner.id,
        restaurant_name=owner.restaurant_name,
    )


# =============================================================================
# SERVICES
# =============================================================================

@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def registry(renderer) -> QRTokenRegistry:
    return QRTokenRegistry(renderer, FRONTEND_URL)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def dispatcher(sink) -> EventDispatcher:
    return EventDispatcher(sink)


@pytest.fixture
def orders(registry, dispatcher) -> OrderLifecycleEngine:
    return OrderLifecycleEngine(registry, dispatcher)


@pytest.fixture
async def table_qr(db, registry, owner) -> QRCode:
    return await registry.issue(
        db,
        owner.id,
        name="Table 5",
        qr_type=QRType.TABLE,
        table_number="5",
        restaurant_name=owner.restaurant_name,
    )


@pytest.fixture
def order_items() -> list[dict]:
    return [{"name": "Paneer Tikka", "price": 300, "quantity": 1}]


# =============================================================================
# HTTP CLIENT
# =============================================================================

@pytest.fixture
def sync_db(settings) -> Generator[Session, None, None]:
    """
    Synchronous session on the same SQLite file, used to seed and inspect
    data around TestClient calls (which run on their own event loop).
    """
    sync_engine = create_engine(settings.database_url.replace("+aiosqlite", ""))
    Base.metadata.create_all(sync_engine)
    with Session(sync_engine, expire_on_commit=False) as session:
        yield session
    sync_engine.dispose()


def seed_user(sync_db: Session, **values) -> User:
    user = User(**values)
    sync_db.add(user)
    sync_db.commit()
    return user


@pytest.fixture
def app_services(settings) -> ServiceContainer:
    return ServiceContainer.build(
        settings,
        engine=build_engine(settings.database_url),
        sms=MockSMSService(),
        push=MockPushService(),
        printer=MockPrinterService(),
        renderer=FakeRenderer(),
        extraction=MenuExtractionChain([], [HeuristicMenuParser()], timeout=5),
    )


@pytest.fixture
def client(app_services, sync_db) -> Generator[TestClient, None, None]:
    """Create a test client around an injected service container."""
    app = create_app(app_services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_owner(sync_db) -> User:
    return seed_user(
        sync_db,
        name="Asha Rao",
        email="owner@spicegarden.test",
        phone="+919800000001",
        role=UserRole.OWNER,
        restaurant_name="Spice Garden",
    )


@pytest.fixture
def api_other_owner(sync_db) -> User:
    return seed_user(
        sync_db,
        name="Marco Bianchi",
        email="owner@trattoria.test",
        role=UserRole.OWNER,
        restaurant_name="Trattoria",
    )


@pytest.fixture
def api_staff(sync_db, api_owner) -> User:
    return seed_user(
        sync_db,
        name="Kitchen Ken",
        email="ken@spicegarden.test",
        role=UserRole.STAFF,
        owner_id=api_owner.id,
        restaurant_name=api_owner.restaurant_name,
    )


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def owner_headers(api_owner) -> dict:
    return auth_headers(api_owner)


@pytest.fixture
def staff_headers(api_staff) -> dict:
    return auth_headers(api_staff)


@pytest.fixture
def make_sender():
    return FakeSender
