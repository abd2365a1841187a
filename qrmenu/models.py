"""
SQLAlchemy Database Models

Tenants (owners) and their staff, QR tokens, menu items, orders,
push subscriptions and inventory.

Timestamps are stored as naive UTC so SQLite and PostgreSQL behave
the same way.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from qrmenu.database import Base


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def _str_enum(enum_cls: type[enum.Enum], length: int = 20) -> Enum:
    """Persist the lower-case wire value, not the member name."""
    return Enum(
        enum_cls,
        values_callable=_enum_values,
        native_enum=False,
        validate_strings=True,
        length=length,
    )


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, enum.Enum):
    OWNER = "owner"
    STAFF = "staff"


class StaffRole(str, enum.Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    WAITER = "waiter"
    KITCHEN = "kitchen"
    CASHIER = "cashier"


class QRType(str, enum.Enum):
    GLOBAL = "global"
    TABLE = "table"


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class SpiceLevel(str, enum.Enum):
    NONE = "none"
    MILD = "mild"
    MEDIUM = "medium"
    HOT = "hot"
    VERY_HOT = "very-hot"


class InventoryUnit(str, enum.Enum):
    KG = "kg"
    G = "g"
    L = "l"
    ML = "ml"
    PCS = "pcs"
    BOX = "box"
    CAN = "can"


# =============================================================================
# MODELS
# =============================================================================

class User(Base):
    """
    A restaurant owner (the tenant) or one of its staff accounts.

    Staff rows carry ``owner_id``; every tenant-scoped query runs
    against the owner's id, never the staff member's own id.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)

    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    phone = Column(String(20), nullable=True, index=True)
    password_hash = Column(String(255), nullable=True)

    # Restaurant branding (owners)
    restaurant_name = Column(String(150), nullable=True)
    restaurant_address = Column(String(255), nullable=True)
    restaurant_description = Column(Text, nullable=True)
    restaurant_logo = Column(String(500), nullable=True)

    role = Column(_str_enum(UserRole), default=UserRole.OWNER, nullable=False)
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=True, index=True)
    staff_role = Column(_str_enum(StaffRole), nullable=True)
    permissions = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User {self.id} - {self.role.value} - {self.name}>"


class QRCode(Base):
    """Opaque token that attributes anonymous customers to a tenant/table."""
    __tablename__ = "qr_codes"
    __table_args__ = (Index("ix_qr_codes_user_active", "user_id", "is_active"),)

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)

    name = Column(String(100), nullable=False)
    type = Column(_str_enum(QRType), default=QRType.GLOBAL, nullable=False)
    table_number = Column(String(20), nullable=True)

    token = Column(String(64), nullable=False, unique=True, index=True)
    url = Column(String(500), nullable=False)
    qr_code_data = Column(Text, nullable=False)

    scans = Column(Integer, default=0, nullable=False)
    last_scanned_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<QRCode {self.token} - {self.type.value} - table={self.table_number}>"


class MenuItem(Base):
    __tablename__ = "menu_items"
    __table_args__ = (
        Index("ix_menu_items_user_active", "user_id", "is_active"),
        Index("ix_menu_items_user_category", "user_id", "category"),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)

    name = Column(String(150), nullable=False)
    description = Column(Text, default="", nullable=False)
    price = Column(Float, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    category = Column(String(50), nullable=False)
    image = Column(String(500), default="", nullable=False)

    is_available = Column(Boolean, default=True, nullable=False)
    is_veg = Column(Boolean, default=True, nullable=False)
    spice_level = Column(_str_enum(SpiceLevel), default=SpiceLevel.NONE, nullable=False)
    preparation_time = Column(Integer, default=15, nullable=False)  # minutes
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<MenuItem {self.name} - {self.price} {self.currency}>"


class Order(Base):
    """
    A customer order placed against a QR token.

    ``items`` holds name/price/quantity snapshots so later menu edits
    never rewrite history. ``total_amount`` is the client-supplied total.
    """
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_user_status", "user_id", "status"),
        Index("ix_orders_created_at", "created_at"),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    qr_token = Column(String(64), nullable=False, index=True)
    table_number = Column(String(20), nullable=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=False)
    customer_phone = Column(String(20), nullable=False, index=True)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    items = Column(JSON, nullable=False)
    total_amount = Column(Float, nullable=False)
    notes = Column(Text, default="", nullable=False)

    # =========================================================================
    # PAYMENT INFO
    # =========================================================================
    payment_method = Column(_str_enum(PaymentMethod), default=PaymentMethod.CASH, nullable=False)
    payment_status = Column(_str_enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(_str_enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime, nullable=True)

    @property
    def order_number(self) -> str:
        """Short human-facing reference: last 8 characters of the id."""
        return self.id[-8:].upper()

    def __repr__(self):
        return f"<Order #{self.order_number} - {self.customer_name} - {self.status.value}>"


class PushSubscription(Base):
    """Browser push endpoint, targeted at a tenant or a customer phone."""
    __tablename__ = "push_subscriptions"

    id = Column(String(32), primary_key=True, default=new_id)
    endpoint = Column(String(1000), nullable=False, unique=True)
    p256dh = Column(String(255), nullable=False)
    auth = Column(String(255), nullable=False)

    user_id = Column(String(32), nullable=True, index=True)
    phone = Column(String(20), nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def as_webpush_info(self) -> dict:
        """Shape expected by pywebpush."""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }

    def __repr__(self):
        return f"<PushSubscription {self.id} user={self.user_id} phone={self.phone}>"


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(String(32), primary_key=True, default=new_id)
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(150), nullable=False)
    quantity = Column(Float, default=0, nullable=False)
    unit = Column(_str_enum(InventoryUnit), default=InventoryUnit.PCS, nullable=False)
    min_level = Column(Float, default=10, nullable=False)
    cost_per_unit = Column(Float, default=0, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_updated = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.min_level

    def __repr__(self):
        return f"<InventoryItem {self.name} {self.quantity}{self.unit.value}>"
