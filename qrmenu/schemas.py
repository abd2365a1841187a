"""
Pydantic Schemas for Request/Response Validation

The public API speaks camelCase (``tableNumber``, ``totalAmount``) while
Python code uses snake_case; ``ApiModel`` bridges the two with an alias
generator, and accepts either spelling on input.
"""

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from qrmenu.models import (
    InventoryUnit,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    QRType,
    SpiceLevel,
    StaffRole,
)

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# ENVELOPES
# =============================================================================

class ApiResponse(ApiModel, Generic[T]):
    """Standard success envelope."""
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class ListResponse(ApiModel, Generic[T]):
    success: bool = True
    count: int
    data: List[T]


class ErrorResponse(ApiModel):
    """Standard error response."""
    success: bool = False
    message: str
    error: Optional[Any] = None


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItemIn(ApiModel):
    """Single line of an order, as sent by the customer app."""
    item_id: Optional[str] = None
    name: str = Field(..., min_length=1, max_length=150, examples=["Paneer Tikka"])
    price: float = Field(..., ge=0, allow_inf_nan=False, examples=[300])
    quantity: int = Field(..., ge=1, le=999, examples=[1])


class OrderCreate(ApiModel):
    """Request schema for placing an order against a QR token."""
    token: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1, max_length=100, examples=["Asha"])
    customer_phone: str = Field(..., min_length=5, max_length=20, examples=["9876543210"])
    items: List[OrderItemIn] = Field(default_factory=list)
    total_amount: float = Field(..., allow_inf_nan=False, examples=[300])
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class StatusUpdate(ApiModel):
    # Kept as a plain string: unknown values are rejected by the engine
    status: str


class OrderResponse(ApiModel):
    """Owner-facing order representation."""
    id: str
    order_number: str
    table_number: Optional[str]
    customer_name: str
    customer_phone: str
    items: List[dict]
    total_amount: float
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    notes: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class RestaurantSummary(ApiModel):
    name: Optional[str] = None
    email: Optional[str] = None


class PublicOrderResponse(OrderResponse):
    """Customer-facing order representation."""
    restaurant: RestaurantSummary


class CustomerOrderResponse(ApiModel):
    id: str
    restaurant_name: Optional[str]
    table_number: Optional[str]
    items: List[dict]
    total_amount: float
    status: OrderStatus
    payment_method: PaymentMethod
    created_at: datetime


class OrderStatusResponse(ApiModel):
    id: str
    status: OrderStatus
    completed_at: Optional[datetime] = None


class OrderListData(ApiModel):
    total: int
    orders: List[OrderResponse]


# =============================================================================
# QR SCHEMAS
# =============================================================================

class QRGenerate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: QRType = QRType.GLOBAL
    table_number: Optional[str] = Field(None, max_length=20)

    @field_validator("table_number")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class QRCodeResponse(ApiModel):
    id: str
    name: str
    type: QRType
    table_number: Optional[str]
    token: str
    url: str
    qr_code_data: str
    scans: int
    created_at: datetime
    last_scanned_at: Optional[datetime] = None


class ScanResponse(ApiModel):
    url: str
    table_number: Optional[str]


# =============================================================================
# MENU SCHEMAS
# =============================================================================

class MenuItemCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=150)
    description: str = Field(default="", max_length=1000)
    price: float = Field(..., ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    category: str = Field(..., min_length=1, max_length=50)
    image: str = ""
    is_veg: bool = True
    spice_level: SpiceLevel = SpiceLevel.NONE
    preparation_time: int = Field(default=15, ge=0, le=600)


class MenuItemUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    image: Optional[str] = None
    is_available: Optional[bool] = None
    is_veg: Optional[bool] = None
    spice_level: Optional[SpiceLevel] = None
    preparation_time: Optional[int] = Field(None, ge=0, le=600)


class MenuBulkRow(MenuItemUpdate):
    """Rows with an id update that item, rows without one are created."""
    id: Optional[str] = None


class MenuBulkUpsert(ApiModel):
    items: List[MenuBulkRow]


class AvailabilityUpdate(ApiModel):
    is_available: bool


class MenuItemResponse(ApiModel):
    id: str
    name: str
    description: str
    price: float
    currency: str
    category: str
    image: str
    is_available: bool
    is_veg: bool
    spice_level: SpiceLevel
    preparation_time: int


class RestaurantProfile(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    restaurant_logo: Optional[str] = None


class PublicMenuResponse(ApiModel):
    restaurant: RestaurantProfile
    table_number: Optional[str] = None
    items: List[MenuItemResponse]
    categories: dict[str, List[MenuItemResponse]]


class ExtractedItemResponse(ApiModel):
    name: str
    description: str = ""
    price: float
    currency: str
    category: str


class MenuExtractionResponse(ApiModel):
    items: List[ExtractedItemResponse]
    method: str
    needs_manual_review: bool = True
    extracted_text: Optional[str] = None


# =============================================================================
# STAFF SCHEMAS
# =============================================================================

class StaffCreate(ApiModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    pin: str = Field(..., pattern=r"^\d{6}$")
    permissions: List[str] = Field(default_factory=list)
    staff_role: StaffRole = StaffRole.WAITER


class StaffUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: Optional[bool] = None
    permissions: Optional[List[str]] = None
    staff_role: Optional[StaffRole] = None


class StaffResponse(ApiModel):
    id: str
    name: str
    email: Optional[str]
    phone: Optional[str]
    staff_role: Optional[StaffRole]
    permissions: List[str]
    is_active: bool
    owner_id: Optional[str]
    created_at: datetime


# =============================================================================
# INVENTORY SCHEMAS
# =============================================================================

class InventoryCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=150)
    quantity: float = Field(default=0, ge=0)
    unit: InventoryUnit = InventoryUnit.PCS
    min_level: float = Field(default=10, ge=0)
    cost_per_unit: float = Field(default=0, ge=0)


class InventoryUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    quantity: Optional[float] = Field(None, ge=0)
    unit: Optional[InventoryUnit] = None
    min_level: Optional[float] = Field(None, ge=0)
    cost_per_unit: Optional[float] = Field(None, ge=0)


class InventoryResponse(ApiModel):
    id: str
    name: str
    quantity: float
    unit: InventoryUnit
    min_level: float
    cost_per_unit: float
    is_low_stock: bool
    last_updated: datetime


# =============================================================================
# PUSH SCHEMAS
# =============================================================================

class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscribe(ApiModel):
    endpoint: str = Field(..., min_length=1)
    keys: PushKeys
    user_id: Optional[str] = None
    phone: Optional[str] = None


# =============================================================================
# PRINTER SCHEMAS
# =============================================================================

class PrinterSettingsIn(ApiModel):
    network_ip: Optional[str] = None
    network_port: int = 9100
    paper_width: Optional[int] = Field(None, ge=24, le=64)


class PrintRequest(ApiModel):
    printer_settings: Optional[PrinterSettingsIn] = None


class PrintResponse(ApiModel):
    printer: str
    job_id: Optional[str] = None
    timestamp: datetime


# =============================================================================
# HEALTH
# =============================================================================

class HealthResponse(ApiModel):
    """Health check response."""
    status: str
    database: str
    sms_service: str
    push_service: str
    realtime_connections: int
    timestamp: datetime
