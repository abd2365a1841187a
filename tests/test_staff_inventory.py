"""Tests for staff management and inventory."""

import pytest

from qrmenu.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from qrmenu.core.security import verify_password
from qrmenu.models import InventoryUnit, StaffRole, UserRole
from qrmenu.services.inventory import InventoryService
from qrmenu.services.staff import StaffDirectory


@pytest.fixture
def directory() -> StaffDirectory:
    return StaffDirectory()


@pytest.fixture
def inventory() -> InventoryService:
    return InventoryService()


class TestStaffDirectory:

    async def test_create_links_to_owner(self, db, directory, owner):
        staff = await directory.create(
            db, owner, name=" Priya ", pin="123456", email="Priya@SpiceGarden.test",
            permissions=["orders"], staff_role=StaffRole.KITCHEN,
        )

        assert staff.role == UserRole.STAFF
        assert staff.owner_id == owner.id
        assert staff.name == "Priya"
        assert staff.email == "priya@spicegarden.test"
        assert staff.restaurant_name == "Spice Garden"
        assert staff.staff_role == StaffRole.KITCHEN
        assert verify_password("123456", staff.password_hash)
        assert not verify_password("654321", staff.password_hash)

    @pytest.mark.parametrize("pin", ["12345", "abcdef", ""])
    async def test_pin_must_be_six_digits(self, db, directory, owner, pin):
        with pytest.raises(ValidationError):
            await directory.create(db, owner, name="Priya", pin=pin, phone="9000000009")

    async def test_needs_email_or_phone(self, db, directory, owner):
        with pytest.raises(ValidationError):
            await directory.create(db, owner, name="Priya", pin="123456")

    async def test_duplicate_email(self, db, directory, owner, staff):
        with pytest.raises(ConflictError):
            await directory.create(db, owner, name="Ken Two", pin="123456", email=staff.email)

    async def test_duplicate_phone(self, db, directory, owner):
        with pytest.raises(ConflictError) as exc_info:
            await directory.create(db, owner, name="Copycat", pin="123456", phone=owner.phone)
        assert exc_info.value.message == "A user with this phone already exists"

    async def test_list_only_own_staff(self, db, directory, owner, other_owner, staff):
        await directory.create(db, other_owner, name="Luca", pin="123456", phone="9000000010")

        members = await directory.list_for_owner(db, owner.id)
        assert [m.id for m in members] == [staff.id]

    async def test_update(self, db, directory, owner, staff):
        updated = await directory.update(db, staff.id, owner.id, {"is_active": False, "name": None})

        assert not updated.is_active
        assert updated.name == "Kitchen Ken"

    async def test_update_keeps_own_email(self, db, directory, owner, staff):
        updated = await directory.update(db, staff.id, owner.id, {"email": staff.email})
        assert updated.email == staff.email

    async def test_other_owner_cannot_touch_staff(self, db, directory, other_owner, staff):
        with pytest.raises(ForbiddenError):
            await directory.delete(db, staff.id, other_owner.id)

    async def test_owner_is_not_staff(self, db, directory, owner, other_owner):
        with pytest.raises(NotFoundError):
            await directory.update(db, other_owner.id, owner.id, {"name": "Nope"})

    async def test_delete(self, db, directory, owner, staff):
        await directory.delete(db, staff.id, owner.id)
        assert await directory.list_for_owner(db, owner.id) == []


class TestInventory:

    async def test_create_and_low_stock_flag(self, db, inventory, owner):
        item = await inventory.create(db, owner.id, {"name": " Basmati Rice ", "quantity": 5, "unit": "kg"})

        assert item.name == "Basmati Rice"
        assert item.unit == InventoryUnit.KG
        assert item.min_level == 10
        assert item.is_low_stock

    async def test_duplicate_name_case_insensitive(self, db, inventory, owner, other_owner):
        first = await inventory.create(db, owner.id, {"name": "Paneer"})

        with pytest.raises(ConflictError) as exc_info:
            await inventory.create(db, owner.id, {"name": "paneer"})
        assert exc_info.value.detail == {"existingItemId": first.id}

        # Names are unique per tenant only
        await inventory.create(db, other_owner.id, {"name": "Paneer"})

    async def test_requires_name(self, db, inventory, owner):
        with pytest.raises(ValidationError):
            await inventory.create(db, owner.id, {"quantity": 3})

    async def test_negative_quantity(self, db, inventory, owner):
        with pytest.raises(ValidationError):
            await inventory.create(db, owner.id, {"name": "Oil", "quantity": -1})

    async def test_update_restock(self, db, inventory, owner):
        item = await inventory.create(db, owner.id, {"name": "Milk", "quantity": 2, "unit": "l"})
        item = await inventory.update(db, item.id, owner.id, {"quantity": 40})

        assert item.quantity == 40
        assert not item.is_low_stock

    async def test_rename_to_existing_name_conflicts(self, db, inventory, owner):
        await inventory.create(db, owner.id, {"name": "Milk"})
        sugar = await inventory.create(db, owner.id, {"name": "Sugar"})

        with pytest.raises(ConflictError):
            await inventory.update(db, sugar.id, owner.id, {"name": "MILK"})

    async def test_other_tenant_item_is_not_found(self, db, inventory, owner, other_owner):
        item = await inventory.create(db, owner.id, {"name": "Milk"})
        with pytest.raises(NotFoundError):
            await inventory.delete(db, item.id, other_owner.id)

    async def test_list_sorted_by_name(self, db, inventory, owner):
        for name in ("Sugar", "Atta", "Milk"):
            await inventory.create(db, owner.id, {"name": name})

        items = await inventory.list_for_tenant(db, owner.id)
        assert [i.name for i in items] == ["Atta", "Milk", "Sugar"]
