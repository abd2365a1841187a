"""Tests for principal and tenant resolution."""

import pytest

from qrmenu.core.exceptions import ConfigurationError
from qrmenu.models import User, UserRole
from qrmenu.services.tenancy import Principal, effective_tenant_id


class TestEffectiveTenantId:

    def test_owner_acts_for_itself(self):
        principal = Principal(id="owner-1", role=UserRole.OWNER)
        assert effective_tenant_id(principal) == "owner-1"

    def test_staff_acts_for_owner(self):
        principal = Principal(id="staff-1", role=UserRole.STAFF, owner_id="owner-1")
        assert effective_tenant_id(principal) == "owner-1"

    def test_staff_without_owner_is_misconfiguration(self):
        principal = Principal(id="staff-1", role=UserRole.STAFF)
        with pytest.raises(ConfigurationError):
            effective_tenant_id(principal)

    def test_owner_id_ignored_for_owner_role(self):
        principal = Principal(id="owner-1", role=UserRole.OWNER, owner_id="someone-else")
        assert effective_tenant_id(principal) == "owner-1"


class TestPrincipalFromUser:

    def test_copies_role_and_linkage(self):
        user = User(
            id="staff-1",
            name="Ken",
            role=UserRole.STAFF,
            owner_id="owner-1",
            permissions=["orders"],
            restaurant_name="Spice Garden",
        )
        principal = Principal.from_user(user)

        assert principal.is_staff
        assert principal.owner_id == "owner-1"
        assert principal.permissions == ("orders",)
        assert principal.restaurant_name == "Spice Garden"

    def test_missing_permissions_become_empty_tuple(self):
        user = User(id="owner-1", name="Asha", role=UserRole.OWNER, permissions=None)
        assert Principal.from_user(user).permissions == ()
