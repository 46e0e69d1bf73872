"""
Tests for role classification.
"""
import uuid

from teamledger.core.roles import Role, classify, role_catalog, ROLE_PRECEDENCE, GRANTABLE_ROLES, PERMISSIONS


class TestClassify:
    def setup_method(self):
        self.owner = uuid.uuid4()
        self.partner = uuid.uuid4()
        self.staff = uuid.uuid4()
        self.stranger = uuid.uuid4()
        self.cashbook_owner_ids = {self.partner}
        self.cashbook_member_ids = {self.staff}

    def _classify(self, user_id):
        return classify(user_id, self.owner, self.cashbook_owner_ids, self.cashbook_member_ids)

    def test_business_owner_is_owner(self):
        assert self._classify(self.owner) == Role.OWNER

    def test_cashbook_owner_is_partner(self):
        assert self._classify(self.partner) == Role.PARTNER

    def test_cashbook_member_is_staff(self):
        assert self._classify(self.staff) == Role.STAFF

    def test_unrelated_user_has_no_role(self):
        assert self._classify(self.stranger) is None

    def test_owner_wins_even_when_listed_elsewhere(self):
        role = classify(self.owner, self.owner, {self.owner}, {self.owner})
        assert role == Role.OWNER

    def test_partner_beats_staff(self):
        # Owns one cashbook and is a member of another
        role = classify(self.partner, self.owner, {self.partner}, {self.partner, self.staff})
        assert role == Role.PARTNER


def test_role_values_are_display_names():
    assert [role.value for role in Role] == ["Owner", "Partner", "Staff"]
    assert Role.STAFF == "Staff"


def test_precedence_orders_owner_partner_staff():
    ordered = sorted(Role, key=ROLE_PRECEDENCE.get)
    assert ordered == [Role.OWNER, Role.PARTNER, Role.STAFF]


def test_owner_cannot_be_granted():
    assert "Owner" not in GRANTABLE_ROLES
    assert set(GRANTABLE_ROLES) == {"Partner", "Staff"}


class TestRoleCatalog:
    def test_lists_every_role_in_precedence_order(self):
        assert [role["name"] for role in role_catalog()] == ["Owner", "Partner", "Staff"]

    def test_permissions_carry_descriptions(self):
        for role in role_catalog():
            assert role["permissions"]
            for permission in role["permissions"]:
                assert permission["description"] == PERMISSIONS[permission["name"]]

    def test_only_managers_can_manage_members(self):
        managing = {
            role["name"]
            for role in role_catalog()
            if any(p["name"] == "manage_members" for p in role["permissions"])
        }
        assert managing == {"Owner", "Partner"}

    def test_staff_can_view_and_use_cashbooks(self):
        staff = next(role for role in role_catalog() if role["name"] == "Staff")
        assert [p["name"] for p in staff["permissions"]] == ["view_roster", "use_cashbooks"]
