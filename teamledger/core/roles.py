"""
Role and invite status constants, and the role classifier.
"""
from enum import Enum
from typing import AbstractSet, Optional, Hashable


class Role(str, Enum):
    OWNER = "Owner"
    PARTNER = "Partner"
    STAFF = "Staff"


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


# Roles that can be handed out through an invite or a direct add
GRANTABLE_ROLES = (Role.PARTNER.value, Role.STAFF.value)

# Lower sorts first
ROLE_PRECEDENCE = {Role.OWNER: 0, Role.PARTNER: 1, Role.STAFF: 2}

TERMINAL_STATUSES = frozenset({
    InviteStatus.ACCEPTED.value,
    InviteStatus.EXPIRED.value,
    InviteStatus.REVOKED.value,
})


def classify(
    user_id: Hashable,
    business_owner_id: Hashable,
    cashbook_owner_ids: AbstractSet,
    cashbook_member_ids: AbstractSet,
) -> Optional[Role]:
    """
    Role of a user within one business.

    Owner beats Partner beats Staff: a user who owns one cashbook and is a
    member of another is a Partner. Returns None when the user has no
    relation to the business.
    """
    if user_id == business_owner_id:
        return Role.OWNER
    if user_id in cashbook_owner_ids:
        return Role.PARTNER
    if user_id in cashbook_member_ids:
        return Role.STAFF
    return None


# =============================================================================
# ROLE CATALOG
# =============================================================================

PERMISSIONS = {
    "view_roster": "See everyone in the business and their role",
    "manage_members": "Add or remove partners and staff",
    "manage_invites": "Send, resend and revoke invites",
    "view_activity": "Read the team activity log",
    "manage_own_cashbooks": "Add or remove members of cashbooks you own",
    "use_cashbooks": "Record entries in cashbooks you belong to",
}

ROLE_CATALOG = [
    {
        "name": Role.OWNER.value,
        "description": "Owns the business and every part of its team",
        "permissions": [
            "view_roster", "manage_members", "manage_invites",
            "view_activity", "manage_own_cashbooks", "use_cashbooks",
        ],
    },
    {
        "name": Role.PARTNER.value,
        "description": "Owns at least one cashbook in the business and helps manage the team",
        "permissions": [
            "view_roster", "manage_members", "manage_invites",
            "view_activity", "manage_own_cashbooks", "use_cashbooks",
        ],
    },
    {
        "name": Role.STAFF.value,
        "description": "Works in the cashbooks they were added to",
        "permissions": ["view_roster", "use_cashbooks"],
    },
]


def role_catalog() -> list:
    """Each role with its permissions expanded to {name, description}."""
    return [
        {
            "id": entry["name"].lower(),
            "name": entry["name"],
            "description": entry["description"],
            "permissions": [
                {"name": name, "description": PERMISSIONS[name]}
                for name in entry["permissions"]
            ],
        }
        for entry in ROLE_CATALOG
    ]
