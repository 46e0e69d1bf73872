"""
Custom exceptions for the Team Ledger API.
Every failure the membership core can report has its own class with a
stable code, so callers can map it to one specific message.
"""
from typing import Optional

from fastapi import HTTPException, status


class TeamLedgerException(Exception):
    """Base exception for Team Ledger"""
    code: str = "Error"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


# =============================================================================
# LOOKUP ERRORS
# =============================================================================

class NotFoundError(TeamLedgerException):
    """Business, cashbook, user or invite not found"""
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id: str = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        self.resource = resource
        super().__init__(message)


class InvalidInviteTokenError(TeamLedgerException):
    """No invite exists for the given token"""
    code = "InvalidToken"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "This invite link is invalid"):
        super().__init__(message)


# =============================================================================
# VALIDATION ERRORS (caller mistakes, never retried)
# =============================================================================

class InvalidTargetError(TeamLedgerException):
    """Invite target must be exactly one of email or phone"""
    code = "InvalidTarget"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Provide either an email address or a phone number, not both"):
        super().__init__(message)


class CashbookRequiredError(TeamLedgerException):
    """Staff invites need a cashbook of the same business"""
    code = "CashbookRequired"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str = "Staff invites must name a cashbook belonging to this business"):
        super().__init__(message)


class InvalidRoleError(TeamLedgerException):
    """Role is not one that can be granted"""
    code = "InvalidRole"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, role: str, allowed: Optional[list] = None):
        message = f"Role '{role}' cannot be granted"
        if allowed:
            message = f"{message}. Must be one of: {', '.join(allowed)}"
        super().__init__(message)


# =============================================================================
# STATE CONFLICTS (surfaced as-is, caller decides whether to refresh)
# =============================================================================

class NotPendingError(TeamLedgerException):
    """Invite is no longer pending"""
    code = "NotPending"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, invite_status: str = None):
        message = "This invite is no longer pending"
        if invite_status:
            message = f"This invite is already {invite_status}"
        super().__init__(message)


class InviteExpiredError(TeamLedgerException):
    """Invite is past its expiry time"""
    code = "Expired"
    status_code = status.HTTP_410_GONE

    def __init__(self, message: str = "This invite has expired. Ask for a new one"):
        super().__init__(message)


class AlreadyResolvedError(TeamLedgerException):
    """Invite was already accepted, revoked or expired"""
    code = "AlreadyResolved"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, invite_status: str = None):
        message = "This invite has already been used"
        if invite_status:
            message = f"This invite has already been {invite_status}"
        super().__init__(message)


class AlreadyMemberError(TeamLedgerException):
    """Membership already exists"""
    code = "AlreadyMember"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, scope: str = "cashbook"):
        super().__init__(f"User is already a member of this {scope}")


class NotMemberError(TeamLedgerException):
    """Membership does not exist"""
    code = "NotMember"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, scope: str = "cashbook"):
        super().__init__(f"User is not a member of this {scope}")


class IsOwnerError(TeamLedgerException):
    """Operation is not allowed on an owner"""
    code = "IsOwner"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, scope: str = "cashbook"):
        super().__init__(f"User is the owner of this {scope}")


# =============================================================================
# ACCESS ERRORS
# =============================================================================

class ForbiddenError(TeamLedgerException):
    """Access denied"""
    code = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "You don't have permission to manage this team"):
        super().__init__(message)


# =============================================================================
# DEGRADED RESULTS
# =============================================================================

class DataConsistencyError(TeamLedgerException):
    """
    A roster id has no backing user.
    Never raised to callers: the roster drops the entry and reports it.
    """
    code = "DataConsistency"
    status_code = status.HTTP_200_OK

    def __init__(self, user_id, business_id=None):
        self.user_id = user_id
        self.business_id = business_id
        message = f"No user record for id '{user_id}'"
        if business_id:
            message = f"{message} in business '{business_id}'"
        super().__init__(message)


# HTTP Exception helpers
def raise_unauthorized(message: str = "Could not validate credentials"):
    """Raise 401 HTTPException"""
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )
