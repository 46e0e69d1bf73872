# Models package - normalized database models
from teamledger.models.user import User
from teamledger.models.business import Business, Cashbook, CashbookMember, BusinessMember
from teamledger.models.invite import Invite
from teamledger.models.activity import ActivityLog
