from vms.db.models.audit import AuditLog
from vms.db.models.device_session import DeviceSession
from vms.db.models.password_reset import PasswordResetRequest, PasswordResetStatus
from vms.db.models.profile import Profile, UserRole
from vms.db.models.revoked_token import RevokedToken
from vms.db.models.visitor_request import UID_BEARING_STATUSES, VisitStatus, VisitorRequest

__all__ = [
    "AuditLog",
    "DeviceSession",
    "PasswordResetRequest",
    "PasswordResetStatus",
    "Profile",
    "RevokedToken",
    "UID_BEARING_STATUSES",
    "UserRole",
    "VisitStatus",
    "VisitorRequest",
]
