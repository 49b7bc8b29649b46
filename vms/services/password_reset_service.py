import logging

from sqlalchemy.orm import Session

from vms.core.config import get_settings
from vms.core.exceptions import AppException
from vms.core.rate_limit import enforce_rate_limit
from vms.core.security import hash_password
from vms.db.models import PasswordResetRequest, PasswordResetStatus, Profile
from vms.services.audit_service import write_audit_log

settings = get_settings()
logger = logging.getLogger(__name__)

NOT_REGISTERED_MESSAGE = "If this email is registered, a request has been submitted."
ALREADY_PENDING_MESSAGE = "A password reset request is already pending for this email."
SUBMITTED_MESSAGE = "Password reset request submitted. The admin will process it shortly."


def submit_reset_request(db: Session, email: str) -> dict:
    email = (email or "").strip().lower()
    enforce_rate_limit(
        "password-reset",
        email,
        settings.PASSWORD_RESET_RATE_LIMIT_MAX,
        settings.PASSWORD_RESET_RATE_LIMIT_WINDOW_SECONDS,
    )

    # Unknown addresses get the same success-shaped answer as known ones.
    if not db.query(Profile.id).filter(Profile.email == email).first():
        logger.info("password reset requested for unknown email %s", email)
        return {"message": NOT_REGISTERED_MESSAGE}

    pending = (
        db.query(PasswordResetRequest.id)
        .filter(PasswordResetRequest.email == email, PasswordResetRequest.status == PasswordResetStatus.pending)
        .first()
    )
    if pending:
        return {"message": ALREADY_PENDING_MESSAGE}

    db.add(PasswordResetRequest(email=email))
    db.commit()
    logger.info("password reset request queued for %s", email)
    return {"message": SUBMITTED_MESSAGE}


def list_pending_requests(db: Session) -> list[dict]:
    rows = (
        db.query(PasswordResetRequest)
        .filter(PasswordResetRequest.status == PasswordResetStatus.pending)
        .order_by(PasswordResetRequest.created_at.desc())
        .all()
    )
    return [
        {
            "id": row.id,
            "email": row.email,
            "status": row.status.value,
            "createdAt": row.created_at.isoformat() if row.created_at else None,
        }
        for row in rows
    ]


def process_request(db: Session, actor: Profile, request_id: str, new_password: str) -> PasswordResetRequest:
    """Set the new password and close the request. Mailing the credentials is up to the caller."""
    request = (
        db.query(PasswordResetRequest)
        .filter(PasswordResetRequest.id == request_id, PasswordResetRequest.status == PasswordResetStatus.pending)
        .first()
    )
    if not request:
        raise AppException("Request not found or already processed", status_code=404)

    user = db.query(Profile).filter(Profile.email == request.email).first()
    if not user:
        raise AppException("User not found with this email", status_code=404)

    user.password_hash = hash_password(new_password)
    request.status = PasswordResetStatus.completed
    db.commit()
    write_audit_log(
        db,
        actor_user_id=actor.id,
        action="password_reset.process",
        resource_type="password_reset_request",
        resource_id=request.id,
        meta={"email": request.email},
    )
    return request
