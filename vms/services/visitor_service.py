import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vms.core.config import get_settings
from vms.core.exceptions import AppException, UIDAllocationError
from vms.db.models import Profile, UserRole, VisitStatus, VisitorRequest
from vms.schemas.visitor import VisitorRegistration
from vms.services.audit_service import write_audit_log
from vms.services.uid_service import allocate_visitor_uid
from vms.services.visit_status_service import VisitAction, apply_transition, next_status

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_visitor(row: VisitorRequest) -> dict:
    return {
        "id": row.id,
        "name": row.name,
        "designation": row.designation,
        "organization": row.organization,
        "phone": row.phone,
        "email": row.email,
        "purpose": row.purpose,
        "department": row.department,
        "photoUrl": row.photo_url,
        "expectedDate": row.expected_date.isoformat() if row.expected_date else None,
        "expectedTime": row.expected_time,
        "status": row.status.value,
        "visitorUid": row.visitor_uid,
        "rejectionReason": row.rejection_reason,
        "reviewedAt": _iso(row.reviewed_at),
        "checkInTime": _iso(row.check_in_time),
        "checkOutTime": _iso(row.check_out_time),
        "createdAt": _iso(row.created_at),
    }


def register_visitor(db: Session, payload: VisitorRegistration) -> VisitorRequest:
    row = VisitorRequest(
        name=payload.name,
        designation=payload.designation,
        organization=payload.organization,
        phone=payload.phone,
        email=str(payload.email),
        purpose=payload.purpose,
        department=payload.department,
        photo_url=payload.photoUrl,
        expected_date=payload.expectedDate,
        expected_time=payload.expectedTime,
        status=VisitStatus.pending,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("visitor request registered id=%s department=%s", row.id, row.department)
    return row


def department_admin_emails(db: Session, department: str) -> list[str]:
    rows = (
        db.query(Profile.email)
        .filter(
            Profile.role == UserRole.department_admin,
            Profile.department == department,
            Profile.is_active.is_(True),
        )
        .all()
    )
    return [row[0] for row in rows]


def list_pending_requests(db: Session, department: str) -> list[VisitorRequest]:
    return (
        db.query(VisitorRequest)
        .filter(VisitorRequest.department == department, VisitorRequest.status == VisitStatus.pending)
        .order_by(VisitorRequest.created_at.desc())
        .all()
    )


def list_recent_approved(db: Session, department: str, now: datetime | None = None) -> list[VisitorRequest]:
    cutoff = (now or datetime.utcnow()) - timedelta(days=settings.APPROVED_VISITORS_WINDOW_DAYS)
    return (
        db.query(VisitorRequest)
        .filter(
            VisitorRequest.department == department,
            VisitorRequest.status == VisitStatus.approved,
            VisitorRequest.created_at >= cutoff,
        )
        .order_by(VisitorRequest.created_at.desc())
        .all()
    )


def _department_request(db: Session, admin: Profile, request_id: str) -> VisitorRequest:
    row = db.get(VisitorRequest, request_id)
    if not row or row.department != admin.department:
        raise AppException("Unauthorized or Request Not Found", status_code=404)
    return row


def approve_request(db: Session, admin: Profile, request_id: str) -> VisitorRequest:
    row = _department_request(db, admin, request_id)
    next_status(row.status, VisitAction.approve)

    uid = allocate_visitor_uid(db)
    try:
        row = apply_transition(
            db,
            request_id,
            VisitAction.approve,
            {"visitor_uid": uid, "reviewed_by_id": admin.id, "reviewed_at": datetime.utcnow()},
        )
    except IntegrityError as exc:
        # Another approval took the same code between the check and the commit.
        db.rollback()
        logger.warning("visitor uid %s taken at commit for request %s", uid, request_id)
        raise UIDAllocationError() from exc

    write_audit_log(
        db,
        actor_user_id=admin.id,
        action="visitor.approve",
        resource_type="visitor_request",
        resource_id=row.id,
        meta={"visitorUid": uid, "department": row.department},
    )
    return row


def reject_request(db: Session, admin: Profile, request_id: str, reason: str | None = None) -> VisitorRequest:
    row = _department_request(db, admin, request_id)
    reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
    row = apply_transition(
        db,
        request_id,
        VisitAction.reject,
        {"rejection_reason": reason, "reviewed_by_id": admin.id, "reviewed_at": datetime.utcnow()},
    )
    write_audit_log(
        db,
        actor_user_id=admin.id,
        action="visitor.reject",
        resource_type="visitor_request",
        resource_id=row.id,
        meta={"reason": reason, "department": row.department},
    )
    return row


def find_by_uid(db: Session, uid: str) -> VisitorRequest:
    row = (
        db.query(VisitorRequest)
        .filter(VisitorRequest.visitor_uid == uid)
        .order_by(VisitorRequest.created_at.desc())
        .first()
    )
    if not row:
        logger.info("visitor lookup miss uid=%s", uid)
        raise AppException("Visitor not found or invalid UID.", status_code=404)
    return row


def check_in(db: Session, request_id: str, actor_user_id: str | None = None) -> VisitorRequest:
    row = apply_transition(db, request_id, VisitAction.check_in, {"check_in_time": datetime.utcnow()})
    write_audit_log(
        db,
        actor_user_id=actor_user_id,
        action="visitor.check_in",
        resource_type="visitor_request",
        resource_id=row.id,
        meta={"visitorUid": row.visitor_uid},
    )
    return row


def check_out(db: Session, request_id: str, actor_user_id: str | None = None) -> VisitorRequest:
    row = apply_transition(db, request_id, VisitAction.check_out, {"check_out_time": datetime.utcnow()})
    write_audit_log(
        db,
        actor_user_id=actor_user_id,
        action="visitor.check_out",
        resource_type="visitor_request",
        resource_id=row.id,
        meta={"visitorUid": row.visitor_uid},
    )
    return row


def list_checked_in(db: Session) -> list[VisitorRequest]:
    return (
        db.query(VisitorRequest)
        .filter(VisitorRequest.status == VisitStatus.checked_in)
        .order_by(VisitorRequest.check_in_time.desc())
        .all()
    )
