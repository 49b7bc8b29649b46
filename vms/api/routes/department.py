import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vms.api.deps import require_department_admin
from vms.db.models import Profile
from vms.db.session import get_db
from vms.schemas.visitor import RejectRequest
from vms.services import analytics_service, email_service, visitor_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/requests")
def pending_requests(db: Session = Depends(get_db), admin: Profile = Depends(require_department_admin)):
    rows = visitor_service.list_pending_requests(db, admin.department)
    return {"data": [visitor_service.serialize_visitor(row) for row in rows]}


@router.get("/approved")
def approved_requests(db: Session = Depends(get_db), admin: Profile = Depends(require_department_admin)):
    rows = visitor_service.list_recent_approved(db, admin.department)
    return {"data": [visitor_service.serialize_visitor(row) for row in rows]}


@router.post("/requests/{request_id}/approve")
async def approve_request(
    request_id: str,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_department_admin),
):
    row = visitor_service.approve_request(db, admin, request_id)
    email_sent = await email_service.send_approval_email(
        to_email=row.email,
        visitor_name=row.name,
        uid=row.visitor_uid,
        department=row.department,
    )
    if not email_sent:
        logger.warning("approval email not delivered for request %s", row.id)
    return {
        "data": {
            "message": f"Visitor approved with UID: {row.visitor_uid}",
            "visitorUid": row.visitor_uid,
            "emailSent": email_sent,
            "request": visitor_service.serialize_visitor(row),
        }
    }


@router.post("/requests/{request_id}/reject")
def reject_request(
    request_id: str,
    payload: RejectRequest | None = None,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_department_admin),
):
    row = visitor_service.reject_request(db, admin, request_id, payload.reason if payload else None)
    return {
        "data": {
            "message": "Visitor request rejected.",
            "request": visitor_service.serialize_visitor(row),
        }
    }


@router.get("/analytics")
def department_analytics(db: Session = Depends(get_db), admin: Profile = Depends(require_department_admin)):
    return {"data": analytics_service.department_summary(db, admin.department)}
