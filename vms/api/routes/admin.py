import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from vms.api.deps import require_roles
from vms.db.models import Profile, UserRole, VisitStatus
from vms.db.session import get_db
from vms.schemas.users import PasswordResetProcess, UserCreate
from vms.services import analytics_service, email_service, password_reset_service, user_service
from vms.services.audit_service import list_audit_logs

router = APIRouter()
logger = logging.getLogger(__name__)

require_super_admin = require_roles(UserRole.super_admin.value)


@router.get("/users")
def users(db: Session = Depends(get_db), _: Profile = Depends(require_super_admin)):
    return {"data": user_service.list_users(db)}


@router.post("/users")
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_super_admin),
):
    return {"data": user_service.create_or_update_user(db, admin, payload)}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_super_admin),
):
    return {"data": user_service.delete_user(db, admin, user_id)}


@router.get("/password-resets")
def password_resets(db: Session = Depends(get_db), _: Profile = Depends(require_super_admin)):
    return {"data": password_reset_service.list_pending_requests(db)}


@router.post("/password-resets/{request_id}/process")
async def process_password_reset(
    request_id: str,
    payload: PasswordResetProcess,
    db: Session = Depends(get_db),
    admin: Profile = Depends(require_super_admin),
):
    request = password_reset_service.process_request(db, admin, request_id, payload.newPassword)
    email_sent = await email_service.send_password_reset_email(request.email, payload.newPassword)
    if email_sent:
        message = "Password updated and email sent successfully!"
    else:
        logger.warning("password reset email not delivered to %s", request.email)
        message = "Password updated but email failed to send. Manual notification required."
    return {"data": {"message": message, "emailSent": email_sent}}


@router.get("/analytics/summary")
def analytics_summary(db: Session = Depends(get_db), _: Profile = Depends(require_super_admin)):
    return {"data": analytics_service.summary(db)}


@router.get("/analytics/logs")
def analytics_logs(
    department: str | None = Query(default=None),
    status: VisitStatus | None = Query(default=None),
    db: Session = Depends(get_db),
    _: Profile = Depends(require_super_admin),
):
    return {"data": analytics_service.visitor_logs(db, department=department, status=status)}


@router.get("/analytics/logs.csv")
def analytics_logs_csv(
    department: str | None = Query(default=None),
    status: VisitStatus | None = Query(default=None),
    db: Session = Depends(get_db),
    _: Profile = Depends(require_super_admin),
):
    logs = analytics_service.visitor_logs(db, department=department, status=status)
    return Response(
        content=analytics_service.logs_to_csv(logs),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{analytics_service.csv_filename()}"'},
    )


@router.get("/audit-logs")
def audit_logs(
    limit: int = Query(default=200, ge=1, le=1000),
    db: Session = Depends(get_db),
    _: Profile = Depends(require_super_admin),
):
    return {"data": list_audit_logs(db, limit=limit)}
