import logging
from time import perf_counter

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from vms.core.config import get_settings
from vms.core.constants import MAX_PHOTO_SIZE_BYTES
from vms.core.rate_limit import enforce_rate_limit
from vms.db.session import get_db
from vms.schemas.visitor import VisitorRegistration
from vms.services import email_service, media_service, visitor_service

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.post("/register", status_code=201)
async def register_visitor(payload: VisitorRegistration, request: Request, db: Session = Depends(get_db)):
    started = perf_counter()
    enforce_rate_limit(
        "register",
        request.client.host if request.client else "unknown",
        settings.PUBLIC_FORM_RATE_LIMIT_MAX,
        settings.PUBLIC_FORM_RATE_LIMIT_WINDOW_SECONDS,
    )
    row = visitor_service.register_visitor(db, payload)

    notified = await email_service.notify_department_admins(
        visitor_service.department_admin_emails(db, row.department),
        visitor_name=row.name,
        visitor_email=row.email,
        organization=row.organization,
        department=row.department,
        purpose=row.purpose,
    )
    logger.info(
        "visitor.register completed in %.1fms id=%s notified=%s",
        (perf_counter() - started) * 1000,
        row.id,
        notified,
    )
    return {
        "data": {
            "id": row.id,
            "status": row.status.value,
            "message": "Registration submitted successfully. You will receive an email once approved.",
            "notifications": notified,
        }
    }


@router.post("/photo", status_code=201)
async def upload_visitor_photo(request: Request, file: UploadFile = File(...)):
    """Store the visitor photo; the returned photoUrl goes into the registration form."""
    enforce_rate_limit(
        "photo-upload",
        request.client.host if request.client else "unknown",
        settings.PUBLIC_FORM_RATE_LIMIT_MAX,
        settings.PUBLIC_FORM_RATE_LIMIT_WINDOW_SECONDS,
    )
    # Read at most one byte past the limit.
    content = await file.read(MAX_PHOTO_SIZE_BYTES + 1)
    photo_url = media_service.save_visitor_photo(content, file.content_type)
    return {"data": {"photoUrl": photo_url}}
