from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from vms.api.deps import bearer_scheme, require_security_access
from vms.core.exceptions import AppException
from vms.core.security import decode_token
from vms.db.models import Profile
from vms.db.session import get_db
from vms.schemas.auth import SecurityPinRequest
from vms.schemas.visitor import normalize_uid
from vms.services import auth_service, visitor_service

router = APIRouter()


def _actor_id(actor: Profile | None) -> str | None:
    return actor.id if actor else None


@router.post("/session")
def open_session(payload: SecurityPinRequest, request: Request):
    data = auth_service.open_security_session(
        payload.pin,
        ip_address=request.client.host if request.client else "",
    )
    return {"data": data}


@router.post("/logout")
def close_session(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    actor: Profile | None = Depends(require_security_access),
):
    # Staff accounts sign out through /auth/logout; only the desk token is revoked here.
    if actor is None:
        auth_service.end_security_session(db, decode_token(credentials.credentials))
    return {"data": {"success": True}}


@router.get("/visitors/{uid}")
def lookup_visitor(
    uid: str,
    db: Session = Depends(get_db),
    _: Profile | None = Depends(require_security_access),
):
    try:
        normalized = normalize_uid(uid)
    except ValueError as exc:
        raise AppException(str(exc), status_code=400) from exc
    row = visitor_service.find_by_uid(db, normalized)
    return {"data": visitor_service.serialize_visitor(row)}


@router.post("/visitors/{request_id}/check-in")
def check_in(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Profile | None = Depends(require_security_access),
):
    row = visitor_service.check_in(db, request_id, _actor_id(actor))
    return {"data": {"message": "Visitor checked in successfully.", "visitor": visitor_service.serialize_visitor(row)}}


@router.post("/visitors/{request_id}/check-out")
def check_out(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Profile | None = Depends(require_security_access),
):
    row = visitor_service.check_out(db, request_id, _actor_id(actor))
    return {"data": {"message": "Visitor checked out successfully.", "visitor": visitor_service.serialize_visitor(row)}}


@router.get("/checked-in")
def checked_in_visitors(
    db: Session = Depends(get_db),
    _: Profile | None = Depends(require_security_access),
):
    rows = visitor_service.list_checked_in(db)
    return {"data": [visitor_service.serialize_visitor(row) for row in rows]}
