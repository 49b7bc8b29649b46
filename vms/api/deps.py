from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from vms.core.security import GATE_TOKEN_SUBJECT, decode_token
from vms.db.models import Profile, UserRole
from vms.db.session import get_db
from vms.services.auth_service import is_token_revoked

bearer_scheme = HTTPBearer(auto_error=False)


def _token_payload(credentials: HTTPAuthorizationCredentials | None) -> dict:
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    try:
        return decode_token(credentials.credentials)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")


def _active_user(db: Session, user_id: str | None) -> Profile:
    user = db.get(Profile, user_id) if user_id else None
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Profile:
    payload = _token_payload(credentials)
    if payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")
    return _active_user(db, payload.get("sub"))


def require_roles(*roles: str):
    def dependency(user: Profile = Depends(get_current_user)) -> Profile:
        if user.role.value not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return dependency


def require_department_admin(
    user: Profile = Depends(require_roles(UserRole.department_admin.value)),
) -> Profile:
    if not user.department:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No department assigned")
    return user


def require_security_access(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Profile | None:
    """Security staff, super admins, or the desk terminal holding a gate token (returns None)."""
    payload = _token_payload(credentials)
    token_type = payload.get("type")
    if token_type == "gate" and payload.get("sub") == GATE_TOKEN_SUBJECT:
        if is_token_revoked(db, payload.get("jti")):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session has ended")
        return None
    if token_type != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

    user = _active_user(db, payload.get("sub"))
    if user.role not in (UserRole.security, UserRole.super_admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return user
