import logging
import secrets
from datetime import datetime

from sqlalchemy.orm import Session

from vms.core.config import get_settings
from vms.core.exceptions import AppException
from vms.core.rate_limit import enforce_rate_limit
from vms.core.security import (
    create_access_token,
    create_gate_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from vms.db.models import DeviceSession, Profile, RevokedToken
from vms.schemas.auth import AuthResponse

settings = get_settings()
logger = logging.getLogger(__name__)


def serialize_user(user: Profile) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role.value,
        "department": user.department,
    }


def _issue_auth_tokens(db: Session, user: Profile, user_agent: str = "", ip_address: str = "") -> AuthResponse:
    access_token = create_access_token(user.id, user.role.value)
    refresh_token = create_refresh_token(user.id)

    db.add(
        DeviceSession(
            user_id=user.id,
            refresh_token=refresh_token,
            user_agent=user_agent[:255],
            ip_address=ip_address,
        )
    )
    db.commit()

    return AuthResponse(
        accessToken=access_token,
        refreshToken=refresh_token,
        user=serialize_user(user),
    )


def login(db: Session, email: str, password: str, user_agent: str = "", ip_address: str = "") -> AuthResponse:
    login_key = (email or "").strip().lower()
    enforce_rate_limit(
        "login",
        login_key,
        settings.LOGIN_RATE_LIMIT_MAX,
        settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    )
    user = db.query(Profile).filter(Profile.email == login_key).first()
    if not user or not verify_password(password, user.password_hash):
        logger.info("failed login for %s from %s", login_key, ip_address or "unknown")
        raise AppException("Invalid credentials", status_code=401)
    if not user.is_active:
        raise AppException("Account is disabled", status_code=403)
    return _issue_auth_tokens(db=db, user=user, user_agent=user_agent, ip_address=ip_address)


def rotate_refresh_token(db: Session, refresh_token: str):
    session = (
        db.query(DeviceSession)
        .filter(DeviceSession.refresh_token == refresh_token, DeviceSession.revoked_at.is_(None))
        .first()
    )
    if not session or not session.user.is_active:
        raise AppException("Invalid refresh token", status_code=401)

    access_token = create_access_token(session.user_id, session.user.role.value)
    new_refresh = create_refresh_token(session.user_id)
    session.revoked_at = datetime.utcnow()
    db.add(
        DeviceSession(
            user_id=session.user_id,
            refresh_token=new_refresh,
            user_agent=session.user_agent,
            ip_address=session.ip_address,
        )
    )
    db.commit()
    return {"accessToken": access_token, "refreshToken": new_refresh}


def logout(db: Session, refresh_token: str):
    session = db.query(DeviceSession).filter(DeviceSession.refresh_token == refresh_token).first()
    if session:
        session.revoked_at = datetime.utcnow()
        db.commit()


def change_password(db: Session, user_id: str, current_password: str, new_password: str):
    user = db.get(Profile, user_id)
    if not user:
        raise AppException("User not found", status_code=404)
    if not verify_password(current_password, user.password_hash):
        raise AppException("Current password is incorrect", status_code=400)
    user.password_hash = hash_password(new_password)
    db.commit()
    return {"status": "password_changed"}


def open_security_session(pin: str, ip_address: str = "") -> dict:
    """Trade the shared desk PIN for a gate token."""
    enforce_rate_limit(
        "security-pin",
        ip_address or "unknown",
        settings.LOGIN_RATE_LIMIT_MAX,
        settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    )
    if not settings.SECURITY_ACCESS_PIN:
        logger.error("SECURITY_ACCESS_PIN is not configured")
        raise AppException("Server Configuration Error: PIN not set.", status_code=500)
    if not secrets.compare_digest(pin.encode("utf-8"), settings.SECURITY_ACCESS_PIN.encode("utf-8")):
        logger.info("invalid security PIN attempt from %s", ip_address or "unknown")
        raise AppException("Invalid Access PIN", status_code=401)
    return {"accessToken": create_gate_token(), "expiresInHours": settings.SECURITY_SESSION_HOURS}


def end_security_session(db: Session, payload: dict) -> None:
    """Revoke a gate token before it expires; the desk client drops it as well."""
    jti = payload.get("jti")
    if not jti or db.get(RevokedToken, jti):
        return
    db.add(RevokedToken(jti=jti, expires_at=datetime.utcfromtimestamp(payload["exp"])))
    # Drop revocations whose tokens have expired anyway.
    db.query(RevokedToken).filter(RevokedToken.expires_at < datetime.utcnow()).delete(synchronize_session=False)
    db.commit()
    logger.info("security desk session ended jti=%s", jti)


def is_token_revoked(db: Session, jti: str | None) -> bool:
    return bool(jti) and db.get(RevokedToken, jti) is not None
