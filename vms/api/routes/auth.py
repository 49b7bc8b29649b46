from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from vms.api.deps import get_current_user
from vms.db.models import Profile
from vms.db.session import get_db
from vms.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LogoutRequest,
    PasswordResetSubmit,
    RefreshTokenRequest,
)
from vms.services import auth_service, password_reset_service

router = APIRouter()


@router.post("/login")
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    data = auth_service.login(
        db=db,
        email=payload.email,
        password=payload.password,
        user_agent=request.headers.get("user-agent", ""),
        ip_address=request.client.host if request.client else "",
    )
    return {"data": data.model_dump()}


@router.post("/refresh-token")
def refresh_token(payload: RefreshTokenRequest, db: Session = Depends(get_db)):
    data = auth_service.rotate_refresh_token(db, payload.refreshToken)
    return {"data": data}


@router.post("/logout")
def logout(payload: LogoutRequest, db: Session = Depends(get_db)):
    auth_service.logout(db, payload.refreshToken)
    return {"data": {"status": "ok"}}


@router.get("/me")
def me(user: Profile = Depends(get_current_user)):
    return {"data": auth_service.serialize_user(user)}


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return {"data": auth_service.change_password(db, user.id, payload.currentPassword, payload.newPassword)}


@router.post("/password-reset-requests")
def submit_password_reset(payload: PasswordResetSubmit, db: Session = Depends(get_db)):
    return {"data": password_reset_service.submit_reset_request(db, payload.email)}
