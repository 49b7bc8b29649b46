import logging

from sqlalchemy.orm import Session

from vms.core.constants import MIN_PASSWORD_LENGTH
from vms.core.exceptions import AppException
from vms.core.security import hash_password
from vms.db.models import Profile, UserRole
from vms.schemas.users import UserCreate
from vms.services.audit_service import write_audit_log
from vms.services.auth_service import serialize_user

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[dict]:
    rows = db.query(Profile).order_by(Profile.created_at.desc()).all()
    return [
        {
            **serialize_user(row),
            "isActive": row.is_active,
            "createdAt": row.created_at.isoformat() if row.created_at else None,
        }
        for row in rows
    ]


def create_or_update_user(db: Session, actor: Profile, payload: UserCreate) -> dict:
    """Create a staff account, or reset an existing non super admin one in place."""
    email = str(payload.email).strip().lower()
    existing = db.query(Profile).filter(Profile.email == email).first()

    if existing:
        if existing.role == UserRole.super_admin:
            raise AppException("Cannot modify Super Admin accounts. Use a different email.", status_code=403)
        existing.password_hash = hash_password(payload.password)
        existing.role = payload.role
        existing.department = payload.department
        existing.is_active = True
        db.commit()
        write_audit_log(
            db,
            actor_user_id=actor.id,
            action="user.update",
            resource_type="profile",
            resource_id=existing.id,
            meta={"role": payload.role.value, "department": payload.department},
        )
        return {"id": existing.id, "message": f"User {email} password updated successfully."}

    user = Profile(
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        department=payload.department,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    write_audit_log(
        db,
        actor_user_id=actor.id,
        action="user.create",
        resource_type="profile",
        resource_id=user.id,
        meta={"role": payload.role.value, "department": payload.department},
    )
    logger.info("user created email=%s role=%s", email, payload.role.value)
    return {"id": user.id, "message": f"User {email} created successfully."}


def delete_user(db: Session, actor: Profile, user_id: str) -> dict:
    if user_id == actor.id:
        raise AppException("Cannot delete your own account.", status_code=400)
    user = db.get(Profile, user_id)
    if not user:
        raise AppException("User not found", status_code=404)

    email = user.email
    db.delete(user)
    db.commit()
    write_audit_log(
        db,
        actor_user_id=actor.id,
        action="user.delete",
        resource_type="profile",
        resource_id=user_id,
        meta={"email": email},
    )
    return {"message": "User deleted successfully."}


def ensure_super_admin(db: Session, email: str, password: str) -> Profile | None:
    """Seed the first super admin when none exists yet."""
    if not email or not password:
        return None
    if len(password) < MIN_PASSWORD_LENGTH:
        logger.error(
            "SUPERADMIN_PASSWORD must be at least %s characters; bootstrap super admin not created",
            MIN_PASSWORD_LENGTH,
        )
        return None
    if db.query(Profile).filter(Profile.role == UserRole.super_admin).first():
        return None

    email = email.strip().lower()
    user = Profile(email=email, password_hash=hash_password(password), role=UserRole.super_admin)
    db.add(user)
    db.commit()
    logger.info("bootstrap super admin created: %s", email)
    return user
