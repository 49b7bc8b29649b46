from pydantic import BaseModel, EmailStr, Field, model_validator

from vms.core.constants import DEPARTMENTS, MIN_PASSWORD_LENGTH
from vms.db.models import UserRole


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    role: UserRole
    department: str | None = None

    @model_validator(mode="after")
    def _department_for_admins(self):
        if self.role == UserRole.super_admin:
            raise ValueError("Invalid role")
        if self.role == UserRole.department_admin:
            department = (self.department or "").strip().upper()
            if not department:
                raise ValueError("Department is required for department admins")
            if department not in DEPARTMENTS:
                raise ValueError("Please select a valid department")
            self.department = department
        else:
            self.department = None
        return self


class PasswordResetProcess(BaseModel):
    newPassword: str = Field(min_length=MIN_PASSWORD_LENGTH)
