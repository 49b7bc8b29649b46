from pydantic import BaseModel, EmailStr, Field

from vms.core.constants import MIN_PASSWORD_LENGTH


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class PasswordResetSubmit(BaseModel):
    email: EmailStr


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=MIN_PASSWORD_LENGTH)


class RefreshTokenRequest(BaseModel):
    refreshToken: str


class LogoutRequest(BaseModel):
    refreshToken: str


class SecurityPinRequest(BaseModel):
    pin: str = Field(min_length=1, max_length=64)


class AuthUser(BaseModel):
    id: str
    email: EmailStr
    role: str
    department: str | None = None


class AuthResponse(BaseModel):
    accessToken: str
    refreshToken: str
    user: AuthUser
