from datetime import date

from pydantic import BaseModel, EmailStr, Field, field_validator

from vms.core.constants import DEPARTMENTS, MAX_UID_LENGTH
from vms.services.media_service import photo_url_prefix


class VisitorRegistration(BaseModel):
    name: str = Field(min_length=1, max_length=30)
    designation: str = Field(min_length=1, max_length=100)
    organization: str = Field(min_length=1, max_length=200)
    phone: str = Field(min_length=7, max_length=20)
    email: EmailStr
    purpose: str = Field(min_length=1, max_length=500)
    department: str
    photoUrl: str = Field(max_length=512)
    expectedDate: date | None = None
    expectedTime: str | None = Field(default=None, max_length=20)

    @field_validator("name", "designation", "organization", "phone", "purpose")
    @classmethod
    def _strip_required(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("This field is required")
        return cleaned

    @field_validator("department")
    @classmethod
    def _known_department(cls, value: str) -> str:
        cleaned = value.strip().upper()
        if cleaned not in DEPARTMENTS:
            raise ValueError("Please select a valid department")
        return cleaned

    @field_validator("photoUrl")
    @classmethod
    def _uploaded_photo(cls, value: str) -> str:
        cleaned = value.strip()
        name = cleaned.removeprefix(photo_url_prefix())
        if name == cleaned or not name or "/" in name:
            raise ValueError("Please upload a visitor photo.")
        return cleaned


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


def normalize_uid(raw: str) -> str:
    """Scanner input arrives with stray whitespace and in any case."""
    uid = (raw or "").strip().upper()
    if not uid or len(uid) > MAX_UID_LENGTH:
        raise ValueError("Invalid Visitor UID")
    return uid
