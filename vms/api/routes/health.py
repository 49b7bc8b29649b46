from fastapi import APIRouter

from vms.core.config import get_settings
from vms.core.constants import DEPARTMENTS

router = APIRouter()
settings = get_settings()


@router.get("/health")
def health():
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "mailSuppressed": settings.MAIL_SUPPRESS_SEND,
    }


@router.get("/departments")
def departments():
    return {"data": list(DEPARTMENTS)}
