import logging
import secrets
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from vms.core.config import get_settings
from vms.core.constants import UID_MONTH_CODES
from vms.core.exceptions import UIDAllocationError
from vms.db.models import VisitorRequest

settings = get_settings()
logger = logging.getLogger(__name__)


def generate_visitor_uid(
    now: datetime | None = None,
    prefix: str | None = None,
    digits: int | None = None,
) -> str:
    """Build a pass code such as ``SCSVMV102345J``: prefix, random digits, month letter."""
    now = now or datetime.utcnow()
    prefix = settings.UID_PREFIX if prefix is None else prefix
    digits = digits or settings.UID_RANDOM_LENGTH

    low = 10 ** (digits - 1)
    number = low + secrets.randbelow(10**digits - low)
    return f"{prefix}{number}{UID_MONTH_CODES[now.month - 1]}"


def uid_exists(db: Session, uid: str) -> bool:
    return db.query(VisitorRequest.id).filter(VisitorRequest.visitor_uid == uid).first() is not None


def allocate_visitor_uid(
    db: Session,
    max_attempts: int | None = None,
    generator: Callable[[], str] = generate_visitor_uid,
) -> str:
    # Check-then-act: the unique index on visitor_uid catches the rare race at commit.
    max_attempts = max_attempts or settings.UID_MAX_ATTEMPTS
    for attempt in range(1, max_attempts + 1):
        candidate = generator()
        if not uid_exists(db, candidate):
            return candidate
        logger.warning("visitor uid collision attempt=%s uid=%s", attempt, candidate)
    raise UIDAllocationError()
