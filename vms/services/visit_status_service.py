"""
Visit lifecycle: pending -> approved | rejected, approved -> checked_in -> checked_out.

Each transition is a single conditional UPDATE matched on the expected
predecessor status, so two desks scanning the same pass at once produce
exactly one success. The loser re-reads the row to explain why it failed.
"""
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from vms.core.exceptions import AppException
from vms.db.models import VisitStatus, VisitorRequest

logger = logging.getLogger(__name__)


class VisitAction(str, Enum):
    approve = "approve"
    reject = "reject"
    check_in = "check_in"
    check_out = "check_out"


TRANSITIONS: Dict[VisitAction, Tuple[VisitStatus, VisitStatus]] = {
    VisitAction.approve: (VisitStatus.pending, VisitStatus.approved),
    VisitAction.reject: (VisitStatus.pending, VisitStatus.rejected),
    VisitAction.check_in: (VisitStatus.approved, VisitStatus.checked_in),
    VisitAction.check_out: (VisitStatus.checked_in, VisitStatus.checked_out),
}

TERMINAL_STATUSES = frozenset({VisitStatus.rejected, VisitStatus.checked_out})


def next_status(current: VisitStatus, action: VisitAction) -> VisitStatus:
    source, target = TRANSITIONS[action]
    if current != source:
        raise AppException(describe_rejected_transition(action, current), status_code=409)
    return target


def describe_rejected_transition(action: VisitAction, current: VisitStatus) -> str:
    current = VisitStatus(current)
    if action in (VisitAction.approve, VisitAction.reject):
        return "This request has already been processed."
    if action == VisitAction.check_in:
        if current == VisitStatus.checked_in:
            return "Visitor already checked in."
        if current == VisitStatus.checked_out:
            return "Visitor pass already used (checked out)."
        return f"Cannot check in. Visitor status is '{current.value}'."
    if current == VisitStatus.checked_out:
        return "Visitor already checked out."
    if current == VisitStatus.approved:
        return "Visitor has not checked in yet."
    return f"Cannot check out. Visitor status is '{current.value}'."


def apply_transition(
    db: Session,
    request_id: str,
    action: VisitAction,
    values: Dict[str, Any] | None = None,
) -> VisitorRequest:
    source, target = TRANSITIONS[action]
    updates: Dict[Any, Any] = {VisitorRequest.status: target, VisitorRequest.updated_at: datetime.utcnow()}
    for column, value in (values or {}).items():
        updates[getattr(VisitorRequest, column)] = value

    matched = (
        db.query(VisitorRequest)
        .filter(VisitorRequest.id == request_id, VisitorRequest.status == source)
        .update(updates, synchronize_session=False)
    )
    if not matched:
        db.rollback()
        current = db.query(VisitorRequest.status).filter(VisitorRequest.id == request_id).scalar()
        if current is None:
            raise AppException("Visitor not found", status_code=404)
        logger.info("visit transition refused id=%s action=%s status=%s", request_id, action.value, current)
        raise AppException(describe_rejected_transition(action, current), status_code=409)

    db.commit()
    row = db.get(VisitorRequest, request_id)
    logger.info("visit transition id=%s %s -> %s", request_id, source.value, target.value)
    return row
