import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SqlEnum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from vms.db.base import Base


class VisitStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"
    checked_in = "checked_in"
    checked_out = "checked_out"


# Statuses that carry an issued visitor pass.
UID_BEARING_STATUSES = frozenset({VisitStatus.approved, VisitStatus.checked_in, VisitStatus.checked_out})


class VisitorRequest(Base):
    __tablename__ = "visitor_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(30), nullable=False)
    designation: Mapped[str] = mapped_column(String(100), nullable=False)
    organization: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    department: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    photo_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    expected_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expected_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    status: Mapped[VisitStatus] = mapped_column(
        SqlEnum(VisitStatus), nullable=False, default=VisitStatus.pending, index=True
    )
    visitor_uid: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True, index=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reviewed_by_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    check_in_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_visitor_requests_department_status", "department", "status"),)
