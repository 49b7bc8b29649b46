"""
Dashboard figures and visitor logs.

Counts are computed in Python over the fetched rows. Days are UTC dates.
"""
import csv
import io
from collections import Counter
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from vms.core.constants import CSV_FORMULA_PREFIXES, DEPARTMENTS
from vms.db.models import VisitStatus, VisitorRequest
from vms.services.visitor_service import serialize_visitor

CSV_HEADERS = ["Date", "Name", "UID", "Department", "Purpose", "Status", "Check-In", "Check-Out", "Duration"]


def format_duration(check_in: datetime | None, check_out: datetime | None, now: datetime | None = None) -> str:
    if not check_in:
        return "-"
    if check_out:
        prefix, end = "", check_out
    else:
        prefix, end = "Active: ", now or datetime.utcnow()
    minutes = max(0, int((end - check_in).total_seconds() // 60))
    return f"{prefix}{minutes // 60}h {minutes % 60}m"


def _status_counts(rows: list[VisitorRequest]) -> dict:
    counts = Counter(row.status for row in rows)
    return {
        "total": len(rows),
        "pending": counts[VisitStatus.pending],
        "approved": counts[VisitStatus.approved],
        "checkedIn": counts[VisitStatus.checked_in],
        "checkedOut": counts[VisitStatus.checked_out],
        "rejected": counts[VisitStatus.rejected],
    }


def _weekly_trend(rows: list[VisitorRequest], today: date, label_format: str) -> list[dict]:
    per_day = Counter(row.created_at.date() for row in rows if row.created_at)
    trend = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        trend.append({"date": day.isoformat(), "label": day.strftime(label_format), "count": per_day[day]})
    return trend


def _today_visitors(rows: list[VisitorRequest], today: date) -> int:
    return sum(1 for row in rows if row.created_at and row.created_at.date() == today)


def summary(db: Session, now: datetime | None = None) -> dict:
    today = (now or datetime.utcnow()).date()
    rows = db.query(VisitorRequest).all()

    by_department = Counter(row.department for row in rows)
    return {
        **_status_counts(rows),
        "todayVisitors": _today_visitors(rows, today),
        "byDepartment": [
            {"department": department, "count": by_department[department]}
            for department in DEPARTMENTS
            if by_department[department]
        ],
        "weeklyTrend": _weekly_trend(rows, today, "%a, %b %d"),
    }


def department_summary(db: Session, department: str, now: datetime | None = None) -> dict:
    today = (now or datetime.utcnow()).date()
    rows = db.query(VisitorRequest).filter(VisitorRequest.department == department).all()
    return {
        **_status_counts(rows),
        "todayVisitors": _today_visitors(rows, today),
        "weeklyTrend": _weekly_trend(rows, today, "%a %d"),
    }


def visitor_logs(
    db: Session,
    department: str | None = None,
    status: VisitStatus | None = None,
    now: datetime | None = None,
) -> list[dict]:
    query = db.query(VisitorRequest)
    if department:
        query = query.filter(VisitorRequest.department == department.strip().upper())
    if status:
        query = query.filter(VisitorRequest.status == status)
    rows = query.order_by(VisitorRequest.created_at.desc()).all()

    now = now or datetime.utcnow()
    return [
        {**serialize_visitor(row), "formattedDuration": format_duration(row.check_in_time, row.check_out_time, now)}
        for row in rows
    ]


def csv_safe(value: str | None) -> str:
    """Neutralize text a spreadsheet would otherwise run as a formula."""
    text = value or ""
    return f"'{text}" if text.startswith(CSV_FORMULA_PREFIXES) else text


def _csv_time(value: str | None) -> str:
    if not value:
        return "-"
    return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")


def logs_to_csv(logs: list[dict]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL)
    writer.writerow(CSV_HEADERS)
    for log in logs:
        writer.writerow(
            [
                _csv_time(log["createdAt"]),
                csv_safe(log["name"]),
                log["visitorUid"] or "-",
                log["department"],
                csv_safe(log["purpose"]),
                log["status"],
                _csv_time(log["checkInTime"]),
                _csv_time(log["checkOutTime"]),
                log["formattedDuration"],
            ]
        )
    return buffer.getvalue()


def csv_filename(today: date | None = None) -> str:
    return f"visitor-logs-{(today or datetime.utcnow().date()).isoformat()}.csv"
