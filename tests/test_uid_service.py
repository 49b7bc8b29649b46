import re
from datetime import datetime

import pytest

from vms.core.exceptions import UIDAllocationError
from vms.db.models import VisitStatus
from vms.services.uid_service import allocate_visitor_uid, generate_visitor_uid

from conftest import make_visitor

UID_PATTERN = re.compile(r"^SCSVMV\d{6}[A-Z]$")


def test_generated_uid_has_prefix_six_digits_and_month_letter():
    for _ in range(200):
        assert UID_PATTERN.match(generate_visitor_uid())


@pytest.mark.parametrize(
    "month,letter",
    [(1, "J"), (5, "Y"), (6, "U"), (7, "L"), (8, "G"), (10, "O"), (12, "D")],
)
def test_month_letter_follows_issue_month(month, letter):
    uid = generate_visitor_uid(now=datetime(2025, month, 15))
    assert uid.endswith(letter)


def test_allocation_retries_past_taken_codes(db):
    make_visitor(status=VisitStatus.approved, visitor_uid="SCSVMV111111J")
    candidates = iter(["SCSVMV111111J", "SCSVMV222222J"])

    assert allocate_visitor_uid(db, generator=lambda: next(candidates)) == "SCSVMV222222J"


def test_allocation_gives_up_after_max_attempts(db):
    make_visitor(status=VisitStatus.approved, visitor_uid="SCSVMV111111J")
    calls = []

    def always_taken():
        calls.append(1)
        return "SCSVMV111111J"

    with pytest.raises(UIDAllocationError) as exc_info:
        allocate_visitor_uid(db, max_attempts=3, generator=always_taken)

    assert len(calls) == 3
    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "Failed to generate unique UID. Please try again."
