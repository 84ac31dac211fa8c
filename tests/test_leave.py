from datetime import date

import pytest

from database import ValidationError


def _leave(db, emp, start, end, leave_type="VL"):
    return db.create_leave_request({"employee_id": emp, "leave_type": leave_type, "start_date": start,
                                    "end_date": end, "reason": "Family event"}, actor="tester")


def test_days_requested_counts_weekdays(db, make_employee):
    # Friday to Monday
    leave_id = _leave(db, make_employee(), date(2024, 3, 8), date(2024, 3, 11))
    assert db.list_leave_requests()[0][0]["days_requested"] == 2
    assert leave_id


def test_end_before_start_is_rejected(db, make_employee):
    with pytest.raises(ValidationError) as exc:
        _leave(db, make_employee(), date(2024, 3, 8), date(2024, 3, 1))
    assert "end_date" in exc.value.errors


def test_unknown_leave_type(db, make_employee):
    with pytest.raises(ValidationError) as exc:
        _leave(db, make_employee(), date(2024, 3, 8), date(2024, 3, 8), leave_type="XL")
    assert "leave_type" in exc.value.errors


def test_review_only_pending(db, make_employee):
    leave_id = _leave(db, make_employee(), date(2024, 3, 8), date(2024, 3, 8))
    db.review_leave_request(leave_id, "approved", actor="hr-lea")
    leave = db.list_leave_requests()[0][0]
    assert leave["status"] == "approved"
    assert leave["reviewed_by"] == "hr-lea"
    with pytest.raises(ValidationError):
        db.review_leave_request(leave_id, "denied")
    with pytest.raises(ValidationError):
        db.review_leave_request(leave_id, "maybe")


def test_cancel(db, make_employee):
    leave_id = _leave(db, make_employee(), date(2024, 3, 8), date(2024, 3, 8))
    db.review_leave_request(leave_id, "denied")
    with pytest.raises(ValidationError):
        db.cancel_leave_request(leave_id)
    other = _leave(db, make_employee("B", "Two"), date(2024, 3, 8), date(2024, 3, 8))
    db.cancel_leave_request(other)
    assert db.list_leave_requests(status="cancelled")[1] == 1


def test_leave_calendar_returns_approved_overlaps(db, make_employee, campaign):
    emp = make_employee()
    other_campaign = db.create_campaign("Sales")
    outsider = make_employee("Out", "Sider", campaign_id=other_campaign)

    spanning = _leave(db, emp, date(2024, 2, 26), date(2024, 3, 2))
    inside = _leave(db, outsider, date(2024, 3, 10), date(2024, 3, 12), leave_type="SL")
    pending = _leave(db, emp, date(2024, 3, 20), date(2024, 3, 21))
    april = _leave(db, emp, date(2024, 4, 1), date(2024, 4, 2))
    for leave_id in (spanning, inside, april):
        db.review_leave_request(leave_id, "approved")

    march = db.leave_calendar("2024-03")
    assert [l["id"] for l in march] == [spanning, inside]
    assert pending not in [l["id"] for l in march]
    assert [l["id"] for l in db.leave_calendar("2024-03", campaign_id=campaign)] == [spanning]
    assert [l["id"] for l in db.leave_calendar(date(2024, 3, 15), leave_type="SL")] == [inside]
    assert march[1]["campaign_name"] == "Sales"
