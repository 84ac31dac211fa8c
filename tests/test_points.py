from datetime import date, timedelta

import pytest

from database import ValidationError


def _absences(db, emp, count, start=date(2024, 1, 1), status="ncns"):
    for i in range(count):
        db.record_attendance({"employee_id": emp, "shift_date": start + timedelta(days=i), "status": status})


def test_manual_point_uses_configured_value(db, make_employee):
    emp = make_employee()
    point_id = db.create_manual_point({"employee_id": emp, "shift_date": date(2024, 5, 1),
                                       "point_type": "half_day_absence"}, actor="tester")
    point = db.list_points()[0][0]
    assert point["id"] == point_id
    assert point["points"] == 0.5
    assert point["expires_at"] == date(2024, 11, 1)


def test_manual_point_validation(db, make_employee):
    with pytest.raises(ValidationError) as exc:
        db.create_manual_point({"employee_id": make_employee(), "shift_date": None, "point_type": "napping"})
    assert set(exc.value.errors) == {"shift_date", "point_type"}


def test_excuse_requires_reason(db, make_employee):
    _absences(db, make_employee(), 1)
    point_id = db.list_points()[0][0]["id"]
    with pytest.raises(ValidationError) as exc:
        db.excuse_point(point_id, "  ")
    assert "excuse_reason" in exc.value.errors


def test_excuse_and_unexcuse(db, make_employee):
    _absences(db, make_employee(), 1)
    point_id = db.list_points()[0][0]["id"]
    db.excuse_point(point_id, "Medical certificate", actor="hr-lea")
    point = db.list_points(state="excused")[0][0]
    assert point["excused_by"] == "hr-lea"
    assert point["excuse_reason"] == "Medical certificate"
    assert db.list_points(state="active")[1] == 0

    db.unexcuse_point(point_id, actor="hr-lea")
    point = db.list_points(state="active")[0][0]
    assert point["is_excused"] is False
    assert point["excuse_reason"] is None


def test_expire_points(db, make_employee):
    emp = make_employee()
    _absences(db, emp, 1, start=date(2024, 1, 1), status="tardy")
    _absences(db, emp, 1, start=date(2024, 1, 2), status="ncns")
    assert db.expire_points(today=date(2024, 6, 30)) == 0
    assert db.expire_points(today=date(2024, 7, 1)) == 1
    expired = db.list_points(state="expired")[0][0]
    assert expired["point_type"] == "tardy"
    assert expired["expired_at"] == date(2024, 7, 1)
    assert db.expire_points(today=date(2024, 7, 1)) == 0


def test_points_statistics(db, make_employee):
    emp = make_employee()
    _absences(db, emp, 2)
    _absences(db, emp, 1, start=date(2024, 2, 1), status="tardy")
    excused = db.list_points(state="active")[0][-1]["id"]
    db.excuse_point(excused, "Typhoon")

    data = db.points_statistics(employee_id=emp)
    assert data["total_points"] == 1.25
    assert data["excused_points"] == 1.0
    assert data["total_violations"] == 2
    assert data["by_type"]["whole_day_absence"] == 1.0
    assert data["count_by_type"]["tardy"] == 1

    in_feb = db.points_statistics(emp, date(2024, 2, 1), date(2024, 2, 29))
    assert in_feb["total_points"] == 0.25


def test_high_risk_threshold(db, make_employee):
    risky = make_employee("Risky", "Rivera")
    safe = make_employee("Safe", "Santos")
    _absences(db, risky, 7)
    _absences(db, safe, 5)
    employees = db.high_risk_employees()
    assert [e["employee_name"] for e in employees] == ["Rivera, Risky"]
    assert employees[0]["total_points"] == 7.0
    assert employees[0]["violations_count"] == 7
    assert len(employees[0]["points"]) == 5
    assert employees[0]["points"][0]["shift_date"] == date(2024, 1, 7)


def test_excused_points_do_not_count_towards_risk(db, make_employee):
    emp = make_employee()
    _absences(db, emp, 6)
    assert len(db.high_risk_employees()) == 1
    db.excuse_point(db.list_points()[0][0]["id"], "Approved late")
    assert db.high_risk_employees() == []


def test_points_trend(db, make_employee):
    emp = make_employee()
    _absences(db, emp, 2, start=date(2024, 4, 10))
    _absences(db, emp, 1, start=date(2024, 6, 3), status="tardy")
    _absences(db, emp, 1, start=date(2023, 6, 3), status="tardy")
    trend = db.points_trend(today=date(2024, 6, 15))
    assert trend == [
        {"month": "2024-04", "label": "Apr 2024", "total_points": 2.0, "violations_count": 2},
        {"month": "2024-06", "label": "Jun 2024", "total_points": 0.25, "violations_count": 1},
    ]


def test_each_date_bound_filters_on_its_own(db, make_employee):
    emp = make_employee()
    _absences(db, emp, 1, start=date(2026, 1, 5), status="tardy")
    _absences(db, emp, 1, start=date(2026, 6, 5), status="tardy")

    after, total = db.list_points(date_from=date(2026, 3, 1))
    assert total == 1
    assert after[0]["shift_date"] == date(2026, 6, 5)
    before, total = db.list_points(date_to=date(2026, 3, 1))
    assert total == 1
    assert before[0]["shift_date"] == date(2026, 1, 5)
    assert db.points_statistics(emp, date_from=date(2026, 3, 1))["total_violations"] == 1


def _tardy(db, emp, day):
    db.record_attendance({"employee_id": emp, "shift_date": day, "status": "tardy"})


def test_gbro_rolls_off_two_newest_points_after_clean_days(db, make_employee):
    emp = make_employee()
    _absences(db, emp, 3, start=date(2024, 1, 1), status="tardy")
    assert db.gbro_expire(today=date(2024, 3, 2)) == 0
    assert db.gbro_expire(today=date(2024, 3, 3), actor="hr-lea") == 2

    expired = db.list_points(state="expired")[0]
    assert [p["shift_date"] for p in expired] == [date(2024, 1, 3), date(2024, 1, 2)]
    for point in expired:
        assert point["expiration_type"] == "gbro"
        assert point["expired_at"] == date(2024, 3, 3)
        assert point["gbro_applied_at"] == date(2024, 3, 3)
    assert db.list_points(state="active")[0][0]["shift_date"] == date(2024, 1, 1)

    # the next roll-off counts from the previous one
    assert db.gbro_expire(today=date(2024, 5, 1)) == 0
    assert db.gbro_expire(today=date(2024, 5, 2)) == 1
    assert db.list_points(state="active")[1] == 0


def test_new_violation_resets_gbro_clock(db, make_employee):
    emp = make_employee()
    _tardy(db, emp, date(2024, 1, 1))
    _tardy(db, emp, date(2024, 1, 2))
    _tardy(db, emp, date(2024, 2, 15))
    assert db.gbro_expire(today=date(2024, 4, 14)) == 0
    assert db.gbro_expire(today=date(2024, 4, 15)) == 2
    assert db.list_points(state="active")[0][0]["shift_date"] == date(2024, 1, 1)


def test_ncns_points_are_not_gbro_eligible(db, make_employee):
    emp = make_employee()
    _absences(db, emp, 1, start=date(2024, 1, 1), status="ncns")
    _absences(db, emp, 1, start=date(2024, 1, 2), status="advised_absence")
    points = {p["point_type"] + str(p["is_advised"]): p for p in db.list_points()[0]}
    assert points["whole_day_absenceFalse"]["eligible_for_gbro"] is False
    assert points["whole_day_absenceTrue"]["eligible_for_gbro"] is True

    assert db.gbro_expire(today=date(2024, 6, 1)) == 1
    active = db.list_points(state="active")[0]
    assert [p["is_advised"] for p in active] == [False]


def test_excused_points_reset_clock_but_stay_excused(db, make_employee):
    emp = make_employee()
    _tardy(db, emp, date(2024, 1, 1))
    _tardy(db, emp, date(2024, 1, 20))
    excused = db.list_points(date_from=date(2024, 1, 20))[0][0]["id"]
    db.excuse_point(excused, "System outage")

    assert db.gbro_expire(today=date(2024, 3, 19)) == 0
    assert db.gbro_expire(today=date(2024, 3, 20)) == 1
    assert db.list_points(state="expired")[0][0]["shift_date"] == date(2024, 1, 1)
    point = db.list_points(state="excused")[0][0]
    assert point["is_expired"] is False


def test_gbro_for_one_employee_only(db, make_employee):
    first = make_employee("First", "One")
    second = make_employee("Second", "Two")
    _tardy(db, first, date(2024, 1, 1))
    _tardy(db, second, date(2024, 1, 1))
    assert db.gbro_expire(employee_id=second, today=date(2024, 6, 1)) == 1
    assert db.list_points(employee_id=first, state="active")[1] == 1
