from datetime import date

import pytest

import stats


def test_add_months_clamps_day():
    assert stats.add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert stats.add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert stats.add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
    assert stats.add_months(date(2024, 1, 15), -1) == date(2023, 12, 15)


def test_parse_month():
    assert stats.parse_month("2024-02") == date(2024, 2, 1)
    assert stats.parse_month(date(2024, 2, 17)) == date(2024, 2, 1)
    with pytest.raises(ValueError):
        stats.parse_month("February")


def test_months_to_display():
    assert stats.months_to_display(date(2024, 1, 20)) == [date(2024, 1, 1)]
    assert stats.months_to_display(date(2024, 1, 20), "multi") == [date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]


def test_count_weekdays():
    assert stats.count_weekdays(date(2024, 3, 4), date(2024, 3, 10)) == 5
    assert stats.count_weekdays(date(2024, 3, 9), date(2024, 3, 10)) == 0
    assert stats.count_weekdays(date(2024, 3, 10), date(2024, 3, 4)) == 0


def test_format_days_overdue():
    assert stats.format_days_overdue(1) == "1 day overdue"
    assert stats.format_days_overdue(12) == "12 days overdue"


def test_percentage():
    assert stats.percentage(5, 0) == 0.0
    assert stats.percentage(1, 3) == pytest.approx(33.333, rel=1e-3)
    breakdown = stats.percentage_breakdown({"total": 4, "tardy": 1, "ncns": 0}, ["tardy", "ncns"])
    assert breakdown == {"tardy": 25.0, "ncns": 0.0}


def test_calendar_weeks_start_on_sunday():
    # March 2024 starts on a Friday
    weeks = stats.calendar_weeks(2024, 3)
    assert weeks[0][:5] == [None] * 5
    assert weeks[0][5] == date(2024, 3, 1)
    assert all(len(w) == 7 for w in weeks)
    assert weeks[-1][0] == date(2024, 3, 31)
    assert weeks[-1][1:] == [None] * 6


def test_leaves_by_date_clips_to_range():
    leave = {"start_date": date(2024, 2, 27), "end_date": date(2024, 3, 2)}
    by_date = stats.leaves_by_date([leave], date(2024, 3, 1), date(2024, 3, 31))
    assert sorted(by_date) == [date(2024, 3, 1), date(2024, 3, 2)]


def test_high_risk_ignores_inactive_points():
    points = [
        {"employee_id": 1, "employee_name": "A", "points": 3.0, "shift_date": date(2024, 1, 1), "is_excused": False, "is_expired": False},
        {"employee_id": 1, "employee_name": "A", "points": 3.0, "shift_date": date(2024, 1, 2), "is_excused": False, "is_expired": True},
        {"employee_id": 2, "employee_name": "B", "points": 6.0, "shift_date": date(2024, 1, 3), "is_excused": False, "is_expired": False},
    ]
    assert [e["employee_id"] for e in stats.high_risk_employees(points)] == [2]


def test_monthly_status_trend_empty():
    assert stats.monthly_status_trend([], "created_at", date(2024, 1, 1)) == []


def _point(point_id, day, excused=False):
    return {"id": point_id, "shift_date": day, "is_excused": excused}


def test_gbro_rolloffs_replay_gaps():
    points = [_point(1, date(2024, 1, 1)), _point(2, date(2024, 4, 10)), _point(3, date(2024, 4, 11))]
    rolloffs = stats.gbro_rolloffs(points, today=date(2024, 7, 1))
    assert rolloffs == [(date(2024, 3, 1), [1]), (date(2024, 6, 10), [3, 2])]


def test_gbro_rolloffs_start_after_last_rolloff():
    points = [_point(1, date(2024, 1, 1))]
    assert stats.gbro_rolloffs(points, date(2024, 3, 1), last_gbro=date(2024, 2, 1)) == []
    assert stats.gbro_rolloffs(points, date(2024, 4, 1), last_gbro=date(2024, 2, 1)) == [(date(2024, 4, 1), [1])]


def test_gbro_rolloffs_skip_excused_points():
    assert stats.gbro_rolloffs([_point(1, date(2024, 1, 1), excused=True)], date(2025, 1, 1)) == []
    assert stats.gbro_rolloffs([], date(2025, 1, 1)) == []
