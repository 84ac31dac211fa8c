# stats.py
import calendar
from datetime import date, datetime, timedelta

import pandas as pd

import config


# --- DATE HELPERS ---
def month_start(d):
    return date(d.year, d.month, 1)


def month_end(d):
    return date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])


def add_months(d, months):
    """Shift a date by whole months, clamping the day to the target month's length."""
    idx = d.month - 1 + months
    year, month = d.year + idx // 12, idx % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def shift_month(d, delta):
    return month_start(add_months(month_start(d), delta))


def parse_month(value):
    """Accepts 'YYYY-MM', a date or None (current month)."""
    if value is None:
        return month_start(date.today())
    if isinstance(value, (date, datetime)):
        return date(value.year, value.month, 1)
    return datetime.strptime(value, "%Y-%m").date()


def months_to_display(month, view_mode="single"):
    month = month_start(month)
    if view_mode == "multi":
        return [shift_month(month, -1), month, shift_month(month, 1)]
    return [month]


def count_weekdays(start, end):
    """Working days (Mon-Fri) between two dates, inclusive."""
    if end < start:
        return 0
    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


def format_days_overdue(days):
    return "1 day overdue" if days == 1 else f"{days} days overdue"


# --- STAT CARDS ---
def percentage(part, total):
    if not total:
        return 0.0
    return part / total * 100


def percentage_breakdown(statistics, keys, total_key="total"):
    total = statistics.get(total_key, 0)
    return {k: percentage(statistics.get(k, 0), total) for k in keys}


# --- LEAVE CALENDAR ---
def calendar_weeks(year, month):
    """
    Month grid with Sunday as the first column. Leading and trailing cells
    outside the month are None.
    """
    cal = calendar.Calendar(firstweekday=6)
    weeks = []
    for week in cal.monthdatescalendar(year, month):
        weeks.append([d if d.month == month else None for d in week])
    return weeks


def leaves_by_date(leaves, first_day, last_day):
    """Map each day of [first_day, last_day] to the leaves covering it."""
    by_date = {}
    for leave in leaves:
        start = max(leave["start_date"], first_day)
        end = min(leave["end_date"], last_day)
        current = start
        while current <= end:
            by_date.setdefault(current, []).append(leave)
            current += timedelta(days=1)
    return by_date


# --- ATTENDANCE POINTS ---
def is_active_point(point):
    return not point["is_excused"] and not point["is_expired"]


def high_risk_employees(points, threshold=config.HIGH_RISK_THRESHOLD, recent=5):
    """
    Employees whose active points add up to at least `threshold`, highest first.
    Each entry carries the employee's most recent points.
    """
    grouped = {}
    for p in points:
        if is_active_point(p):
            grouped.setdefault(p["employee_id"], []).append(p)

    result = []
    for employee_id, emp_points in grouped.items():
        total = round(sum(p["points"] for p in emp_points), 2)
        if total < threshold:
            continue
        latest = sorted(emp_points, key=lambda p: p["shift_date"], reverse=True)
        result.append({
            "employee_id": employee_id,
            "employee_name": emp_points[0].get("employee_name", "Unknown"),
            "total_points": total,
            "violations_count": len(emp_points),
            "points": latest[:recent],
        })
    return sorted(result, key=lambda e: e["total_points"], reverse=True)


def points_summary(points):
    active = [p for p in points if is_active_point(p)]
    return {
        "total_points": round(sum(p["points"] for p in active), 2),
        "excused_points": round(sum(p["points"] for p in points if p["is_excused"]), 2),
        "expired_points": round(sum(p["points"] for p in points if p["is_expired"]), 2),
        "total_violations": len(active),
        "by_type": {
            t: round(sum(p["points"] for p in active if p["point_type"] == t), 2)
            for t in config.POINT_TYPES
        },
        "count_by_type": {
            t: sum(1 for p in active if p["point_type"] == t) for t in config.POINT_TYPES
        },
    }


def gbro_rolloffs(points, today, last_gbro=None, clean_days=config.GBRO_CLEAN_DAYS,
                  per_rolloff=config.GBRO_POINTS_PER_ROLLOFF):
    """
    Replays Good Behavior Roll Off for one employee's active, GBRO-eligible points.

    Each run of `clean_days` without a new point rolls off the `per_rolloff`
    newest non-excused points dated before that day, and the next run counts
    from the roll-off. Excused points still reset the clock but are never
    rolled off. Returns [(rolloff_date, [point ids])] in date order.
    """
    points = sorted(points, key=lambda p: p["shift_date"])
    if not points:
        return []
    pending = [p for p in points if not p["is_excused"]]
    reference = points[0]["shift_date"]
    if last_gbro and last_gbro > reference:
        reference = last_gbro

    rolloffs = []
    while pending:
        rolloff = reference + timedelta(days=clean_days)
        newer = [p["shift_date"] for p in points if reference < p["shift_date"] <= rolloff]
        if newer:
            reference = newer[-1]
            continue
        if rolloff > today:
            break
        due = [p for p in pending if p["shift_date"] < rolloff][-per_rolloff:]
        if not due:
            reference = min(p["shift_date"] for p in pending)
            continue
        rolloffs.append((rolloff, [p["id"] for p in reversed(due)]))
        rolled = {p["id"] for p in due}
        pending = [p for p in pending if p["id"] not in rolled]
        reference = rolloff
    return rolloffs


# --- TRENDS ---
def _month_frame(records, date_field, today, months):
    if not records:
        return None
    df = pd.DataFrame(records)
    df[date_field] = pd.to_datetime(df[date_field])
    start = pd.Timestamp(shift_month(today, -(months - 1)))
    df = df[df[date_field] >= start]
    if df.empty:
        return None
    df["month"] = df[date_field].dt.strftime("%Y-%m")
    return df


def _month_label(month_key):
    return datetime.strptime(month_key, "%Y-%m").strftime("%b %Y")


def monthly_status_trend(records, date_field, today, months=config.CONCERN_TREND_MONTHS,
                         status_field="status", statuses=config.CONCERN_STATUSES):
    """Per-month totals and status counts for the last `months` months; empty months are omitted."""
    df = _month_frame(records, date_field, today, months)
    if df is None:
        return []
    rows = []
    for month_key, group in df.groupby("month", sort=True):
        row = {"month": month_key, "label": _month_label(month_key), "total": int(len(group))}
        for s in statuses:
            row[s] = int((group[status_field] == s).sum())
        rows.append(row)
    return rows


def monthly_points_trend(points, today, months=config.POINTS_TREND_MONTHS):
    df = _month_frame(points, "shift_date", today, months)
    if df is None:
        return []
    df["active"] = ~(df["is_excused"].astype(bool) | df["is_expired"].astype(bool))
    rows = []
    for month_key, group in df.groupby("month", sort=True):
        active = group[group["active"]]
        rows.append({
            "month": month_key,
            "label": _month_label(month_key),
            "total_points": round(float(active["points"].sum()), 2),
            "violations_count": int(len(active)),
        })
    return rows
