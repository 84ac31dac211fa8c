# workforce_views.py
import html
from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st

import config
import stats
from exports import export_points_excel, export_filename
from widgets import (
    can_write, current_user, set_flash, show_flash, form_errors, clear_errors, field_error,
    run_action, confirm_delete, page_offset, pagination, reset_page, selected_row, table_key, close_dialog,
)


def _label(value):
    return value.replace("_", " ").title()


def _employee_options(db):
    return {e["id"]: f"{e['name']} ({e['campaign']})" for e in db.list_employees()}


# --- IT CONCERNS ---
@st.dialog("IT Concern", width="large")
def concern_dialog(db, concern, user_scope):
    form_key = f"concern_{concern['id'] if concern else 'new'}"
    errors = form_errors(form_key)
    sites = dict(db.list_sites())
    current = concern or {}

    if concern:
        st.subheader(f"Station {concern['station_number']} | {concern['site']}")
        st.caption(f"Reported by {concern['reporter']} on {concern['created_at']:%Y-%m-%d %H:%M}")
        if concern["resolved_at"]:
            st.success(f"Resolved by {concern['resolved_by']} at {concern['resolved_at']}")

    if not can_write(user_scope):
        st.write(concern["description"])
        return

    def _pick(options, value):
        return options.index(value) if value in options else 0

    c1, c2 = st.columns(2)
    with c1:
        reporter = st.text_input("Reporter *", value=current.get("reporter", current_user() or ""), key=f"{form_key}_rep")
        field_error(errors, "reporter")
        site_ids = list(sites)
        site_id = st.selectbox("Site *", site_ids, index=_pick(site_ids, current.get("site_id")),
                               format_func=sites.get, key=f"{form_key}_site")
        field_error(errors, "site_id")
        station_number = st.text_input("Station Number *", value=current.get("station_number", ""), key=f"{form_key}_station")
        field_error(errors, "station_number")
    with c2:
        category = st.selectbox("Category *", config.CONCERN_CATEGORIES,
                                index=_pick(config.CONCERN_CATEGORIES, current.get("category")), key=f"{form_key}_cat")
        priority = st.selectbox("Priority *", config.CONCERN_PRIORITIES, format_func=_label,
                                index=_pick(config.CONCERN_PRIORITIES, current.get("priority", "medium")), key=f"{form_key}_prio")
        status = st.selectbox("Status", config.CONCERN_STATUSES, format_func=_label,
                              index=_pick(config.CONCERN_STATUSES, current.get("status")), key=f"{form_key}_status")
    description = st.text_area("Description *", value=current.get("description", ""), key=f"{form_key}_desc")
    field_error(errors, "description")
    resolution_notes = st.text_area("Resolution Notes", value=current.get("resolution_notes") or "", key=f"{form_key}_res")

    payload = {"reporter": reporter, "site_id": site_id, "station_number": station_number, "category": category,
               "priority": priority, "status": status, "description": description, "resolution_notes": resolution_notes}

    c_save, c_del = st.columns(2)
    if c_save.button("💾 Save", type="primary", key=f"{form_key}_save", width="stretch"):
        if concern:
            run_action(form_key, lambda: db.update_concern(concern["id"], payload, actor=current_user()),
                       "IT concern updated successfully.", "Failed to update IT concern", in_dialog=True)
        else:
            run_action(form_key, lambda: db.create_concern(payload, actor=current_user()),
                       "IT concern created successfully.", "Failed to create IT concern", in_dialog=True)
        close_dialog("concerns")
    if concern and confirm_delete(f"{form_key}_del", container=c_del):
        run_action(form_key, lambda: db.delete_concern(concern["id"], actor=current_user()),
                   "IT concern deleted successfully.", "Failed to delete IT concern")
        close_dialog("concerns")


def show_concerns(db, user_scope):
    st.title("🛠️ IT Concerns")
    show_flash()
    page_key = "page_concerns"
    sites = dict(db.list_sites())

    f1, f2, f3, f4, f5 = st.columns([2, 1, 1, 1, 1])
    search = f1.text_input("🔍 Search", key="concern_search", placeholder="Description, station, reporter...",
                           on_change=reset_page, args=(page_key,))
    status = f2.selectbox("Status", ["All"] + config.CONCERN_STATUSES, key="concern_status",
                          format_func=lambda s: s if s == "All" else _label(s), on_change=reset_page, args=(page_key,))
    category = f3.selectbox("Category", ["All"] + config.CONCERN_CATEGORIES, key="concern_category",
                            on_change=reset_page, args=(page_key,))
    priority = f4.selectbox("Priority", ["All"] + config.CONCERN_PRIORITIES, key="concern_priority",
                            format_func=lambda s: s if s == "All" else _label(s), on_change=reset_page, args=(page_key,))
    site_id = f5.selectbox("Site", [None] + list(sites), format_func=lambda i: sites.get(i, "All Sites"),
                           key="concern_site", on_change=reset_page, args=(page_key,))

    if can_write(user_scope):
        if not sites:
            st.info("Create a site before logging IT concerns.")
        elif st.button("➕ Report Concern", key="concern_add"):
            clear_errors("concern_new")
            concern_dialog(db, None, user_scope)

    concerns, total = db.list_concerns(search or None, status, category, priority, site_id,
                                       limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if not concerns:
        st.warning("No concerns found.")
        return

    df = pd.DataFrame(concerns)[["id", "created_at", "site", "station_number", "category", "priority", "status", "reporter", "description"]]
    event = st.dataframe(df, on_select="rerun", selection_mode="single-row", width="stretch", hide_index=True,
                         key=table_key("concerns"),
                         column_config={"id": None, "created_at": st.column_config.DatetimeColumn("Reported", format="YYYY-MM-DD HH:mm")})
    pagination(page_key, total)

    idx = selected_row(event)
    if idx is not None and st.button("🔎 Open Concern", key="concern_open"):
        clear_errors(f"concern_{concerns[idx]['id']}")
        concern_dialog(db, concerns[idx], user_scope)


def render_concern_insights(db):
    data = db.concern_stats()
    c1, c2, c3 = st.columns(3)
    c1.metric("Pending", data["pending"])
    c2.metric("In Progress", data["in_progress"])
    c3.metric("Resolved", data["resolved"])

    c_site, c_trend = st.columns(2)
    with c_site:
        st.subheader("By Site")
        if data["by_site"]:
            df = pd.DataFrame(data["by_site"]).melt(id_vars=["site"], value_vars=config.CONCERN_STATUSES,
                                                    var_name="status", value_name="count")
            st.plotly_chart(px.bar(df, x="site", y="count", color="status", barmode="stack"))
        else:
            st.info("No concerns logged.")
    with c_trend:
        st.subheader("Monthly Trend")
        trend = db.concern_trends()
        if trend:
            df = pd.DataFrame(trend)
            st.plotly_chart(px.line(df, x="label", y=["total"] + config.CONCERN_STATUSES, markers=True))
        else:
            st.info("No concerns in the last 12 months.")


# --- ATTENDANCE ---
def _stat_card(col, title, count, pct):
    col.metric(title, count, f"{pct:.1f}%", delta_color="off")


def render_attendance_cards(db, start_date=None, end_date=None):
    data = db.attendance_statistics(start_date, end_date)
    cards = [("on_time", "On Time"), ("tardy", "Tardy"), ("half_day", "Half Day"), ("ncns", "NCNS"),
             ("advised", "Advised"), ("needs_verification", "Needs Verification")]
    pct = stats.percentage_breakdown(data, [key for key, _ in cards])
    cols = st.columns(len(cards) + 1)
    cols[0].metric("Total Records", data["total"])
    for col, (key, title) in zip(cols[1:], cards):
        _stat_card(col, title, data[key], pct[key])


def render_presence(db, day=None):
    data = db.presence_today(day)
    cols = st.columns(5)
    cols[0].metric("Scheduled", data["total_scheduled"])
    cols[1].metric("Present", data["present"])
    cols[2].metric("Absent", data["absent"])
    cols[3].metric("On Leave", data["on_leave"])
    cols[4].metric("Unaccounted", data["unaccounted"])


def _render_attendance_records(db, user_scope, start_date, end_date):
    page_key = "page_attendance"
    status = st.selectbox("Status", ["all"] + config.ATTENDANCE_STATUSES, format_func=_label,
                          key="attendance_filter", on_change=reset_page, args=(page_key,))
    records, total = db.list_attendance(start_date, end_date, status, limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if not records:
        st.info("No attendance records in this range.")
        return

    df = pd.DataFrame(records)
    df["status"] = df["status"].map(_label)
    event = st.dataframe(df[["id", "shift_date", "employee_name", "status", "tardy_minutes", "undertime_minutes", "admin_verified", "notes"]],
                         on_select="rerun", selection_mode="single-row", width="stretch", hide_index=True,
                         key=table_key("attendance"), column_config={"id": None})
    pagination(page_key, total)

    idx = selected_row(event)
    if idx is None or not can_write(user_scope):
        return
    record = records[idx]
    st.write(f"**{record['employee_name']}** on {record['shift_date']}")
    a1, a2, a3, a4 = st.columns([2, 1, 1, 1])
    new_status = a1.selectbox("Change status", config.ATTENDANCE_STATUSES, format_func=_label,
                              index=config.ATTENDANCE_STATUSES.index(record["status"]), key=f"att_status_{record['id']}")
    if a2.button("Update", key="att_update", width="stretch"):
        run_action("att_update", lambda: db.update_attendance_status(record["id"], new_status, actor=current_user()),
                   "Attendance updated.", "Failed to update attendance")
        close_dialog("attendance")
    if not record["admin_verified"] and a3.button("✅ Verify", key="att_verify", width="stretch"):
        run_action("att_verify", lambda: db.verify_attendance(record["id"], actor=current_user()),
                   "Attendance verified.", "Failed to verify attendance")
        close_dialog("attendance")
    if confirm_delete("att_delete", container=a4):
        run_action("att_delete", lambda: db.delete_attendance(record["id"], actor=current_user()),
                   "Attendance deleted.", "Failed to delete attendance")
        close_dialog("attendance")


def _render_attendance_form(db):
    employees = _employee_options(db)
    if not employees:
        st.info("Add employees before recording attendance.")
        return
    errors = form_errors("attendance_new")
    with st.form("attendance_new_form", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        employee_id = c1.selectbox("Employee *", list(employees), format_func=employees.get)
        shift_date = c2.date_input("Shift Date *", value=date.today())
        status = c3.selectbox("Status *", config.ATTENDANCE_STATUSES, format_func=_label)
        field_error(errors, "shift_date")
        field_error(errors, "status")
        c4, c5, c6 = st.columns(3)
        tardy = c4.number_input("Tardy Minutes", min_value=0, step=1, value=0)
        undertime = c5.number_input("Undertime Minutes", min_value=0, step=1, value=0)
        verified = c6.checkbox("Admin Verified", value=True)
        notes = st.text_input("Notes")
        if st.form_submit_button("Record Attendance", type="primary"):
            payload = {"employee_id": employee_id, "shift_date": shift_date, "status": status, "tardy_minutes": tardy,
                       "undertime_minutes": undertime, "notes": notes, "admin_verified": verified}
            if run_action("attendance_new", lambda: db.record_attendance(payload, actor=current_user()),
                          "Attendance recorded.", "Failed to record attendance"):
                st.rerun()


def _render_employees(db, user_scope):
    employees = db.list_employees(active_only=False)
    if employees:
        st.dataframe(pd.DataFrame(employees)[["name", "role", "campaign", "is_active"]], width="stretch", hide_index=True)
    if not can_write(user_scope):
        return
    campaigns = dict(db.list_campaigns())
    errors = form_errors("employee_new")
    with st.form("employee_new_form", clear_on_submit=True):
        c1, c2, c3, c4 = st.columns(4)
        first_name = c1.text_input("First Name *")
        last_name = c2.text_input("Last Name *")
        role = c3.selectbox("Role *", config.EMPLOYEE_ROLES)
        campaign_id = c4.selectbox("Campaign", [None] + list(campaigns), format_func=lambda i: campaigns.get(i, "No Campaign"))
        field_error(errors, "first_name")
        field_error(errors, "last_name")
        if st.form_submit_button("Add Employee"):
            payload = {"first_name": first_name, "last_name": last_name, "role": role, "campaign_id": campaign_id}
            if run_action("employee_new", lambda: db.create_employee(payload, actor=current_user()),
                          "Employee added.", "Failed to add employee"):
                st.rerun()
    if employees:
        emp_map = {e["id"]: f"{e['name']} ({'active' if e['is_active'] else 'inactive'})" for e in employees}
        c1, c2 = st.columns([3, 1])
        emp_id = c1.selectbox("Employee", list(emp_map), format_func=emp_map.get, key="emp_toggle_id")
        active = next(e["is_active"] for e in employees if e["id"] == emp_id)
        if c2.button("Deactivate" if active else "Reactivate", key="emp_toggle", width="stretch"):
            run_action("emp_toggle", lambda: db.set_employee_active(emp_id, not active, actor=current_user()),
                       "Employee updated.", "Failed to update employee")
            st.rerun()


def show_attendance(db, user_scope):
    st.title("🕒 Attendance")
    show_flash()
    today = date.today()
    c1, c2 = st.columns(2)
    start_date = c1.date_input("From", value=stats.month_start(today), key="att_from")
    end_date = c2.date_input("To", value=stats.month_end(today), key="att_to")
    if start_date > end_date:
        st.error("'From' must be on or before 'To'.")
        return

    render_attendance_cards(db, start_date, end_date)
    st.divider()
    st.subheader("Today's Presence")
    render_presence(db, today)

    t1, t2, t3 = st.tabs(["Records", "Record Attendance", "Employees"])
    with t1:
        _render_attendance_records(db, user_scope, start_date, end_date)
    with t2:
        if can_write(user_scope):
            _render_attendance_form(db)
        else:
            st.error("🔒 Restricted Access")
    with t3:
        _render_employees(db, user_scope)


# --- ATTENDANCE POINTS ---
def render_high_risk(employees):
    if not employees:
        st.success("No employees at or above the high-risk threshold.")
        return
    for emp in employees:
        with st.expander(f"⚠️ {emp['employee_name']} | {emp['total_points']:.2f} points ({emp['violations_count']} violations)"):
            recent = pd.DataFrame(emp["points"])[["shift_date", "point_type", "points", "violation_details"]]
            recent["point_type"] = recent["point_type"].map(config.POINT_TYPE_LABELS)
            st.dataframe(recent, width="stretch", hide_index=True)


def render_points_trend(trend):
    if not trend:
        st.info("No points in the last 6 months.")
        return
    df = pd.DataFrame(trend)
    st.plotly_chart(px.bar(df, x="label", y="total_points", text="violations_count",
                           labels={"label": "Month", "total_points": "Points"}))


@st.dialog("Attendance Point")
def point_dialog(db, point, user_scope):
    form_key = f"point_{point['id']}"
    errors = form_errors(form_key)
    st.subheader(point["employee_name"])
    st.caption(f"{config.POINT_TYPE_LABELS.get(point['point_type'])} | {point['points']:.2f} pts | {point['shift_date']}")
    st.write(point["violation_details"] or "")
    if point["is_expired"] and point["expiration_type"] == "gbro":
        st.info(f"Rolled off by GBRO on {point['gbro_applied_at']}")
    elif point["is_expired"]:
        st.info(f"Expired on {point['expired_at']} ({point['expiration_type'].upper()})")
    else:
        gbro = "eligible for GBRO" if point["eligible_for_gbro"] else "not eligible for GBRO"
        st.caption(f"Expires {point['expires_at']} ({point['expiration_type'].upper()}), {gbro}")
    if not can_write(user_scope):
        return

    if point["is_excused"]:
        st.warning(f"Excused by {point['excused_by']}: {point['excuse_reason']}")
        if st.button("↩️ Remove Excuse", key=f"{form_key}_unexcuse"):
            run_action(form_key, lambda: db.unexcuse_point(point["id"], actor=current_user()),
                       "Excuse removed.", "Failed to remove excuse")
            close_dialog("points")
    else:
        reason = st.text_area("Excuse Reason *", key=f"{form_key}_reason")
        field_error(errors, "excuse_reason")
        if st.button("✅ Excuse Point", type="primary", key=f"{form_key}_excuse"):
            run_action(form_key, lambda: db.excuse_point(point["id"], reason, actor=current_user()),
                       "Point excused.", "Failed to excuse point", in_dialog=True)
            close_dialog("points")


def _render_manual_point(db):
    employees = _employee_options(db)
    if not employees:
        return
    errors = form_errors("point_new")
    with st.expander("➕ Add Manual Point"):
        with st.form("point_new_form", clear_on_submit=True):
            c1, c2, c3 = st.columns(3)
            employee_id = c1.selectbox("Employee *", list(employees), format_func=employees.get)
            shift_date = c2.date_input("Shift Date *", value=date.today())
            point_type = c3.selectbox("Type *", config.POINT_TYPES, format_func=config.POINT_TYPE_LABELS.get)
            is_advised = st.checkbox("Advised")
            details = st.text_input("Violation Details")
            field_error(errors, "point_type")
            if st.form_submit_button("Add Point"):
                payload = {"employee_id": employee_id, "shift_date": shift_date, "point_type": point_type,
                           "is_advised": is_advised, "violation_details": details}
                if run_action("point_new", lambda: db.create_manual_point(payload, actor=current_user()),
                              "Point added.", "Failed to add point"):
                    st.rerun()


def show_points(db, user_scope):
    st.title("🎯 Attendance Points")
    show_flash()
    page_key = "page_points"
    employees = _employee_options(db)

    f1, f2, f3, f4 = st.columns(4)
    employee_id = f1.selectbox("Employee", [None] + list(employees), format_func=lambda i: employees.get(i, "All Employees"),
                               key="points_employee", on_change=reset_page, args=(page_key,))
    state = f2.selectbox("Status", ["all", "active", "excused", "expired"], format_func=str.title,
                         key="points_state", on_change=reset_page, args=(page_key,))
    date_from = f3.date_input("From", value=None, key="points_from")
    date_to = f4.date_input("To", value=None, key="points_to")

    summary = db.points_statistics(employee_id, date_from, date_to)
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Active Points", f"{summary['total_points']:.2f}")
    m2.metric("Violations", summary["total_violations"])
    m3.metric("Excused", f"{summary['excused_points']:.2f}")
    m4.metric("Expired", f"{summary['expired_points']:.2f}")

    by_type = pd.DataFrame([{"type": config.POINT_TYPE_LABELS[t], "points": v} for t, v in summary["by_type"].items()])
    if by_type["points"].sum() > 0:
        st.plotly_chart(px.pie(by_type, names="type", values="points", hole=0.4, title="Active Points by Type"))

    if can_write(user_scope):
        c_exp, c_man = st.columns([1, 3])
        if c_exp.button("⏳ Expire Due Points", key="points_expire"):
            expired = db.expire_points(actor=current_user())
            rolled_off = db.gbro_expire(actor=current_user())
            set_flash(f"{expired} point(s) expired, {rolled_off} rolled off by GBRO.")
            st.rerun()
        with c_man:
            _render_manual_point(db)

    points, total = db.list_points(employee_id, date_from, date_to, state, limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if points:
        df = pd.DataFrame(points)
        df["point_type"] = df["point_type"].map(config.POINT_TYPE_LABELS)
        event = st.dataframe(df[["id", "shift_date", "employee_name", "point_type", "points", "is_excused", "is_expired", "expires_at"]],
                             on_select="rerun", selection_mode="single-row", width="stretch", hide_index=True,
                             key=table_key("points"), column_config={"id": None, "points": st.column_config.NumberColumn(format="%.2f")})
        pagination(page_key, total)
        idx = selected_row(event)
        if idx is not None and st.button("🔎 Open Point", key="point_open"):
            clear_errors(f"point_{points[idx]['id']}")
            point_dialog(db, points[idx], user_scope)

        all_points, _ = db.list_points(employee_id, date_from, date_to, state, limit=None)
        st.download_button("⬇ Export Excel", data=export_points_excel(all_points),
                           file_name=export_filename("attendance_points", "xlsx"),
                           mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    else:
        st.warning("No points found.")

    st.divider()
    c_risk, c_trend = st.columns(2)
    with c_risk:
        st.subheader(f"High Risk (≥ {config.HIGH_RISK_THRESHOLD} points)")
        render_high_risk(summary["high_risk_employees"])
    with c_trend:
        st.subheader("6-Month Trend")
        render_points_trend(db.points_trend())


# --- LEAVE CALENDAR ---
def render_calendar_month(month, leaves):
    first_day, last_day = stats.month_start(month), stats.month_end(month)
    by_date = stats.leaves_by_date(leaves, first_day, last_day)
    today = date.today()

    header = "".join(f"<th>{d}</th>" for d in ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"])
    body = []
    for week in stats.calendar_weeks(month.year, month.month):
        cells = []
        for day in week:
            if day is None:
                cells.append('<td style="background:#f5f5f5"></td>')
                continue
            border = "2px solid #2563eb" if day == today else "1px solid #ddd"
            chips = "".join(
                f'<div style="background:{config.LEAVE_TYPE_COLORS.get(l["leave_type"], "#999")};color:#fff;'
                f'border-radius:3px;padding:0 3px;margin-top:2px;font-size:0.7em;white-space:nowrap;overflow:hidden">'
                f'{html.escape(l["leave_type"])} {html.escape(l["employee_name"])}</div>'
                for l in by_date.get(day, [])
            )
            cells.append(f'<td style="vertical-align:top;height:70px;border:{border};padding:2px">'
                         f'<b>{day.day}</b>{chips}</td>')
        body.append(f"<tr>{''.join(cells)}</tr>")

    st.markdown(f"**{month:%B %Y}**")
    st.markdown(f'<table style="width:100%;table-layout:fixed;border-collapse:collapse">'
                f'<tr>{header}</tr>{"".join(body)}</table>', unsafe_allow_html=True)


def _render_leave_calendar(db):
    if "leave_month" not in st.session_state:
        st.session_state.leave_month = stats.month_start(date.today())
    campaigns = dict(db.list_campaigns())

    n1, n2, n3, n4, n5, n6 = st.columns([1, 1, 1, 2, 2, 2])
    if n1.button("◀", key="leave_prev"):
        st.session_state.leave_month = stats.shift_month(st.session_state.leave_month, -1)
    if n2.button("Today", key="leave_today"):
        st.session_state.leave_month = stats.month_start(date.today())
    if n3.button("▶", key="leave_next"):
        st.session_state.leave_month = stats.shift_month(st.session_state.leave_month, 1)
    view_mode = n4.radio("View", ["single", "multi"], format_func={"single": "1 Month", "multi": "3 Months"}.get,
                         horizontal=True, key="leave_view")
    campaign_id = n5.selectbox("Campaign", [None] + list(campaigns), format_func=lambda i: campaigns.get(i, "All Campaigns"),
                               key="leave_campaign")
    leave_type = n6.selectbox("Leave Type", ["All"] + list(config.LEAVE_TYPES),
                              format_func=lambda t: config.LEAVE_TYPES.get(t, "All Types"), key="leave_type_filter")

    st.caption(" ".join(f'<span style="color:{config.LEAVE_TYPE_COLORS[k]}">■</span> {v}' for k, v in config.LEAVE_TYPES.items()),
               unsafe_allow_html=True)

    months = stats.months_to_display(st.session_state.leave_month, view_mode)
    cols = st.columns(len(months))
    for col, month in zip(cols, months):
        with col:
            render_calendar_month(month, db.leave_calendar(month, campaign_id, leave_type))


def _render_leave_requests(db, user_scope):
    page_key = "page_leave"
    status = st.selectbox("Status", ["all"] + config.LEAVE_STATUSES, format_func=str.title, key="leave_status",
                          on_change=reset_page, args=(page_key,))
    requests, total = db.list_leave_requests(status, limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if requests:
        df = pd.DataFrame(requests)
        df["leave_type"] = df["leave_type"].map(config.LEAVE_TYPES)
        event = st.dataframe(df[["id", "employee_name", "campaign_name", "leave_type", "start_date", "end_date",
                                 "days_requested", "status", "reviewed_by", "reason"]],
                             on_select="rerun", selection_mode="single-row", width="stretch", hide_index=True,
                             key=table_key("leave"), column_config={"id": None, "days_requested": "Days"})
        pagination(page_key, total)

        idx = selected_row(event)
        if idx is not None and can_write(user_scope):
            leave = requests[idx]
            a1, a2, a3 = st.columns(3)
            if leave["status"] == "pending":
                if a1.button("✅ Approve", key="leave_approve", width="stretch"):
                    run_action("leave_review", lambda: db.review_leave_request(leave["id"], "approved", actor=current_user()),
                               "Leave request approved.", "Failed to approve leave request")
                    close_dialog("leave")
                if a2.button("❌ Deny", key="leave_deny", width="stretch"):
                    run_action("leave_review", lambda: db.review_leave_request(leave["id"], "denied", actor=current_user()),
                               "Leave request denied.", "Failed to deny leave request")
                    close_dialog("leave")
            if leave["status"] in ("pending", "approved") and a3.button("🚫 Cancel", key="leave_cancel", width="stretch"):
                run_action("leave_review", lambda: db.cancel_leave_request(leave["id"], actor=current_user()),
                           "Leave request cancelled.", "Failed to cancel leave request")
                close_dialog("leave")
    else:
        st.info("No leave requests.")

    if not can_write(user_scope):
        return
    employees = _employee_options(db)
    if not employees:
        return
    errors = form_errors("leave_new")
    with st.expander("➕ File Leave Request"):
        with st.form("leave_new_form", clear_on_submit=True):
            c1, c2, c3, c4 = st.columns(4)
            employee_id = c1.selectbox("Employee *", list(employees), format_func=employees.get)
            leave_type = c2.selectbox("Leave Type *", list(config.LEAVE_TYPES), format_func=config.LEAVE_TYPES.get)
            start_date = c3.date_input("Start *", value=date.today())
            end_date = c4.date_input("End *", value=date.today())
            field_error(errors, "end_date")
            reason = st.text_area("Reason *")
            field_error(errors, "reason")
            if st.form_submit_button("Submit Request", type="primary"):
                payload = {"employee_id": employee_id, "leave_type": leave_type, "start_date": start_date,
                           "end_date": end_date, "reason": reason}
                if run_action("leave_new", lambda: db.create_leave_request(payload, actor=current_user()),
                              "Leave request filed.", "Failed to file leave request"):
                    st.rerun()


def show_leave(db, user_scope):
    st.title("🌴 Leave Calendar")
    show_flash()
    t1, t2 = st.tabs(["📅 Calendar", "📋 Requests"])
    with t1:
        _render_leave_calendar(db)
    with t2:
        _render_leave_requests(db, user_scope)
