import time
from datetime import date

import pandas as pd
import plotly.express as px
import streamlit as st

import config
from exports import export_activities_csv, export_filename
from widgets import current_user, set_flash, show_flash, confirm_delete, page_offset, pagination, reset_page, selected_row
from workforce_views import (
    render_concern_insights, render_presence, render_attendance_cards, render_high_risk,
    render_points_trend, render_calendar_month,
)


# --- DASHBOARD TABS ---
def _render_infrastructure(db):
    data = db.station_stats()
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Stations", data["total_stations"]["total"])
    c2.metric("Without PC", data["no_pcs"]["total"])
    c3.metric("Vacant", data["vacant_stations"]["total"])
    c4.metric("Dual Monitor", data["dual_monitor"]["total"])

    c_site, c_vacant = st.columns(2)
    with c_site:
        st.subheader("Stations by Site")
        if data["total_stations"]["by_site"]:
            st.plotly_chart(px.bar(pd.DataFrame(data["total_stations"]["by_site"]), x="site", y="count"))
        else:
            st.info("No stations registered.")
    with c_vacant:
        st.subheader("Vacant by Site")
        if data["vacant_stations"]["by_site"]:
            st.plotly_chart(px.pie(pd.DataFrame(data["vacant_stations"]["by_site"]), names="site", values="count", hole=0.4))
        else:
            st.info("No vacant stations.")

    st.subheader("🔧 Maintenance Due")
    due = data["maintenance_due"]["stations"]
    if due:
        st.dataframe(pd.DataFrame(due), width="stretch", hide_index=True)
    else:
        st.success("No maintenance overdue.")

    c_nopc, c_unassigned = st.columns(2)
    with c_nopc:
        st.subheader("Stations Without PC")
        if data["no_pcs"]["stations"]:
            st.dataframe(pd.DataFrame(data["no_pcs"]["stations"]), width="stretch", hide_index=True)
        else:
            st.caption("Every station has a PC.")
    with c_unassigned:
        st.subheader("Unassigned PCs")
        unassigned = data["unassigned_pc_specs"]
        if unassigned:
            st.dataframe(pd.DataFrame(unassigned)[["pc_number", "processor", "ram_gb", "disk_tb"]], width="stretch",
                         hide_index=True, column_config={"ram_gb": "RAM (GB)", "disk_tb": "Disk (TB)"})
        else:
            st.caption("All PCs are assigned.")


def _render_presence_insights(db):
    st.subheader("Today's Presence")
    render_presence(db)
    st.subheader("This Month")
    render_attendance_cards(db)

    c_cal, c_points = st.columns(2)
    with c_cal:
        st.subheader("Leave Calendar")
        month = date.today().replace(day=1)
        render_calendar_month(month, db.leave_calendar(month))
    with c_points:
        st.subheader("Attendance Points")
        st.caption(f"High risk: ≥ {config.HIGH_RISK_THRESHOLD} active points")
        render_high_risk(db.high_risk_employees())
        render_points_trend(db.points_trend())


def _render_stock_overview(db):
    data = db.stock_overview()
    totals = pd.DataFrame([{"type": config.SPEC_KINDS[k], **v} for k, v in data["by_type"].items()])
    cols = st.columns(len(totals))
    for col, row in zip(cols, totals.to_dict("records")):
        col.metric(f"{row['type']} Available", row["available"], f"{row['reserved']} reserved", delta_color="off")
    if totals["quantity"].sum() > 0:
        melted = totals.melt(id_vars=["type"], value_vars=["available", "reserved"], var_name="state", value_name="units")
        st.plotly_chart(px.bar(melted, x="type", y="units", color="state", barmode="stack"))

    st.subheader(f"⚠️ Low Stock (≤ {config.LOW_STOCK_THRESHOLD} available)")
    if data["low_stock"]:
        low = pd.DataFrame(data["low_stock"])[["label", "type", "quantity", "reserved", "available", "location"]]
        low["type"] = low["type"].map(config.SPEC_KINDS)
        st.dataframe(low, width="stretch", hide_index=True)
    else:
        st.success("Stock levels are healthy.")


# --- VIEW: DASHBOARD ---
def show_dashboard(db, user_scope):
    st.title("📊 Command Center")
    auto = st.toggle(f"Auto refresh ({config.AUTO_REFRESH_SECONDS}s)", key="dashboard_auto")

    @st.fragment(run_every=config.AUTO_REFRESH_SECONDS if auto else None)
    def _body():
        st.caption(f"Updated {time.strftime('%H:%M:%S')}")
        t1, t2, t3, t4 = st.tabs(["🖥️ Infrastructure", "🛠️ IT Concerns", "🕒 Presence Insights", "📦 Stock"])
        with t1:
            _render_infrastructure(db)
        with t2:
            render_concern_insights(db)
        with t3:
            _render_presence_insights(db)
        with t4:
            _render_stock_overview(db)

    _body()


# --- ACTIVITY LOG ---
def _render_activity_detail(activity):
    st.write(f"**{activity['description']}** by {activity['causer']} at {activity['created_at']}")
    props = activity["properties"]
    old, new = props.get("old", {}), props.get("attributes", {})
    fields = sorted(set(old) | set(new))
    if fields:
        st.dataframe(pd.DataFrame([{"Field": f, "Old": old.get(f), "New": new.get(f)} for f in fields]).astype(str),
                     width="stretch", hide_index=True)
    else:
        st.caption("No attribute changes recorded.")


def _render_activity_log(db):
    page_key = "page_activity"
    f1, f2, f3 = st.columns([2, 1, 1])
    search = f1.text_input("🔍 Search", key="activity_search", placeholder="Description, subject, user...",
                           on_change=reset_page, args=(page_key,))
    event = f2.selectbox("Event", ["all", "created", "updated", "deleted"], format_func=str.title,
                         key="activity_event", on_change=reset_page, args=(page_key,))
    causer = f3.selectbox("User", ["all"] + db.get_causers(), key="activity_causer",
                          on_change=reset_page, args=(page_key,))
    auto = st.toggle(f"Auto refresh ({config.AUTO_REFRESH_SECONDS}s)", key="activity_auto")

    @st.fragment(run_every=config.AUTO_REFRESH_SECONDS if auto else None)
    def _table():
        activities, total = db.list_activities(search or None, event, causer, limit=config.ACTIVITY_PAGE_SIZE,
                                               offset=page_offset(page_key, config.ACTIVITY_PAGE_SIZE))
        if not activities:
            st.info("No activity found.")
            return
        df = pd.DataFrame(activities)[["id", "created_at", "event", "subject_type", "subject_id", "description", "causer"]]
        sel = st.dataframe(df, on_select="rerun", selection_mode="single-row", width="stretch", hide_index=True,
                           key="activity_table", column_config={"id": None})
        pagination(page_key, total, config.ACTIVITY_PAGE_SIZE)
        idx = selected_row(sel)
        if idx is not None:
            _render_activity_detail(activities[idx])

    _table()

    st.download_button("⬇ Export CSV", data=export_activities_csv(db, search or None, event, causer),
                       file_name=export_filename("activity_log", "csv"), mime="text/csv")

    with st.expander("🧹 Retention"):
        days = st.number_input("Delete entries older than (days)", min_value=1, step=1, value=config.ACTIVITY_RETENTION_DAYS)
        if st.button("Purge Old Entries", key="activity_purge"):
            deleted = db.purge_activities(int(days))
            set_flash(f"Purged {deleted} activity entries.")
            st.rerun()


# --- VIEW: ADMIN ---
def show_admin(db, user_scope):
    st.title("🛡️ Admin Panel")
    if user_scope != config.SCOPE_ADMIN: st.error("Denied: Admin Access Required"); return
    show_flash()

    t1, t2, t3 = st.tabs(["👥 User Management", "📜 Activity Log", "🗄️ Data"])

    with t1:
        u_tab1, u_tab2 = st.tabs(["Create User", "Manage Existing Users"])
        with u_tab1:
            st.subheader("Create New User")
            with st.form("new_u"):
                c1, c2, c3 = st.columns(3)
                u = c1.text_input("Username")
                p = c2.text_input("Password", type="password")
                r = c3.selectbox("Access Scope", config.SCOPES)
                if st.form_submit_button("Create User"):
                    if u and p:
                        if db.add_user(u, p, "User", r, actor=current_user()): st.success(f"User '{u}' Created"); time.sleep(1); st.rerun()
                        else: st.error("Username already exists.")
                    else:
                        st.error("Username and password are required.")

        with u_tab2:
            st.subheader("Manage Existing Users")
            all_users = db.get_all_users()
            user_map = {f"{usr[1]} ({usr[3]})": usr for usr in all_users}
            selected_label = st.selectbox("Select User to Manage", [""] + list(user_map.keys()))
            if selected_label:
                uid, uname, urole, uscope = user_map[selected_label]
                c_scope, c_pass, c_del = st.columns(3)
                with c_scope:
                    new_scope_val = st.selectbox("New Scope", config.SCOPES, index=config.SCOPES.index(uscope), key=f"s_{uid}")
                    if st.button("Update Scope", key=f"btn_s_{uid}"):
                        db.update_user_scope(uid, new_scope_val, actor=current_user()); set_flash("Scope updated."); st.rerun()
                with c_pass:
                    new_pass_val = st.text_input("New Password", type="password", key=f"p_{uid}")
                    if st.button("Update Password", key=f"btn_p_{uid}"):
                        if new_pass_val: db.update_user_password(uid, new_pass_val, actor=current_user()); st.success("Updated!")
                with c_del:
                    st.write("Danger Zone")
                    if confirm_delete(f"del_{uid}", "🗑️ Delete User"):
                        if uname == current_user(): st.error("You cannot delete yourself.")
                        else: db.delete_user(uid, actor=current_user()); set_flash(f"Deleted {uname}"); st.rerun()

    with t2:
        _render_activity_log(db)

    with t3:
        if config.DB_URL.startswith("sqlite:///"):
            db_path = config.DB_URL[len("sqlite:///"):]
            try:
                with open(db_path, "rb") as fp:
                    st.download_button("💾 Backup Database", fp, "backup.db", type="primary")
            except OSError:
                st.caption("Database file not available for backup.")

        st.subheader("Sample Hardware Specs")
        st.caption("Loads common disks, RAM modules, processors, monitors and motherboards. Existing models are skipped.")
        if st.button("📥 Load Sample Specs"):
            created = db.seed_specs(actor=current_user())
            set_flash(f"Loaded {created} specifications.")
            st.rerun()
