# hardware_views.py
import io

import pandas as pd
import streamlit as st

import config
from labels import generate_qr, generate_station_label_sheet, decode_qr_image, parse_station_qr, station_qr_payload
from widgets import (
    can_write, current_user, set_flash, show_flash, form_errors, clear_errors, field_error,
    run_action, confirm_delete, page_offset, pagination, reset_page, selected_row, table_key, close_dialog,
)

FIELD_CHOICES = {
    "disk": {"drive_type": config.DRIVE_TYPES, "interface": config.DISK_INTERFACES},
    "ram": {"type": config.RAM_TYPES, "form_factor": config.RAM_FORM_FACTORS},
    "monitor": {"panel_type": config.PANEL_TYPES},
    "motherboard": {"memory_type": config.RAM_TYPES, "form_factor": config.MOTHERBOARD_FORM_FACTORS},
}


# --- SPEC FORM FIELDS ---
def _spec_inputs(kind, spec, errors, key):
    payload = {}
    fields = config.SPEC_FIELDS[kind]
    choices = FIELD_CHOICES.get(kind, {})
    cols = st.columns(2)
    for i, (name, label, ftype, required, minimum) in enumerate(fields):
        current = spec.get(name) if spec else None
        caption = f"{label} *" if required else label
        with cols[i % 2]:
            if name in choices:
                options = choices[name]
                index = options.index(current) if current in options else 0
                payload[name] = st.selectbox(caption, options, index=index, key=f"{key}_{name}")
            elif ftype == "int":
                payload[name] = st.number_input(caption, value=current, step=1, key=f"{key}_{name}")
            elif ftype == "float":
                payload[name] = st.number_input(caption, value=current, step=0.1, format="%.2f", key=f"{key}_{name}")
            else:
                payload[name] = st.text_input(caption, value=current or "", key=f"{key}_{name}")
            field_error(errors, name)
    return payload


@st.dialog("Hardware Specification", width="large")
def spec_dialog(db, kind, spec, user_scope):
    label = config.SPEC_KINDS[kind]
    form_key = f"spec_{kind}_{spec['id'] if spec else 'new'}"
    errors = form_errors(form_key)

    if spec:
        st.subheader(f"{spec['manufacturer']} {spec['model']}")
        st.caption(f"{label} #{spec['id']} | In stock: {spec['stock']}")
    else:
        st.subheader(f"New {label}")

    if not can_write(user_scope):
        st.json({k: v for k, v in spec.items() if k != "stock_id"})
        return

    payload = _spec_inputs(kind, spec, errors, form_key)

    c_save, c_del = st.columns(2)
    if c_save.button("💾 Save", type="primary", key=f"{form_key}_save", width="stretch"):
        if spec:
            action = lambda: db.update_spec(kind, spec["id"], payload, actor=current_user())
            verb = "updated"
        else:
            action = lambda: db.create_spec(kind, payload, actor=current_user())
            verb = "created"
        run_action(form_key, action,
                   f"{label} specification {verb} successfully.",
                   f"Failed to {verb[:-1]} {label} specification", in_dialog=True)
        close_dialog(f"spec_{kind}")

    if spec and confirm_delete(f"{form_key}_del", container=c_del):
        run_action(form_key, lambda: db.delete_spec(kind, spec["id"], actor=current_user()),
                   f"{label} specification deleted successfully.",
                   f"Failed to delete {label} specification")
        close_dialog(f"spec_{kind}")


def _render_spec_tab(db, kind, user_scope):
    label = config.SPEC_KINDS[kind]
    page_key = f"page_spec_{kind}"

    c_search, c_add = st.columns([4, 1])
    search = c_search.text_input("🔍 Search", key=f"search_{kind}", placeholder="Manufacturer, model...",
                                 on_change=reset_page, args=(page_key,))
    if can_write(user_scope) and c_add.button(f"➕ Add {label}", key=f"add_{kind}", width="stretch"):
        clear_errors(f"spec_{kind}_new")
        spec_dialog(db, kind, None, user_scope)

    specs, total = db.list_specs(kind, search or None, limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if not specs:
        st.warning("No results.")
        return

    df = pd.DataFrame(specs).drop(columns=["stock_id", "created_at"])
    event = st.dataframe(df, on_select="rerun", selection_mode="single-row", width="stretch", hide_index=True,
                         key=table_key(f"spec_{kind}"), column_config={"id": None, "stock": st.column_config.NumberColumn("Stock")})
    pagination(page_key, total)

    idx = selected_row(event)
    if idx is not None:
        c_edit, c_stock = st.columns(2)
        spec = specs[idx]
        if c_edit.button("✏️ Open Specification", key=f"open_{kind}", width="stretch"):
            clear_errors(f"spec_{kind}_{spec['id']}")
            spec_dialog(db, kind, spec, user_scope)
        if can_write(user_scope) and c_stock.button("📦 Manage Stock", key=f"stock_{kind}", width="stretch"):
            stock = db.get_stock(spec["stock_id"]) if spec["stock_id"] else None
            stock_dialog(db, kind, spec["id"], stock, f"{spec['manufacturer']} {spec['model']}", f"spec_{kind}")


# --- VIEW: HARDWARE SPECS ---
def show_specs(db, user_scope):
    st.title("🧩 Hardware Specifications")
    show_flash()
    tabs = st.tabs([f"{label}s" if kind != "ram" else "RAM" for kind, label in config.SPEC_KINDS.items()])
    for tab, kind in zip(tabs, config.SPEC_KINDS):
        with tab:
            _render_spec_tab(db, kind, user_scope)


# --- STOCK DIALOG ---
@st.dialog("Manage Stock")
def stock_dialog(db, kind, stockable_id, stock, label, table_name):
    form_key = f"stock_{kind}_{stockable_id}"
    errors = form_errors(form_key)
    st.subheader(label)
    st.caption(f"{config.SPEC_KINDS[kind]} | Available: {stock['available'] if stock else 0}")

    c1, c2 = st.columns(2)
    with c1:
        quantity = st.number_input("Quantity", min_value=0, step=1, value=stock["quantity"] if stock else 0, key=f"{form_key}_q")
        field_error(errors, "quantity")
    with c2:
        reserved = st.number_input("Reserved", min_value=0, step=1, value=stock["reserved"] if stock else 0, key=f"{form_key}_r")
        field_error(errors, "reserved")
    location = st.text_input("Location", value=(stock or {}).get("location") or "", key=f"{form_key}_loc")
    field_error(errors, "location")
    notes = st.text_area("Notes", value=(stock or {}).get("notes") or "", key=f"{form_key}_notes")
    field_error(errors, "stockable_id")

    if reserved > quantity:
        st.warning("Reserved exceeds quantity; available stock will be negative.")

    if st.button("💾 Save Stock", type="primary", key=f"{form_key}_save", width="stretch"):
        run_action(form_key, lambda: db.save_stock(kind, stockable_id, quantity, reserved, location, notes, actor=current_user()),
                   "Stock saved successfully.", "Failed to save stock", in_dialog=True)
        close_dialog(table_name)

    st.divider()
    st.write("**Quick Adjust**")
    a1, a2, a3 = st.columns([2, 1, 1])
    delta = a1.number_input("Amount", min_value=1, step=1, value=1, key=f"{form_key}_delta", label_visibility="collapsed")
    if a2.button("➕ Add", key=f"{form_key}_inc", width="stretch"):
        run_action(form_key, lambda: db.adjust_stock(kind, stockable_id, int(delta), actor=current_user()),
                   "Stock increased.", "Failed to adjust stock", in_dialog=True)
        close_dialog(table_name)
    if a3.button("➖ Remove", key=f"{form_key}_dec", width="stretch"):
        run_action(form_key, lambda: db.adjust_stock(kind, stockable_id, -int(delta), actor=current_user()),
                   "Stock decreased.", "Failed to adjust stock", in_dialog=True)
        close_dialog(table_name)

    if stock and confirm_delete(f"{form_key}_del", "🗑️ Delete Stock Record"):
        run_action(form_key, lambda: db.delete_stock(stock["id"], actor=current_user()),
                   "Stock record deleted.", "Failed to delete stock")
        close_dialog(table_name)


# --- VIEW: STOCK ---
def show_stock(db, user_scope):
    st.title("📦 Stock")
    show_flash()
    page_key = "page_stock"

    c_type, c_search = st.columns([1, 3])
    type_labels = {"all": "All Types", **config.SPEC_KINDS}
    stock_type = c_type.selectbox("Type", list(type_labels), format_func=type_labels.get, key="stock_type",
                                  on_change=reset_page, args=(page_key,))
    search = c_search.text_input("🔍 Search", key="stock_search", placeholder="Model, location, notes...",
                                 on_change=reset_page, args=(page_key,))

    stocks, total = db.list_stocks(None if stock_type == "all" else stock_type, search or None,
                                   limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if stocks:
        df = pd.DataFrame(stocks)[["id", "label", "type", "quantity", "reserved", "available", "location", "updated_at"]]
        df["type"] = df["type"].map(config.SPEC_KINDS)
        event = st.dataframe(df, on_select="rerun", selection_mode="single-row", width="stretch", hide_index=True,
                             key=table_key("stock"), column_config={"id": None, "label": "Item"})
        pagination(page_key, total)
        idx = selected_row(event)
        if idx is not None and can_write(user_scope):
            stock = stocks[idx]
            if st.button(f"✏️ Edit {stock['label']}", key="stock_edit"):
                stock_dialog(db, stock["type"], stock["stockable_id"], stock, stock["label"], "stock")
    else:
        st.warning("No stock records.")

    if can_write(user_scope):
        st.divider()
        st.subheader("Add Stock")
        k1, k2, k3 = st.columns([1, 3, 1])
        kind = k1.selectbox("Spec Type", list(config.SPEC_KINDS), format_func=config.SPEC_KINDS.get, key="new_stock_kind")
        options = db.spec_options(kind)
        if not options:
            k2.caption("No specifications of this type yet.")
            return
        option_map = dict(options)
        spec_id = k2.selectbox("Specification", list(option_map), format_func=option_map.get, key="new_stock_spec")
        if k3.button("Open", key="new_stock_open", width="stretch"):
            existing, _ = db.list_stocks(kind, limit=None, spec_ids=[spec_id])
            stock_dialog(db, kind, spec_id, existing[0] if existing else None, option_map[spec_id], "stock")


# --- STATION DIALOG ---
def _station_inputs(db, station, errors, form_key):
    sites = dict(db.list_sites())
    campaigns = dict(db.list_campaigns())
    pcs = {p["id"]: p["pc_number"] for p in db.list_pc_specs()}
    current = station or {}

    def _index(options, value):
        return options.index(value) if value in options else 0

    c1, c2 = st.columns(2)
    with c1:
        station_number = st.text_input("Station Number *", value=current.get("station_number", ""), key=f"{form_key}_num")
        field_error(errors, "station_number")
        site_ids = list(sites)
        site_id = st.selectbox("Site *", site_ids, index=_index(site_ids, current.get("site_id")),
                               format_func=sites.get, key=f"{form_key}_site")
        field_error(errors, "site_id")
        status = st.selectbox("Status *", config.STATION_STATUSES,
                              index=_index(config.STATION_STATUSES, current.get("status")), key=f"{form_key}_status")
        field_error(errors, "status")
    with c2:
        campaign_ids = list(campaigns)
        campaign_id = st.selectbox("Campaign *", campaign_ids, index=_index(campaign_ids, current.get("campaign_id")),
                                   format_func=campaigns.get, key=f"{form_key}_campaign")
        field_error(errors, "campaign_id")
        monitor_type = st.selectbox("Monitor *", config.MONITOR_TYPES,
                                    index=_index(config.MONITOR_TYPES, current.get("monitor_type")), key=f"{form_key}_monitor")
        field_error(errors, "monitor_type")
        pc_ids = [None] + list(pcs)
        pc_spec_id = st.selectbox("PC", pc_ids, index=_index(pc_ids, current.get("pc_spec_id")),
                                  format_func=lambda i: pcs.get(i, "No PC"), key=f"{form_key}_pc")
        field_error(errors, "pc_spec_id")

    return {"station_number": station_number, "site_id": site_id, "campaign_id": campaign_id,
            "status": status, "monitor_type": monitor_type, "pc_spec_id": pc_spec_id}


@st.dialog("Station", width="large")
def station_dialog(db, station, user_scope):
    form_key = f"station_{station['id'] if station else 'new'}"
    errors = form_errors(form_key)

    if station:
        c_info, c_qr = st.columns([3, 1])
        with c_info:
            st.subheader(f"Station {station['station_number']}")
            st.caption(f"{station['site']} | {station['campaign']} | PC: {station['pc_number'] or 'None'}")
        with c_qr:
            buf = io.BytesIO()
            generate_qr(station_qr_payload(station)).save(buf, format="PNG")
            st.image(buf.getvalue(), width=100)
            st.download_button("⬇ QR", data=buf.getvalue(), file_name=f"QR_station_{station['station_number']}.png",
                               mime="image/png", key=f"{form_key}_qr")

    if not can_write(user_scope):
        return

    payload = _station_inputs(db, station, errors, form_key)
    c_save, c_del = st.columns(2)
    if c_save.button("💾 Save", type="primary", key=f"{form_key}_save", width="stretch"):
        if station:
            run_action(form_key, lambda: db.update_station(station["id"], payload, actor=current_user()),
                       "Station updated successfully.", "Failed to update station", in_dialog=True)
        else:
            run_action(form_key, lambda: db.create_station(payload, actor=current_user()),
                       "Station created successfully.", "Failed to create station", in_dialog=True)
        close_dialog("stations")
    if station and confirm_delete(f"{form_key}_del", container=c_del):
        run_action(form_key, lambda: db.delete_station(station["id"], actor=current_user()),
                   "Station deleted successfully.", "Failed to delete station")
        close_dialog("stations")


def _render_station_list(db, user_scope):
    page_key = "page_stations"
    sites = dict(db.list_sites())
    campaigns = dict(db.list_campaigns())

    f1, f2, f3, f4 = st.columns([2, 1, 1, 1])
    search = f1.text_input("🔍 Search", key="station_search", placeholder="Station or PC number...",
                           on_change=reset_page, args=(page_key,))
    site_id = f2.selectbox("Site", [None] + list(sites), format_func=lambda i: sites.get(i, "All Sites"),
                           key="station_site", on_change=reset_page, args=(page_key,))
    campaign_id = f3.selectbox("Campaign", [None] + list(campaigns), format_func=lambda i: campaigns.get(i, "All Campaigns"),
                               key="station_campaign", on_change=reset_page, args=(page_key,))
    status = f4.selectbox("Status", ["All"] + config.STATION_STATUSES, key="station_status",
                          on_change=reset_page, args=(page_key,))

    if can_write(user_scope):
        if not sites or not campaigns:
            st.info("Create at least one site and one campaign before adding stations.")
        elif st.button("➕ Add Station", key="station_add"):
            clear_errors("station_new")
            station_dialog(db, None, user_scope)

    stations, total = db.list_stations(search or None, site_id, campaign_id, status,
                                       limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if not stations:
        st.warning("No stations found.")
        return

    df = pd.DataFrame(stations)[["id", "station_number", "site", "campaign", "status", "monitor_type", "pc_number"]]
    event = st.dataframe(df, on_select="rerun", selection_mode="multi-row", width="stretch", hide_index=True,
                         key=table_key("stations"), column_config={"id": None, "pc_number": "PC"})
    pagination(page_key, total)

    rows = event.selection.rows
    if len(rows) == 1:
        if st.button(f"🔎 Open Station {stations[rows[0]]['station_number']}", key="station_open"):
            station_dialog(db, stations[rows[0]], user_scope)
    if rows:
        st.info(f"✅ **{len(rows)} Stations Selected**")
        if st.button("🖨️ Generate QR Label Sheet (PDF)", key="station_labels"):
            pdf_data = generate_station_label_sheet([stations[i] for i in rows])
            st.download_button(label="⬇ Download Sticker Sheet", data=pdf_data, file_name="station_labels.pdf",
                               mime="application/pdf", key="station_labels_dl")


def _render_pcs(db, user_scope):
    pcs = db.list_pc_specs()
    if pcs:
        df = pd.DataFrame(pcs)
        df["stations"] = df["stations"].apply(", ".join)
        st.dataframe(df[["pc_number", "manufacturer", "model", "processor", "ram", "ram_gb", "disk", "disk_tb", "stations", "issue"]],
                     width="stretch", hide_index=True,
                     column_config={"ram_gb": "RAM (GB)", "disk_tb": "Disk (TB)"})
    else:
        st.info("No PCs registered.")

    if not can_write(user_scope):
        return

    form_key = "pc_new"
    errors = form_errors(form_key)
    with st.expander("➕ Register PC"):
        c1, c2, c3 = st.columns(3)
        payload = {
            "pc_number": c1.text_input("PC Number *", key="pc_number"),
            "manufacturer": c2.text_input("Manufacturer", key="pc_manufacturer"),
            "model": c3.text_input("Model", key="pc_model"),
        }
        field_error(errors, "pc_number")
        for kind in config.PC_COMPONENT_KINDS:
            options = dict(db.spec_options(kind))
            payload[f"{kind}_ids"] = st.multiselect(config.SPEC_KINDS[kind], list(options), format_func=options.get, key=f"pc_{kind}")
            field_error(errors, f"{kind}_ids")
        payload["issue"] = st.text_area("Known Issues", key="pc_issue")
        if st.button("Save PC", type="primary", key="pc_save"):
            if run_action(form_key, lambda: db.create_pc_spec(payload, actor=current_user()),
                          "PC registered successfully.", "Failed to register PC"):
                st.rerun()

    if pcs:
        with st.expander("🗑️ Remove PC"):
            pc_map = {p["id"]: p["pc_number"] for p in pcs}
            pc_id = st.selectbox("PC", list(pc_map), format_func=pc_map.get, key="pc_delete_id")
            if confirm_delete("pc_delete", "Delete PC"):
                run_action("pc_delete", lambda: db.delete_pc_spec(pc_id, actor=current_user()),
                           "PC deleted successfully.", "Failed to delete PC")
                st.rerun()

    st.subheader("🔧 Maintenance")
    maintenances = db.list_maintenances()
    if maintenances:
        st.dataframe(pd.DataFrame(maintenances).drop(columns=["pc_spec_id"]), width="stretch", hide_index=True,
                     column_config={"id": None})
        pending = {m["id"]: f"{m['pc_number']} (due {m['next_due_date']})" for m in maintenances if m["status"] != "completed"}
        if pending:
            m1, m2 = st.columns([3, 1])
            m_id = m1.selectbox("Open maintenance", list(pending), format_func=pending.get, key="maint_complete_id")
            if m2.button("✅ Mark Completed", key="maint_complete", width="stretch"):
                run_action("maint_complete", lambda: db.complete_maintenance(m_id, actor=current_user()),
                           "Maintenance completed.", "Failed to complete maintenance")
                st.rerun()

    if pcs:
        m_errors = form_errors("maint_new")
        with st.form("maint_new_form"):
            pc_map = {p["id"]: p["pc_number"] for p in pcs}
            c1, c2, c3 = st.columns(3)
            pc_id = c1.selectbox("PC", list(pc_map), format_func=pc_map.get)
            last_date = c2.date_input("Last Maintenance", value=None)
            next_date = c3.date_input("Next Due *", value=None)
            field_error(m_errors, "next_due_date")
            notes = st.text_input("Notes")
            if st.form_submit_button("Schedule Maintenance"):
                if run_action("maint_new", lambda: db.record_maintenance(pc_id, next_date, last_date, notes or None, actor=current_user()),
                              "Maintenance scheduled.", "Failed to schedule maintenance"):
                    st.rerun()


def _render_transfers(db, user_scope):
    if can_write(user_scope):
        pcs = {p["id"]: p["pc_number"] + (f" (at {', '.join(p['stations'])})" if p["stations"] else " (floating)")
               for p in db.list_pc_specs()}
        stations, _ = db.list_stations(limit=None)
        station_map = {s["id"]: f"{s['station_number']} | {s['site']} | PC: {s['pc_number'] or 'None'}" for s in stations}
        if not pcs or not station_map:
            st.info("Register PCs and stations before transferring.")
        else:
            errors = form_errors("pc_transfer")
            with st.form("pc_transfer_form"):
                c1, c2 = st.columns(2)
                pc_id = c1.selectbox("PC *", list(pcs), format_func=pcs.get)
                to_station_id = c2.selectbox("To Station *", list(station_map), format_func=station_map.get)
                field_error(errors, "to_station_id")
                swap = st.checkbox("Swap with the PC already on the target station")
                notes = st.text_input("Notes")
                if st.form_submit_button("🔁 Transfer", type="primary"):
                    if run_action("pc_transfer", lambda: db.transfer_pc(pc_id, to_station_id, swap, notes, actor=current_user()),
                                  "PC transferred successfully.", "Failed to transfer PC"):
                        st.rerun()

            occupied = {s["id"]: station_map[s["id"]] for s in stations if s["pc_spec_id"]}
            if occupied:
                r1, r2 = st.columns([3, 1])
                station_id = r1.selectbox("Remove PC from", list(occupied), format_func=occupied.get, key="pc_remove_station")
                if r2.button("⏏️ Remove PC", key="pc_remove", width="stretch"):
                    run_action("pc_remove", lambda: db.remove_pc_from_station(station_id, actor=current_user()),
                               "PC removed from station.", "Failed to remove PC")
                    st.rerun()

    st.subheader("Transfer History")
    page_key = "page_transfers"
    transfers, total = db.list_pc_transfers(limit=config.PAGE_SIZE, offset=page_offset(page_key))
    if transfers:
        st.dataframe(pd.DataFrame(transfers), width="stretch", hide_index=True, column_config={"id": None})
        pagination(page_key, total)
    else:
        st.caption("No transfers yet.")


def _render_named(db, title, list_fn, create_fn, delete_fn, key, user_scope):
    st.subheader(title)
    items = list_fn()
    if items:
        st.dataframe(pd.DataFrame(items, columns=["ID", "Name"]), width="stretch", hide_index=True, column_config={"ID": None})
    else:
        st.caption(f"No {title.lower()} yet.")
    if not can_write(user_scope):
        return
    errors = form_errors(key)
    with st.form(f"{key}_form", clear_on_submit=True):
        name = st.text_input("Name")
        field_error(errors, "name")
        if st.form_submit_button("Add"):
            if run_action(key, lambda: create_fn(name, actor=current_user()),
                          f"'{name}' added.", f"Failed to add '{name}'"):
                st.rerun()
    if items:
        item_map = dict(items)
        c1, c2 = st.columns([3, 1])
        item_id = c1.selectbox("Remove", list(item_map), format_func=item_map.get, key=f"{key}_del_id")
        if confirm_delete(f"{key}_del", container=c2):
            try:
                delete_fn(item_id, actor=current_user())
                set_flash(f"'{item_map[item_id]}' deleted.")
            except Exception as e:
                set_flash(f"Failed to delete: {e}", "error")
            st.rerun()


def _render_scan(db, user_scope):
    st.write("👉 **Scan a station label with the webcam**")
    cam = st.camera_input("Scan station QR")
    if not cam:
        return
    codes = decode_qr_image(cam.getvalue())
    if not codes:
        st.caption("No QR code detected in image.")
        return
    for code in codes:
        station_id = parse_station_qr(code)
        station = db.get_station(station_id) if station_id else None
        if station is None:
            st.error(f"Unknown code: {code}")
            continue
        st.success(f"Detected: Station {station['station_number']} ({station['site']})")
        if st.button(f"Open Station {station['station_number']}", key=f"scan_open_{station['id']}"):
            station_dialog(db, station, user_scope)


# --- VIEW: STATIONS ---
def show_stations(db, user_scope):
    st.title("🖥️ Stations")
    show_flash()
    t1, t2, t3, t4, t5 = st.tabs(["Stations", "PCs & Maintenance", "🔁 PC Transfers", "Sites & Campaigns", "📷 Scan"])
    with t1:
        _render_station_list(db, user_scope)
    with t2:
        _render_pcs(db, user_scope)
    with t3:
        _render_transfers(db, user_scope)
    with t4:
        c1, c2 = st.columns(2)
        with c1:
            _render_named(db, "Sites", db.list_sites, db.create_site, db.delete_site, "site_new", user_scope)
        with c2:
            _render_named(db, "Campaigns", db.list_campaigns, db.create_campaign, db.delete_campaign, "campaign_new", user_scope)
    with t5:
        _render_scan(db, user_scope)
