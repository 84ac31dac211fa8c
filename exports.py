# exports.py
from datetime import datetime
from io import BytesIO

import pandas as pd

import config


def convert_df_to_excel(df, sheet_name="Sheet1"):
    output = BytesIO()
    df_export = df.copy()

    # Excel rejects timezone-aware datetimes
    for col in df_export.columns:
        if pd.api.types.is_datetime64_any_dtype(df_export[col]) and df_export[col].dt.tz is not None:
            df_export[col] = df_export[col].dt.tz_localize(None)

    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        df_export.to_excel(writer, index=False, sheet_name=sheet_name)
    return output.getvalue()


def points_frame(points):
    columns = ["Employee", "Shift Date", "Type", "Points", "Status", "Expires", "Violation", "Excuse Reason"]
    rows = []
    for p in points:
        if p["is_excused"]:
            status = "Excused"
        elif p["is_expired"]:
            status = "Expired"
        else:
            status = "Active"
        rows.append({
            "Employee": p["employee_name"],
            "Shift Date": p["shift_date"],
            "Type": config.POINT_TYPE_LABELS.get(p["point_type"], p["point_type"]),
            "Points": p["points"],
            "Status": status,
            "Expires": p["expires_at"],
            "Violation": p["violation_details"],
            "Excuse Reason": p["excuse_reason"],
        })
    return pd.DataFrame(rows, columns=columns)


def export_points_excel(points):
    return convert_df_to_excel(points_frame(points), sheet_name="Attendance Points")


def activities_frame(activities):
    columns = ["Date", "Event", "Subject", "Subject ID", "Description", "Causer", "Changes"]
    rows = []
    for a in activities:
        changed = sorted(set(a["properties"].get("attributes", {})) | set(a["properties"].get("old", {})))
        rows.append({
            "Date": a["created_at"],
            "Event": a["event"],
            "Subject": a["subject_type"],
            "Subject ID": a["subject_id"],
            "Description": a["description"],
            "Causer": a["causer"],
            "Changes": ", ".join(changed),
        })
    return pd.DataFrame(rows, columns=columns)


def export_activities_csv(db, search=None, event=None, causer=None):
    activities, _ = db.list_activities(search, event, causer, limit=None)
    return activities_frame(activities).to_csv(index=False).encode('utf-8')


def export_filename(prefix, ext):
    return f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M')}.{ext}"
