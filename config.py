# config.py
import os

APP_VERSION = "1.4.0"
APP_TITLE = "IT Asset & Attendance Panel"

# Database
DB_NAME = "asset_panel.db"
DB_URL = os.environ.get("ASSET_PANEL_DB_URL", f"sqlite:///{DB_NAME}")

# Logging
LOG_LEVEL = os.environ.get("ASSET_PANEL_LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("ASSET_PANEL_LOG_FILE")

# Scopes / Permissions
SCOPE_ADMIN = "Admin"             # Full Access
SCOPE_READ_WRITE = "Read/Write"   # Can create/edit/delete records, cannot manage users
SCOPE_READ_ONLY = "Read Only"     # Can only view lists and dashboards
SCOPES = [SCOPE_READ_ONLY, SCOPE_READ_WRITE, SCOPE_ADMIN]

DEFAULT_ADMIN_USER = "admin"
DEFAULT_ADMIN_PASSWORD = "admin123"

# Paging / refresh
PAGE_SIZE = 10
ACTIVITY_PAGE_SIZE = 15
AUTO_REFRESH_SECONDS = 30
ACTIVITY_RETENTION_DAYS = 90

# Hardware specs
SPEC_KINDS = {"disk": "Disk", "ram": "RAM", "processor": "Processor", "monitor": "Monitor", "motherboard": "Motherboard"}
PC_COMPONENT_KINDS = ["ram", "disk", "processor"]

# (field, label, type, required, minimum)
SPEC_FIELDS = {
    "disk": [
        ("manufacturer", "Manufacturer", "str", True, None),
        ("model", "Model", "str", True, None),
        ("capacity_gb", "Capacity (GB)", "int", True, 1),
        ("interface", "Interface", "str", True, None),
        ("drive_type", "Drive Type", "str", True, None),
        ("sequential_read_mb", "Sequential Read (MB/s)", "int", True, 1),
        ("sequential_write_mb", "Sequential Write (MB/s)", "int", True, 1),
    ],
    "ram": [
        ("manufacturer", "Manufacturer", "str", True, None),
        ("model", "Model", "str", True, None),
        ("capacity_gb", "Capacity (GB)", "int", True, 1),
        ("type", "Type", "str", True, None),
        ("speed", "Speed (MHz)", "int", True, 1),
        ("form_factor", "Form Factor", "str", True, None),
        ("voltage", "Voltage (V)", "float", True, 0),
    ],
    "processor": [
        ("manufacturer", "Manufacturer", "str", True, None),
        ("model", "Model", "str", True, None),
        ("socket_type", "Socket", "str", True, None),
        ("core_count", "Cores", "int", True, 1),
        ("thread_count", "Threads", "int", True, 1),
        ("base_clock_ghz", "Base Clock (GHz)", "float", True, 0.1),
        ("boost_clock_ghz", "Boost Clock (GHz)", "float", True, 0.1),
        ("integrated_graphics", "Integrated Graphics", "str", False, None),
        ("tdp_watts", "TDP (W)", "int", True, 1),
    ],
    "monitor": [
        ("manufacturer", "Manufacturer", "str", True, None),
        ("model", "Model", "str", True, None),
        ("screen_size", "Screen Size (in)", "float", True, 10),
        ("resolution", "Resolution", "str", True, None),
        ("panel_type", "Panel Type", "str", True, None),
        ("notes", "Notes", "str", False, None),
    ],
    "motherboard": [
        ("manufacturer", "Manufacturer", "str", True, None),
        ("model", "Model", "str", True, None),
        ("chipset", "Chipset", "str", True, None),
        ("form_factor", "Form Factor", "str", True, None),
        ("socket_type", "Socket", "str", True, None),
        ("memory_type", "Memory Type", "str", True, None),
        ("ram_slots", "RAM Slots", "int", True, 1),
        ("max_ram_capacity_gb", "Max RAM (GB)", "int", True, 1),
        ("m2_slots", "M.2 Slots", "int", True, 0),
        ("sata_ports", "SATA Ports", "int", True, 0),
    ],
}

SPEC_SEARCH_COLUMNS = {
    "disk": ["manufacturer", "model", "interface", "drive_type", "capacity_gb"],
    "ram": ["manufacturer", "model", "type", "capacity_gb", "form_factor"],
    "processor": ["manufacturer", "model", "socket_type"],
    "monitor": ["manufacturer", "model", "resolution", "panel_type", "screen_size"],
    "motherboard": ["manufacturer", "model", "chipset", "socket_type", "form_factor"],
}

DRIVE_TYPES = ["SSD", "HDD", "NVMe"]
DISK_INTERFACES = ["SATA III", "PCIe 3.0 x4", "PCIe 4.0 x4", "SAS"]
RAM_TYPES = ["DDR3", "DDR4", "DDR5"]
RAM_FORM_FACTORS = ["DIMM", "SO-DIMM"]
MONITOR_MAX_SCREEN_SIZE = 100
PANEL_TYPES = ["IPS", "VA", "TN", "OLED"]
MOTHERBOARD_FORM_FACTORS = ["ATX", "Micro-ATX", "Mini-ITX"]

# Stock
LOW_STOCK_THRESHOLD = 2

# Stations
STATION_STATUSES = ["Occupied", "Vacant", "No PC", "Admin"]
MONITOR_TYPES = ["single", "dual"]
MAINTENANCE_STATUSES = ["pending", "completed", "overdue"]
TRANSFER_TYPES = ["assign", "swap", "remove"]

# IT concerns
CONCERN_CATEGORIES = ["Hardware", "Software", "Network/Connectivity", "Other"]
CONCERN_PRIORITIES = ["low", "medium", "high", "urgent"]
CONCERN_STATUSES = ["pending", "in_progress", "resolved"]
CONCERN_TREND_MONTHS = 12

# Attendance
EMPLOYEE_ROLES = ["Agent", "Team Lead", "IT", "Utility", "Admin"]
ATTENDANCE_STATUSES = [
    "on_time", "tardy", "half_day_absence", "advised_absence", "ncns",
    "undertime", "undertime_more_than_hour", "failed_bio_in", "failed_bio_out", "present_no_bio",
]
PRESENT_STATUSES = ["on_time", "tardy", "undertime", "undertime_more_than_hour"]
ABSENT_STATUSES = ["ncns", "advised_absence", "half_day_absence"]
NEEDS_VERIFICATION_STATUSES = ["failed_bio_in", "failed_bio_out", "present_no_bio"]

# Attendance points
POINT_TYPES = ["whole_day_absence", "half_day_absence", "undertime", "undertime_more_than_hour", "tardy"]
POINT_VALUES = {
    "whole_day_absence": 1.00,
    "half_day_absence": 0.50,
    "undertime": 0.25,
    "undertime_more_than_hour": 0.50,
    "tardy": 0.25,
}
POINT_TYPE_LABELS = {
    "whole_day_absence": "Whole Day Absence (NCNS)",
    "half_day_absence": "Half-Day Absence",
    "undertime": "Undertime",
    "undertime_more_than_hour": "Undertime (> 1 hour)",
    "tardy": "Tardy",
}
STATUS_POINT_TYPES = {
    "ncns": "whole_day_absence",
    "advised_absence": "whole_day_absence",
    "half_day_absence": "half_day_absence",
    "undertime": "undertime",
    "undertime_more_than_hour": "undertime_more_than_hour",
    "tardy": "tardy",
}
HIGH_RISK_THRESHOLD = 6
UNADVISED_EXPIRY_MONTHS = 12
STANDARD_EXPIRY_MONTHS = 6
POINTS_TREND_MONTHS = 6
GBRO_CLEAN_DAYS = 60
GBRO_POINTS_PER_ROLLOFF = 2

# Leave
LEAVE_TYPES = {
    "VL": "Vacation Leave",
    "SL": "Sick Leave",
    "EL": "Emergency Leave",
    "ML": "Maternity Leave",
    "PL": "Paternity Leave",
    "BL": "Bereavement Leave",
}
LEAVE_TYPE_COLORS = {
    "VL": "#3b82f6",
    "SL": "#ef4444",
    "EL": "#f97316",
    "ML": "#ec4899",
    "PL": "#8b5cf6",
    "BL": "#6b7280",
}
LEAVE_STATUSES = ["pending", "approved", "denied", "cancelled"]
