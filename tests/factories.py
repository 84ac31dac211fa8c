DISK = {
    "manufacturer": "Samsung", "model": "870 EVO", "capacity_gb": 500, "interface": "SATA III",
    "drive_type": "SSD", "sequential_read_mb": 560, "sequential_write_mb": 530,
}

RAM = {
    "manufacturer": "Kingston", "model": "FURY 8GB", "capacity_gb": 8, "type": "DDR4",
    "speed": 3200, "form_factor": "DIMM", "voltage": 1.35,
}

PROCESSOR = {
    "manufacturer": "Intel", "model": "Core i5-12400", "socket_type": "LGA1700", "core_count": 6,
    "thread_count": 12, "base_clock_ghz": 2.5, "boost_clock_ghz": 4.4,
    "integrated_graphics": "UHD 730", "tdp_watts": 65,
}

MONITOR = {
    "manufacturer": "Dell", "model": "P2422H", "screen_size": 24, "resolution": "1920x1080",
    "panel_type": "IPS", "notes": "Front desk",
}

MOTHERBOARD = {
    "manufacturer": "ASUS", "model": "PRIME B660M-A", "chipset": "B660", "form_factor": "Micro-ATX",
    "socket_type": "LGA1700", "memory_type": "DDR4", "ram_slots": 4, "max_ram_capacity_gb": 128,
    "m2_slots": 2, "sata_ports": 4,
}
