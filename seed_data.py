# seed_data.py
# Common parts loaded from the Admin page ("Load sample specs").

SEED_SPECS = {
    "disk": [
        {"manufacturer": "Samsung", "model": "870 EVO 500GB", "capacity_gb": 500, "interface": "SATA III",
         "drive_type": "SSD", "sequential_read_mb": 560, "sequential_write_mb": 530},
        {"manufacturer": "Samsung", "model": "980 PRO 1TB", "capacity_gb": 1000, "interface": "PCIe 4.0 x4",
         "drive_type": "NVMe", "sequential_read_mb": 7000, "sequential_write_mb": 5000},
        {"manufacturer": "Western Digital", "model": "Blue 1TB", "capacity_gb": 1000, "interface": "SATA III",
         "drive_type": "HDD", "sequential_read_mb": 150, "sequential_write_mb": 150},
        {"manufacturer": "Kingston", "model": "A400 240GB", "capacity_gb": 240, "interface": "SATA III",
         "drive_type": "SSD", "sequential_read_mb": 500, "sequential_write_mb": 350},
        {"manufacturer": "Crucial", "model": "P3 500GB", "capacity_gb": 500, "interface": "PCIe 3.0 x4",
         "drive_type": "NVMe", "sequential_read_mb": 3500, "sequential_write_mb": 1900},
    ],
    "ram": [
        {"manufacturer": "Kingston", "model": "FURY Beast 8GB", "capacity_gb": 8, "type": "DDR4",
         "speed": 3200, "form_factor": "DIMM", "voltage": 1.35},
        {"manufacturer": "Corsair", "model": "Vengeance LPX 16GB", "capacity_gb": 16, "type": "DDR4",
         "speed": 3200, "form_factor": "DIMM", "voltage": 1.35},
        {"manufacturer": "Crucial", "model": "CT8G4SFRA32A", "capacity_gb": 8, "type": "DDR4",
         "speed": 3200, "form_factor": "SO-DIMM", "voltage": 1.2},
        {"manufacturer": "G.Skill", "model": "Ripjaws S5 32GB", "capacity_gb": 32, "type": "DDR5",
         "speed": 5600, "form_factor": "DIMM", "voltage": 1.25},
        {"manufacturer": "Kingston", "model": "ValueRAM 4GB", "capacity_gb": 4, "type": "DDR3",
         "speed": 1600, "form_factor": "DIMM", "voltage": 1.5},
    ],
    "processor": [
        {"manufacturer": "Intel", "model": "Core i5-12400", "socket_type": "LGA1700", "core_count": 6,
         "thread_count": 12, "base_clock_ghz": 2.5, "boost_clock_ghz": 4.4,
         "integrated_graphics": "Intel UHD 730", "tdp_watts": 65},
        {"manufacturer": "Intel", "model": "Core i3-10100", "socket_type": "LGA1200", "core_count": 4,
         "thread_count": 8, "base_clock_ghz": 3.6, "boost_clock_ghz": 4.3,
         "integrated_graphics": "Intel UHD 630", "tdp_watts": 65},
        {"manufacturer": "Intel", "model": "Core i7-12700", "socket_type": "LGA1700", "core_count": 12,
         "thread_count": 20, "base_clock_ghz": 2.1, "boost_clock_ghz": 4.9,
         "integrated_graphics": "Intel UHD 770", "tdp_watts": 65},
        {"manufacturer": "AMD", "model": "Ryzen 5 5600G", "socket_type": "AM4", "core_count": 6,
         "thread_count": 12, "base_clock_ghz": 3.9, "boost_clock_ghz": 4.4,
         "integrated_graphics": "Radeon Vega 7", "tdp_watts": 65},
        {"manufacturer": "AMD", "model": "Ryzen 7 5700X", "socket_type": "AM4", "core_count": 8,
         "thread_count": 16, "base_clock_ghz": 3.4, "boost_clock_ghz": 4.6,
         "integrated_graphics": None, "tdp_watts": 65},
    ],
    "monitor": [
        {"manufacturer": "Dell", "model": "P2422H", "screen_size": 24, "resolution": "1920x1080",
         "panel_type": "IPS", "notes": None},
        {"manufacturer": "LG", "model": "27MP400", "screen_size": 27, "resolution": "1920x1080",
         "panel_type": "IPS", "notes": None},
        {"manufacturer": "Samsung", "model": "S24C310", "screen_size": 24, "resolution": "1920x1080",
         "panel_type": "VA", "notes": None},
    ],
    "motherboard": [
        {"manufacturer": "ASUS", "model": "PRIME B660M-A", "chipset": "B660", "form_factor": "Micro-ATX",
         "socket_type": "LGA1700", "memory_type": "DDR4", "ram_slots": 4, "max_ram_capacity_gb": 128,
         "m2_slots": 2, "sata_ports": 4},
        {"manufacturer": "MSI", "model": "B550M PRO-VDH", "chipset": "B550", "form_factor": "Micro-ATX",
         "socket_type": "AM4", "memory_type": "DDR4", "ram_slots": 4, "max_ram_capacity_gb": 128,
         "m2_slots": 2, "sata_ports": 4},
    ],
}
