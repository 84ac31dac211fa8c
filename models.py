from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Date, DateTime, Text, JSON,
    ForeignKey, Table, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _iso(value):
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else None


# --- USERS ---
class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, default='User')
    scope = Column(String, default='Read Only')


# --- HARDWARE SPECS ---
pc_spec_ram = Table(
    'pc_spec_ram_spec', Base.metadata,
    Column('pc_spec_id', Integer, ForeignKey('pc_specs.id'), primary_key=True),
    Column('ram_spec_id', Integer, ForeignKey('ram_specs.id'), primary_key=True),
)
pc_spec_disk = Table(
    'pc_spec_disk_spec', Base.metadata,
    Column('pc_spec_id', Integer, ForeignKey('pc_specs.id'), primary_key=True),
    Column('disk_spec_id', Integer, ForeignKey('disk_specs.id'), primary_key=True),
)
pc_spec_processor = Table(
    'pc_spec_processor_spec', Base.metadata,
    Column('pc_spec_id', Integer, ForeignKey('pc_specs.id'), primary_key=True),
    Column('processor_spec_id', Integer, ForeignKey('processor_specs.id'), primary_key=True),
)


class DiskSpec(Base):
    __tablename__ = 'disk_specs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=False)
    capacity_gb = Column(Integer, nullable=False)
    interface = Column(String, nullable=False)
    drive_type = Column(String, nullable=False)
    sequential_read_mb = Column(Integer, nullable=False)
    sequential_write_mb = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    pc_specs = relationship("PcSpec", secondary=pc_spec_disk, back_populates="disk_specs")

    def to_dict(self):
        return {
            "id": self.id,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "capacity_gb": self.capacity_gb,
            "interface": self.interface,
            "drive_type": self.drive_type,
            "sequential_read_mb": self.sequential_read_mb,
            "sequential_write_mb": self.sequential_write_mb,
            "created_at": _iso(self.created_at),
        }


class RamSpec(Base):
    __tablename__ = 'ram_specs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=False)
    capacity_gb = Column(Integer, nullable=False)
    type = Column(String, nullable=False)
    speed = Column(Integer, nullable=False)
    form_factor = Column(String, nullable=False)
    voltage = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    pc_specs = relationship("PcSpec", secondary=pc_spec_ram, back_populates="ram_specs")

    def to_dict(self):
        return {
            "id": self.id,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "capacity_gb": self.capacity_gb,
            "type": self.type,
            "speed": self.speed,
            "form_factor": self.form_factor,
            "voltage": self.voltage,
            "created_at": _iso(self.created_at),
        }


class ProcessorSpec(Base):
    __tablename__ = 'processor_specs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=False)
    socket_type = Column(String, nullable=False)
    core_count = Column(Integer, nullable=False)
    thread_count = Column(Integer, nullable=False)
    base_clock_ghz = Column(Float, nullable=False)
    boost_clock_ghz = Column(Float, nullable=False)
    integrated_graphics = Column(String)
    tdp_watts = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    pc_specs = relationship("PcSpec", secondary=pc_spec_processor, back_populates="processor_specs")

    def to_dict(self):
        return {
            "id": self.id,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "socket_type": self.socket_type,
            "core_count": self.core_count,
            "thread_count": self.thread_count,
            "base_clock_ghz": self.base_clock_ghz,
            "boost_clock_ghz": self.boost_clock_ghz,
            "integrated_graphics": self.integrated_graphics,
            "tdp_watts": self.tdp_watts,
            "created_at": _iso(self.created_at),
        }


class MonitorSpec(Base):
    __tablename__ = 'monitor_specs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=False)
    screen_size = Column(Float, nullable=False)
    resolution = Column(String, nullable=False)
    panel_type = Column(String, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "screen_size": self.screen_size,
            "resolution": self.resolution,
            "panel_type": self.panel_type,
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }


class MotherboardSpec(Base):
    __tablename__ = 'motherboard_specs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    manufacturer = Column(String, nullable=False)
    model = Column(String, nullable=False)
    chipset = Column(String, nullable=False)
    form_factor = Column(String, nullable=False)
    socket_type = Column(String, nullable=False)
    memory_type = Column(String, nullable=False)
    ram_slots = Column(Integer, nullable=False)
    max_ram_capacity_gb = Column(Integer, nullable=False)
    m2_slots = Column(Integer, nullable=False)
    sata_ports = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "chipset": self.chipset,
            "form_factor": self.form_factor,
            "socket_type": self.socket_type,
            "memory_type": self.memory_type,
            "ram_slots": self.ram_slots,
            "max_ram_capacity_gb": self.max_ram_capacity_gb,
            "m2_slots": self.m2_slots,
            "sata_ports": self.sata_ports,
            "created_at": _iso(self.created_at),
        }


SPEC_MODELS = {
    "disk": DiskSpec,
    "ram": RamSpec,
    "processor": ProcessorSpec,
    "monitor": MonitorSpec,
    "motherboard": MotherboardSpec,
}


class Stock(Base):
    __tablename__ = 'stocks'
    __table_args__ = (UniqueConstraint('stockable_type', 'stockable_id'),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    stockable_type = Column(String, nullable=False)
    stockable_id = Column(Integer, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    reserved = Column(Integer, default=0, nullable=False)
    location = Column(String)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.stockable_type,
            "stockable_id": self.stockable_id,
            "quantity": self.quantity,
            "reserved": self.reserved,
            "available": self.quantity - self.reserved,
            "location": self.location,
            "notes": self.notes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


# --- ACTIVITY LOG ---
class Activity(Base):
    __tablename__ = 'activity_log'
    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(String, nullable=False)
    event = Column(String, nullable=False)
    subject_type = Column(String)
    subject_id = Column(Integer)
    causer = Column(String)
    properties = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.now, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "description": self.description,
            "event": self.event,
            "subject_type": self.subject_type,
            "subject_id": self.subject_id,
            "causer": self.causer or "System",
            "properties": self.properties or {},
            "created_at": _iso(self.created_at),
        }


# --- STATIONS ---
class Site(Base):
    __tablename__ = 'sites'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)

    stations = relationship("Station", back_populates="site")


class Campaign(Base):
    __tablename__ = 'campaigns'
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)

    stations = relationship("Station", back_populates="campaign")


class PcSpec(Base):
    __tablename__ = 'pc_specs'
    id = Column(Integer, primary_key=True, autoincrement=True)
    pc_number = Column(String, unique=True, nullable=False)
    manufacturer = Column(String)
    model = Column(String)
    issue = Column(Text)
    created_at = Column(DateTime, default=datetime.now)

    ram_specs = relationship("RamSpec", secondary=pc_spec_ram, back_populates="pc_specs")
    disk_specs = relationship("DiskSpec", secondary=pc_spec_disk, back_populates="pc_specs")
    processor_specs = relationship("ProcessorSpec", secondary=pc_spec_processor, back_populates="pc_specs")
    stations = relationship("Station", back_populates="pc_spec")
    maintenances = relationship("PcMaintenance", back_populates="pc_spec", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "pc_number": self.pc_number,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "issue": self.issue,
            "ram": ", ".join(r.model for r in self.ram_specs),
            "ram_gb": sum(r.capacity_gb for r in self.ram_specs),
            "ram_count": len(self.ram_specs),
            "disk": ", ".join(d.model for d in self.disk_specs),
            "disk_tb": round(sum(d.capacity_gb for d in self.disk_specs) / 1024, 2),
            "disk_count": len(self.disk_specs),
            "processor": ", ".join(p.model for p in self.processor_specs),
            "cpu_count": len(self.processor_specs),
            "stations": [s.station_number for s in self.stations],
        }


class PcMaintenance(Base):
    __tablename__ = 'pc_maintenances'
    id = Column(Integer, primary_key=True, autoincrement=True)
    pc_spec_id = Column(Integer, ForeignKey('pc_specs.id'), nullable=False)
    last_maintenance_date = Column(Date)
    next_due_date = Column(Date, nullable=False)
    status = Column(String, default='pending')
    notes = Column(Text)

    pc_spec = relationship("PcSpec", back_populates="maintenances")

    def to_dict(self):
        return {
            "id": self.id,
            "pc_spec_id": self.pc_spec_id,
            "pc_number": self.pc_spec.pc_number if self.pc_spec else None,
            "last_maintenance_date": self.last_maintenance_date,
            "next_due_date": self.next_due_date,
            "status": self.status,
            "notes": self.notes,
        }


class Station(Base):
    __tablename__ = 'stations'
    __table_args__ = (UniqueConstraint('site_id', 'station_number'),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    station_number = Column(String, nullable=False)
    site_id = Column(Integer, ForeignKey('sites.id'), nullable=False)
    campaign_id = Column(Integer, ForeignKey('campaigns.id'), nullable=False)
    status = Column(String, default='Vacant')
    monitor_type = Column(String, default='single')
    pc_spec_id = Column(Integer, ForeignKey('pc_specs.id'))
    created_at = Column(DateTime, default=datetime.now)

    site = relationship("Site", back_populates="stations")
    campaign = relationship("Campaign", back_populates="stations")
    pc_spec = relationship("PcSpec", back_populates="stations")

    def to_dict(self):
        return {
            "id": self.id,
            "station_number": self.station_number,
            "site_id": self.site_id,
            "site": self.site.name if self.site else None,
            "campaign_id": self.campaign_id,
            "campaign": self.campaign.name if self.campaign else None,
            "status": self.status,
            "monitor_type": self.monitor_type,
            "pc_spec_id": self.pc_spec_id,
            "pc_number": self.pc_spec.pc_number if self.pc_spec else None,
        }


class PcTransfer(Base):
    __tablename__ = 'pc_transfers'
    id = Column(Integer, primary_key=True, autoincrement=True)
    pc_spec_id = Column(Integer, ForeignKey('pc_specs.id', ondelete='SET NULL'))
    from_station_id = Column(Integer, ForeignKey('stations.id', ondelete='SET NULL'))
    to_station_id = Column(Integer, ForeignKey('stations.id', ondelete='SET NULL'))
    transfer_type = Column(String, nullable=False)  # assign, swap, remove
    causer = Column(String)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now)

    pc_spec = relationship("PcSpec")
    from_station = relationship("Station", foreign_keys=[from_station_id])
    to_station = relationship("Station", foreign_keys=[to_station_id])

    def to_dict(self):
        return {
            "id": self.id,
            "pc_number": self.pc_spec.pc_number if self.pc_spec else None,
            "from_station": self.from_station.station_number if self.from_station else None,
            "to_station": self.to_station.station_number if self.to_station else None,
            "transfer_type": self.transfer_type,
            "causer": self.causer or "System",
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }


# --- IT CONCERNS ---
class ItConcern(Base):
    __tablename__ = 'it_concerns'
    id = Column(Integer, primary_key=True, autoincrement=True)
    reporter = Column(String, nullable=False)
    site_id = Column(Integer, ForeignKey('sites.id'), nullable=False)
    station_number = Column(String, nullable=False)
    category = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String, default='pending')
    priority = Column(String, default='medium')
    resolution_notes = Column(Text)
    resolved_at = Column(DateTime)
    resolved_by = Column(String)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    site = relationship("Site")

    def to_dict(self):
        return {
            "id": self.id,
            "reporter": self.reporter,
            "site_id": self.site_id,
            "site": self.site.name if self.site else None,
            "station_number": self.station_number,
            "category": self.category,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "resolution_notes": self.resolution_notes,
            "resolved_at": _iso(self.resolved_at),
            "resolved_by": self.resolved_by,
            "created_at": self.created_at,
        }


# --- WORKFORCE ---
class Employee(Base):
    __tablename__ = 'employees'
    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(String, default='Agent')
    campaign_id = Column(Integer, ForeignKey('campaigns.id'))
    is_active = Column(Boolean, default=True)

    campaign = relationship("Campaign")

    @property
    def full_name(self):
        return f"{self.last_name}, {self.first_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.full_name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "campaign_id": self.campaign_id,
            "campaign": self.campaign.name if self.campaign else "No Campaign",
            "is_active": self.is_active,
        }


class Attendance(Base):
    __tablename__ = 'attendances'
    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False)
    shift_date = Column(Date, nullable=False, index=True)
    status = Column(String, nullable=False)
    tardy_minutes = Column(Integer, default=0)
    undertime_minutes = Column(Integer, default=0)
    admin_verified = Column(Boolean, default=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.now)

    employee = relationship("Employee")
    points = relationship("AttendancePoint", back_populates="attendance", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee.full_name if self.employee else "Unknown",
            "shift_date": self.shift_date,
            "status": self.status,
            "tardy_minutes": self.tardy_minutes,
            "undertime_minutes": self.undertime_minutes,
            "admin_verified": self.admin_verified,
            "notes": self.notes,
        }


class AttendancePoint(Base):
    __tablename__ = 'attendance_points'
    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False)
    attendance_id = Column(Integer, ForeignKey('attendances.id'))
    shift_date = Column(Date, nullable=False, index=True)
    point_type = Column(String, nullable=False)
    points = Column(Float, nullable=False)
    is_advised = Column(Boolean, default=False)
    is_excused = Column(Boolean, default=False)
    excused_by = Column(String)
    excused_at = Column(DateTime)
    excuse_reason = Column(Text)
    expires_at = Column(Date)
    expiration_type = Column(String, default='sro')
    is_expired = Column(Boolean, default=False)
    expired_at = Column(Date)
    eligible_for_gbro = Column(Boolean, default=True)
    gbro_applied_at = Column(Date)
    violation_details = Column(Text)

    employee = relationship("Employee")
    attendance = relationship("Attendance", back_populates="points")

    def to_dict(self):
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee.full_name if self.employee else "Unknown",
            "attendance_id": self.attendance_id,
            "shift_date": self.shift_date,
            "point_type": self.point_type,
            "points": self.points,
            "is_advised": self.is_advised,
            "is_excused": self.is_excused,
            "excused_by": self.excused_by,
            "excuse_reason": self.excuse_reason,
            "expires_at": self.expires_at,
            "expiration_type": self.expiration_type,
            "is_expired": self.is_expired,
            "expired_at": self.expired_at,
            "eligible_for_gbro": self.eligible_for_gbro,
            "gbro_applied_at": self.gbro_applied_at,
            "violation_details": self.violation_details,
        }


class LeaveRequest(Base):
    __tablename__ = 'leave_requests'
    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey('employees.id'), nullable=False)
    leave_type = Column(String, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days_requested = Column(Integer, default=0)
    reason = Column(Text)
    status = Column(String, default='pending')
    reviewed_by = Column(String)
    reviewed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.now)

    employee = relationship("Employee")

    def to_dict(self):
        emp = self.employee
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": emp.full_name if emp else "Unknown",
            "employee_role": emp.role if emp else None,
            "campaign_id": emp.campaign_id if emp else None,
            "campaign_name": emp.campaign.name if emp and emp.campaign else "No Campaign",
            "leave_type": self.leave_type,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "days_requested": self.days_requested,
            "reason": self.reason,
            "status": self.status,
            "reviewed_by": self.reviewed_by,
        }
