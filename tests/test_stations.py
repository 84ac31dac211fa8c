from datetime import date

import pytest

from database import ValidationError, NotFoundError
from models import PcMaintenance
from tests.factories import DISK, RAM, PROCESSOR


def _station(db, site, campaign, number="A-01", **extra):
    payload = {"station_number": number, "site_id": site, "campaign_id": campaign,
               "status": "Occupied", "monitor_type": "single", **extra}
    return db.create_station(payload, actor="tester")


def test_site_and_campaign_names_are_unique(db, site):
    with pytest.raises(ValidationError) as exc:
        db.create_site("main hq")
    assert "already exists" in exc.value.errors["name"]
    with pytest.raises(ValidationError):
        db.create_campaign("   ")


def test_station_number_unique_per_site(db, site, campaign):
    _station(db, site, campaign)
    other_site = db.create_site("Annex")
    _station(db, other_site, campaign)
    with pytest.raises(ValidationError) as exc:
        _station(db, site, campaign)
    assert "station_number" in exc.value.errors


def test_missing_station_number_is_reported_first(db, site, campaign):
    with pytest.raises(ValidationError) as exc:
        db.create_station({"station_number": "", "site_id": site, "campaign_id": campaign,
                           "status": "Occupied", "monitor_type": "single"})
    assert exc.value.errors == {"station_number": "Station number is required."}


def test_station_references_are_checked(db, site, campaign):
    with pytest.raises(ValidationError) as exc:
        db.create_station({"station_number": "A-09", "site_id": 99, "campaign_id": campaign,
                           "status": "Broken", "monitor_type": "triple"})
    assert set(exc.value.errors) == {"site_id", "status", "monitor_type"}


def test_update_and_delete_station(db, site, campaign):
    station_id = _station(db, site, campaign)
    payload = {"station_number": "A-01", "site_id": site, "campaign_id": campaign,
               "status": "Vacant", "monitor_type": "dual"}
    assert db.update_station(station_id, payload) is True
    assert db.get_station(station_id)["status"] == "Vacant"
    db.delete_station(station_id)
    assert db.get_station(station_id) is None
    with pytest.raises(NotFoundError):
        db.delete_station(station_id)


def test_list_stations_filters(db, site, campaign):
    pc = db.create_pc_spec({"pc_number": "PC-100"})
    _station(db, site, campaign, "A-01", pc_spec_id=pc)
    _station(db, site, campaign, "A-02", status="Vacant")
    assert db.list_stations(search="pc-100")[1] == 1
    assert db.list_stations(status="Vacant")[0][0]["station_number"] == "A-02"
    assert db.list_stations(status="All")[1] == 2
    assert db.list_stations(site_id=site, campaign_id=campaign)[1] == 2


def test_cannot_delete_site_with_stations(db, site, campaign):
    _station(db, site, campaign)
    with pytest.raises(ValidationError):
        db.delete_site(site)


def test_pc_spec_with_components(db):
    ram = db.create_spec("ram", RAM)
    disk = db.create_spec("disk", DISK)
    cpu = db.create_spec("processor", PROCESSOR)
    db.create_pc_spec({"pc_number": "PC-1", "ram_ids": [ram, ram], "disk_ids": [disk], "processor_ids": [cpu]})
    pc = db.list_pc_specs()[0]
    assert pc["ram_gb"] == 8
    assert pc["disk_tb"] == round(500 / 1024, 2)
    assert pc["cpu_count"] == 1
    with pytest.raises(ValidationError) as exc:
        db.create_pc_spec({"pc_number": "PC-1"})
    assert "pc_number" in exc.value.errors
    with pytest.raises(ValidationError) as exc:
        db.create_pc_spec({"pc_number": "PC-2", "disk_ids": [999]})
    assert "disk_ids" in exc.value.errors


def test_deleting_pc_frees_its_station(db, site, campaign):
    pc = db.create_pc_spec({"pc_number": "PC-5"})
    station_id = _station(db, site, campaign, pc_spec_id=pc)
    db.delete_pc_spec(pc)
    station = db.get_station(station_id)
    assert station["pc_spec_id"] is None
    assert station["status"] == "No PC"


def test_station_stats(db, site, campaign):
    annex = db.create_site("Annex")
    assigned = db.create_pc_spec({"pc_number": "PC-1"})
    spare = db.create_pc_spec({"pc_number": "PC-2"})
    _station(db, site, campaign, "A-01", pc_spec_id=assigned, monitor_type="dual")
    _station(db, site, campaign, "A-02", status="Vacant")
    _station(db, annex, campaign, "B-01", status="Vacant")

    today = date(2024, 6, 15)
    db.record_maintenance(assigned, next_due_date=date(2024, 6, 14))
    db.record_maintenance(spare, next_due_date=date(2024, 6, 10))
    done = db.record_maintenance(spare, next_due_date=date(2024, 1, 1))
    db.complete_maintenance(done, today=today)
    db.record_maintenance(assigned, next_due_date=date(2024, 7, 1))

    stats = db.station_stats(today)
    assert stats["total_stations"]["total"] == 3
    assert stats["total_stations"]["by_site"] == [{"site": "Annex", "count": 1}, {"site": "Main HQ", "count": 2}]
    assert stats["no_pcs"]["total"] == 2
    assert stats["vacant_stations"]["total"] == 2
    assert stats["dual_monitor"]["total"] == 1

    due = stats["maintenance_due"]["stations"]
    assert stats["maintenance_due"]["total"] == 2
    assert due[0] == {"station": "PC-2", "site": "Unassigned", "due_date": date(2024, 6, 10), "days_overdue": "5 days overdue"}
    assert due[1]["station"] == "A-01"
    assert due[1]["days_overdue"] == "1 day overdue"
    assert [p["pc_number"] for p in stats["unassigned_pc_specs"]] == ["PC-2"]


def test_maintenance_validation(db):
    pc = db.create_pc_spec({"pc_number": "PC-1"})
    with pytest.raises(ValidationError):
        db.record_maintenance(pc, next_due_date=None)
    with pytest.raises(ValidationError):
        db.record_maintenance(pc, next_due_date=date(2024, 1, 1), last_maintenance_date=date(2024, 2, 1))


def test_overdue_status_with_future_due_date_is_not_listed(db):
    pc = db.create_pc_spec({"pc_number": "PC-1"})
    m_id = db.record_maintenance(pc, next_due_date=date(2024, 7, 1))
    with db.session_scope() as session:
        session.get(PcMaintenance, m_id).status = "overdue"
    stats = db.station_stats(date(2024, 6, 15))
    assert stats["maintenance_due"]["total"] == 0
    assert db.station_stats(date(2024, 7, 3))["maintenance_due"]["stations"][0]["days_overdue"] == "2 days overdue"


def test_transfer_moves_pc_between_stations(db, site, campaign):
    pc = db.create_pc_spec({"pc_number": "PC-1"})
    source = _station(db, site, campaign, "A-01", pc_spec_id=pc)
    target = _station(db, site, campaign, "A-02", status="No PC")
    assert db.transfer_pc(pc, target, notes="desk move", actor="it-joe") == "assign"

    assert db.get_station(source)["pc_spec_id"] is None
    assert db.get_station(source)["status"] == "No PC"
    assert db.get_station(target)["pc_number"] == "PC-1"
    assert db.get_station(target)["status"] == "Vacant"
    rows, total = db.list_pc_transfers()
    assert total == 1
    assert rows[0]["from_station"] == "A-01"
    assert rows[0]["to_station"] == "A-02"
    assert rows[0]["transfer_type"] == "assign"
    assert rows[0]["causer"] == "it-joe"
    assert rows[0]["notes"] == "desk move"
    created = db.list_activities(event="created")[0]
    assert any(a["subject_type"] == "PcTransfer" for a in created)


def test_swap_exchanges_pcs(db, site, campaign):
    pc1 = db.create_pc_spec({"pc_number": "PC-1"})
    pc2 = db.create_pc_spec({"pc_number": "PC-2"})
    first = _station(db, site, campaign, "A-01", pc_spec_id=pc1)
    second = _station(db, site, campaign, "A-02", pc_spec_id=pc2)
    assert db.transfer_pc(pc1, second, swap=True) == "swap"
    assert db.get_station(first)["pc_number"] == "PC-2"
    assert db.get_station(second)["pc_number"] == "PC-1"
    assert db.get_station(first)["status"] == "Occupied"
    rows, total = db.list_pc_transfers()
    assert total == 2
    assert {(r["pc_number"], r["to_station"]) for r in rows} == {("PC-1", "A-02"), ("PC-2", "A-01")}


def test_transfer_rules(db, site, campaign):
    pc1 = db.create_pc_spec({"pc_number": "PC-1"})
    floating = db.create_pc_spec({"pc_number": "PC-2"})
    station = _station(db, site, campaign, "A-01", pc_spec_id=pc1)
    with pytest.raises(ValidationError) as exc:
        db.transfer_pc(pc1, station)
    assert "already assigned" in exc.value.errors["to_station_id"]
    with pytest.raises(ValidationError) as exc:
        db.transfer_pc(floating, station, swap=True)
    assert exc.value.errors == {"to_station_id": "Only a PC assigned to a station can be swapped."}
    with pytest.raises(ValidationError):
        db.transfer_pc(floating, 999)
    with pytest.raises(NotFoundError):
        db.transfer_pc(999, station)
    assert db.list_pc_transfers()[1] == 0


def test_remove_pc_from_station(db, site, campaign):
    pc = db.create_pc_spec({"pc_number": "PC-1"})
    station = _station(db, site, campaign, pc_spec_id=pc)
    db.remove_pc_from_station(station, notes="repair")
    assert db.get_station(station)["status"] == "No PC"
    row = db.list_pc_transfers()[0][0]
    assert (row["transfer_type"], row["from_station"], row["to_station"]) == ("remove", "A-01", None)
    with pytest.raises(ValidationError) as exc:
        db.remove_pc_from_station(station)
    assert "station_id" in exc.value.errors
