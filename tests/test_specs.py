import pytest

from database import ValidationError
from tests.factories import DISK, RAM, PROCESSOR, MONITOR, MOTHERBOARD


def test_create_and_list_disk(db):
    spec_id = db.create_spec("disk", DISK, actor="tester")
    specs, total = db.list_specs("disk")
    assert total == 1
    assert specs[0]["id"] == spec_id
    assert specs[0]["stock"] == 0
    assert specs[0]["stock_id"] is None


def test_list_is_newest_first_and_paged(db):
    for i in range(12):
        db.create_spec("ram", {**RAM, "model": f"Module {i}"})
    specs, total = db.list_specs("ram", limit=10, offset=0)
    assert total == 12
    assert len(specs) == 10
    assert specs[0]["model"] == "Module 11"
    rest, _ = db.list_specs("ram", limit=10, offset=10)
    assert [s["model"] for s in rest] == ["Module 1", "Module 0"]


def test_search_matches_any_column_case_insensitive(db):
    db.create_spec("disk", DISK)
    db.create_spec("disk", {**DISK, "manufacturer": "Seagate", "model": "Barracuda", "drive_type": "HDD", "capacity_gb": 2000})
    assert db.list_specs("disk", "samsung")[1] == 1
    assert db.list_specs("disk", "hdd")[1] == 1
    assert db.list_specs("disk", "2000")[1] == 1
    assert db.list_specs("disk", "nothing-like-this")[1] == 0


def test_required_and_numeric_validation(db):
    with pytest.raises(ValidationError) as exc:
        db.create_spec("disk", {**DISK, "manufacturer": "", "capacity_gb": 0, "sequential_read_mb": "fast"})
    errors = exc.value.errors
    assert errors["manufacturer"] == "Manufacturer is required."
    assert "at least 1" in errors["capacity_gb"]
    assert "integer" in errors["sequential_read_mb"]
    assert db.list_specs("disk")[1] == 0


def test_text_fields_are_limited_to_255_chars(db):
    with pytest.raises(ValidationError) as exc:
        db.create_spec("ram", {**RAM, "model": "x" * 256})
    assert "255" in exc.value.errors["model"]


def test_ram_voltage_may_be_zero_but_not_negative(db):
    db.create_spec("ram", {**RAM, "voltage": 0})
    with pytest.raises(ValidationError) as exc:
        db.create_spec("ram", {**RAM, "voltage": -1})
    assert "voltage" in exc.value.errors


def test_processor_cross_field_rules(db):
    with pytest.raises(ValidationError) as exc:
        db.create_spec("processor", {**PROCESSOR, "thread_count": 4, "boost_clock_ghz": 2.0})
    assert set(exc.value.errors) == {"thread_count", "boost_clock_ghz"}


def test_integrated_graphics_is_optional(db):
    spec_id = db.create_spec("processor", {**PROCESSOR, "integrated_graphics": ""})
    assert db.get_spec("processor", spec_id)["integrated_graphics"] is None


def test_update_spec(db):
    spec_id = db.create_spec("disk", DISK)
    assert db.update_spec("disk", spec_id, {**DISK, "model": "870 QVO"}, actor="tester") is True
    assert db.get_spec("disk", spec_id)["model"] == "870 QVO"
    assert db.update_spec("disk", spec_id, {**DISK, "model": "870 QVO"}) is False


def test_delete_spec_removes_its_stock(db):
    spec_id = db.create_spec("disk", DISK)
    db.save_stock("disk", spec_id, quantity=4)
    db.delete_spec("disk", spec_id)
    assert db.get_spec("disk", spec_id) is None
    assert db.list_stocks()[1] == 0


def test_unknown_kind_is_rejected(db):
    with pytest.raises(ValidationError):
        db.list_specs("gpu")


def test_seed_specs_skips_existing_models(db):
    created = db.seed_specs(actor="admin")
    assert created > 0
    assert db.seed_specs(actor="admin") == 0
    assert db.list_specs("processor")[1] >= 1
    assert db.list_specs("monitor")[1] >= 1
    assert db.list_specs("motherboard")[1] >= 1


def test_spec_options_labels(db):
    spec_id = db.create_spec("ram", RAM)
    assert db.spec_options("ram") == [(spec_id, "Kingston FURY 8GB")]


@pytest.mark.parametrize("value", ["nan", "inf", float("-inf")])
def test_non_finite_numbers_are_rejected(db, value):
    with pytest.raises(ValidationError) as exc:
        db.create_spec("ram", {**RAM, "voltage": value})
    assert exc.value.errors == {"voltage": "Voltage (V) must be a number."}
    with pytest.raises(ValidationError) as exc:
        db.create_spec("disk", {**DISK, "capacity_gb": value})
    assert exc.value.errors == {"capacity_gb": "Capacity (GB) must be an integer."}


def test_monitor_spec_rules(db):
    spec_id = db.create_spec("monitor", MONITOR)
    assert db.get_spec("monitor", spec_id)["panel_type"] == "IPS"
    with pytest.raises(ValidationError) as exc:
        db.create_spec("monitor", {**MONITOR, "screen_size": 9})
    assert "at least 10" in exc.value.errors["screen_size"]
    with pytest.raises(ValidationError) as exc:
        db.create_spec("monitor", {**MONITOR, "screen_size": 101, "panel_type": "CRT"})
    assert set(exc.value.errors) == {"screen_size", "panel_type"}
    assert "IPS, VA, TN, or OLED" in exc.value.errors["panel_type"]


def test_motherboard_spec_search_and_memory_type(db):
    db.create_spec("motherboard", MOTHERBOARD)
    assert db.list_specs("motherboard", "b660")[1] == 1
    with pytest.raises(ValidationError) as exc:
        db.create_spec("motherboard", {**MOTHERBOARD, "memory_type": "SDRAM", "m2_slots": -1})
    assert set(exc.value.errors) == {"m2_slots"}
    with pytest.raises(ValidationError) as exc:
        db.create_spec("motherboard", {**MOTHERBOARD, "memory_type": "SDRAM"})
    assert set(exc.value.errors) == {"memory_type"}
