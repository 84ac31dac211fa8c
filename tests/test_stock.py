import pytest

import config
from database import ValidationError
from tests.factories import DISK, RAM


@pytest.fixture
def disk_id(db):
    return db.create_spec("disk", DISK)


def test_save_stock_requires_existing_spec(db):
    with pytest.raises(ValidationError) as exc:
        db.save_stock("disk", 999, quantity=1)
    assert exc.value.errors == {"stockable_id": "Referenced spec not found"}


def test_save_stock_rejects_negative_values(db, disk_id):
    with pytest.raises(ValidationError) as exc:
        db.save_stock("disk", disk_id, quantity=-1, reserved=-2)
    assert set(exc.value.errors) == {"quantity", "reserved"}


def test_save_stock_is_an_upsert(db, disk_id):
    first = db.save_stock("disk", disk_id, quantity=5, location="Shelf A")
    second = db.save_stock("disk", disk_id, quantity=7, reserved=2)
    assert first == second
    stocks, total = db.list_stocks()
    assert total == 1
    assert stocks[0]["quantity"] == 7
    assert stocks[0]["available"] == 5
    assert stocks[0]["label"] == "Samsung 870 EVO"
    assert db.list_specs("disk")[0][0]["stock"] == 7


def test_delta_wins_over_absolute_value(db, disk_id):
    stock_id = db.save_stock("disk", disk_id, quantity=5, reserved=1)
    result = db.update_stock(stock_id, quantity=10, delta_quantity=-3, reserved=4)
    assert result["quantity"] == 2
    assert result["reserved"] == 4


def test_update_stock_clamps_at_zero(db, disk_id):
    stock_id = db.save_stock("disk", disk_id, quantity=2, reserved=1)
    result = db.update_stock(stock_id, delta_quantity=-100, delta_reserved=-5)
    assert result["quantity"] == 0
    assert result["reserved"] == 0


def test_adjust_stock_creates_row_at_zero(db, disk_id):
    assert db.adjust_stock("disk", disk_id, 3) == 3
    assert db.adjust_stock("disk", disk_id, -5) == 0
    assert db.list_stocks()[1] == 1


def test_list_stocks_filters_by_type_and_search(db, disk_id):
    ram_id = db.create_spec("ram", RAM)
    db.save_stock("disk", disk_id, quantity=1, location="Cabinet 3")
    db.save_stock("ram", ram_id, quantity=9)
    assert db.list_stocks("ram")[1] == 1
    assert db.list_stocks(search="cabinet")[1] == 1
    rows, total = db.list_stocks(search="fury")
    assert total == 1
    assert rows[0]["type"] == "ram"


def test_delete_stock(db, disk_id):
    stock_id = db.save_stock("disk", disk_id, quantity=1)
    db.delete_stock(stock_id)
    assert db.get_stock(stock_id) is None


def test_stock_overview(db, disk_id):
    ram_id = db.create_spec("ram", RAM)
    db.save_stock("disk", disk_id, quantity=10, reserved=1)
    db.save_stock("ram", ram_id, quantity=config.LOW_STOCK_THRESHOLD)
    overview = db.stock_overview()
    assert overview["by_type"]["disk"]["available"] == 9
    assert overview["by_type"]["processor"]["items"] == 0
    assert [r["label"] for r in overview["low_stock"]] == ["Kingston FURY 8GB"]
