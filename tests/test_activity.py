from datetime import datetime, timedelta

from tests.factories import DISK


def test_create_records_activity_with_causer(db):
    spec_id = db.create_spec("disk", DISK, actor="maria")
    activities, total = db.list_activities()
    assert total == 1
    entry = activities[0]
    assert entry["event"] == "created"
    assert entry["subject_type"] == "DiskSpec"
    assert entry["subject_id"] == spec_id
    assert entry["causer"] == "maria"
    assert entry["properties"]["attributes"]["model"] == "870 EVO"


def test_update_records_only_changed_attributes(db):
    spec_id = db.create_spec("disk", DISK, actor="maria")
    db.update_spec("disk", spec_id, {**DISK, "capacity_gb": 1000}, actor="jon")
    latest = db.list_activities(event="updated")[0][0]
    assert latest["properties"] == {"old": {"capacity_gb": 500}, "attributes": {"capacity_gb": 1000}}


def test_update_without_changes_records_nothing(db):
    spec_id = db.create_spec("disk", DISK)
    db.update_spec("disk", spec_id, dict(DISK))
    assert db.list_activities()[1] == 1


def test_delete_records_old_values(db):
    spec_id = db.create_spec("disk", DISK)
    db.delete_spec("disk", spec_id, actor="maria")
    deleted = db.list_activities(event="deleted")[0][0]
    assert deleted["properties"]["old"]["manufacturer"] == "Samsung"


def test_filters_and_causers(db):
    db.create_spec("disk", DISK, actor="maria")
    db.create_spec("disk", {**DISK, "model": "980 PRO"}, actor="jon")
    assert db.get_causers() == ["jon", "maria"]
    assert db.list_activities(causer="jon")[1] == 1
    assert db.list_activities(search="diskspec")[1] == 2
    assert db.list_activities(event="all", causer="all")[1] == 2


def test_system_actions_have_system_causer(db):
    db.create_spec("disk", DISK)
    assert db.list_activities()[0][0]["causer"] == "System"


def test_activity_page_size(db):
    for i in range(20):
        db.create_site(f"Site {i}")
    page, total = db.list_activities()
    assert total == 20
    assert len(page) == 15


def test_purge_activities(db):
    db.create_spec("disk", DISK)
    assert db.purge_activities(90, now=datetime.now()) == 0
    assert db.purge_activities(0, now=datetime.now() + timedelta(days=1)) == 1
    assert db.list_activities()[1] == 0


def test_user_management_is_logged(db):
    assert db.add_user("jon", "secret", actor="admin") is True
    assert db.add_user("jon", "other", actor="admin") is False
    assert db.list_activities(search="User")[0][0]["causer"] == "admin"
