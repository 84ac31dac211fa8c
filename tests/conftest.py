import pytest

from database import Database


@pytest.fixture
def db(tmp_path):
    return Database(f"sqlite:///{tmp_path / 'panel.db'}")


@pytest.fixture
def site(db):
    return db.create_site("Main HQ", actor="tester")


@pytest.fixture
def campaign(db):
    return db.create_campaign("Support", actor="tester")


@pytest.fixture
def make_employee(db, campaign):
    def _make(first="Ana", last="Cruz", role="Agent", campaign_id=campaign):
        return db.create_employee({"first_name": first, "last_name": last, "role": role,
                                   "campaign_id": campaign_id}, actor="tester")
    return _make

