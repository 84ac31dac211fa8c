from datetime import date

import pytest

pytest.importorskip("pyzbar.pyzbar")

from streamlit.testing.v1 import AppTest

import config
from database import Database


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'app.db'}"
    monkeypatch.setattr(config, "DB_URL", url)
    return url


@pytest.fixture
def app(db_url):
    at = AppTest.from_file("../app.py", default_timeout=30)
    return at.run()


def _login(at, username, password):
    at.text_input[0].input(username)
    at.text_input[1].input(password)
    at.button[0].click()
    return at.run()


def test_login_page_renders(app):
    assert not app.exception
    assert app.header[0].value == "Asset Panel Login"


def test_invalid_credentials(app):
    _login(app, "admin", "wrong")
    assert app.error[0].value == "Invalid Credentials"
    assert app.session_state["logged_in"] is False


def test_admin_login_opens_dashboard(app):
    _login(app, config.DEFAULT_ADMIN_USER, config.DEFAULT_ADMIN_PASSWORD)
    assert not app.exception
    assert app.session_state["logged_in"] is True
    assert app.session_state["user_scope"] == config.SCOPE_ADMIN
    assert app.main.title[0].value == "📊 Command Center"


def _admin_on(app, page):
    _login(app, config.DEFAULT_ADMIN_USER, config.DEFAULT_ADMIN_PASSWORD)
    app.sidebar.radio[0].set_value(page)
    return app.run()


def test_delete_needs_confirmation(db_url):
    db = Database(db_url)
    db.create_site("Main HQ")
    at = _admin_on(AppTest.from_file("../app.py", default_timeout=30).run(), "Stations")

    at.button(key="site_new_del").click()
    at.run()
    assert not at.exception
    assert db.list_sites() != []
    assert at.button(key="site_new_del_confirm")

    at.button(key="site_new_del_cancel").click()
    at.run()
    assert db.list_sites() != []

    at.button(key="site_new_del").click()
    at.run()
    at.button(key="site_new_del_confirm").click()
    at.run()
    assert db.list_sites() == []
    assert "'Main HQ' deleted." in [s.value for s in at.success]

    at.run()
    assert "'Main HQ' deleted." not in [s.value for s in at.success]


def test_invalid_form_shows_field_errors(app):
    at = _admin_on(app, "Attendance")
    next(b for b in at.button if b.label == "Add Employee").click()
    at.run()
    assert not at.exception
    captions = [c.value for c in at.caption]
    assert ":red[First name is required.]" in captions
    assert ":red[Last name is required.]" in captions


def _metric(at, label):
    return next(m.value for m in at.metric if m.label == label)


def test_expiring_points_refreshes_cards(db_url):
    db = Database(db_url)
    emp = db.create_employee({"first_name": "Ana", "last_name": "Cruz", "role": "Agent"})
    db.record_attendance({"employee_id": emp, "shift_date": date(2020, 1, 6), "status": "tardy"})
    at = _admin_on(AppTest.from_file("../app.py", default_timeout=30).run(), "Attendance Points")
    assert _metric(at, "Active Points") == "0.25"

    at.button(key="points_expire").click()
    at.run()
    assert not at.exception
    assert _metric(at, "Active Points") == "0.00"
    assert _metric(at, "Expired") == "0.25"
    assert [s.value for s in at.success] == ["1 point(s) expired, 0 rolled off by GBRO."]

    at.run()
    assert [s.value for s in at.success] == []
