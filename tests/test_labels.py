import io

import pytest

pytest.importorskip("pyzbar.pyzbar")

from labels import generate_qr, generate_station_label_sheet, decode_qr_image, parse_station_qr, station_qr_payload


STATIONS = [
    {"id": i, "station_number": f"A-{i:02d}", "site": "Main HQ", "pc_number": f"PC-{i}" if i % 2 else None}
    for i in range(1, 20)
]


def test_label_sheet_is_a_pdf():
    data = generate_station_label_sheet(STATIONS)
    assert data.startswith(b"%PDF")


def test_station_qr_payload_round_trips():
    assert parse_station_qr(station_qr_payload({"id": 42})) == 42
    assert parse_station_qr("SN-12345") is None
    assert parse_station_qr("STATION:abc") is None
    assert parse_station_qr(None) is None


def test_decode_generated_qr():
    buf = io.BytesIO()
    generate_qr("STATION:7").save(buf, format="PNG")
    assert decode_qr_image(buf.getvalue()) == ["STATION:7"]


def test_decode_garbage_returns_nothing():
    assert decode_qr_image(b"not an image") == []
