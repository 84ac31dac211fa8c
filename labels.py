# labels.py
import logging

import cv2
import numpy as np
import qrcode
from fpdf import FPDF
from pyzbar.pyzbar import decode

logger = logging.getLogger("asset_panel.labels")

STATION_QR_PREFIX = "STATION:"


def station_qr_payload(station):
    return f"{STATION_QR_PREFIX}{station['id']}"


def parse_station_qr(data):
    """Returns the station id encoded in a label, or None for foreign codes."""
    if not data or not data.startswith(STATION_QR_PREFIX):
        return None
    try:
        return int(data[len(STATION_QR_PREFIX):])
    except ValueError:
        return None


# --- HELPER: SINGLE QR ---
def generate_qr(data):
    qr = qrcode.QRCode(box_size=10, border=4)
    qr.add_data(data)
    qr.make(fit=True)
    return qr.make_image(fill_color="black", back_color="white").get_image()


# --- HELPER: STATION LABEL SHEET ---
def generate_station_label_sheet(stations):
    """A4 sheet of 3-column sticker labels, one per station."""
    pdf = FPDF()
    pdf.set_auto_page_break(auto=False)
    pdf.add_page()

    w, h = 60, 35
    cols = 3
    x_start, y_start = 10, 10
    col_counter, row_counter = 0, 0

    for station in stations:
        x = x_start + (col_counter * w)
        y = y_start + (row_counter * h)

        if y + h > 280:
            pdf.add_page()
            col_counter, row_counter = 0, 0
            y, x = y_start, x_start

        pdf.rect(x, y, w, h)
        pdf.image(generate_qr(station_qr_payload(station)), x=x + 2, y=y + 2, w=20, h=20)

        pdf.set_xy(x + 24, y + 5)
        pdf.set_font("Helvetica", 'B', 9)
        pdf.multi_cell(34, 4, text=f"Station {station['station_number']}"[:24])

        pdf.set_xy(x + 24, y + 15)
        pdf.set_font("Helvetica", size=7)
        pdf.cell(34, 4, text=f"Site: {station.get('site') or '-'}"[:30], new_x="LMARGIN", new_y="NEXT")
        pdf.set_xy(x + 24, y + 19)
        pdf.cell(34, 4, text=f"PC: {station.get('pc_number') or 'None'}"[:30], new_x="LMARGIN", new_y="NEXT")

        col_counter += 1
        if col_counter >= cols:
            col_counter = 0
            row_counter += 1

    logger.info("Generated label sheet for %d stations", len(stations))
    return bytes(pdf.output())


# --- HELPER: WEBCAM SCAN ---
def decode_qr_image(image_bytes):
    """Decodes every QR/barcode in an uploaded or captured image."""
    cv_image = cv2.imdecode(np.frombuffer(image_bytes, np.uint8), cv2.IMREAD_COLOR)
    if cv_image is None:
        return []
    return [obj.data.decode("utf-8") for obj in decode(cv_image)]
