# build.py
import PyInstaller.__main__
import os
import sys

sys.setrecursionlimit(5000)

SOURCES = [
    "app.py", "views.py", "hardware_views.py", "workforce_views.py", "widgets.py",
    "database.py", "models.py", "config.py", "stats.py", "labels.py", "exports.py",
    "seed_data.py", "logging_config.py",
]

if __name__ == '__main__':
    PyInstaller.__main__.run([
        'run_app.py',
        '--name=Asset_Panel',
        '--onefile',
        '--clean',

        *[f'--add-data={src}{os.pathsep}.' for src in SOURCES],

        '--collect-all=streamlit',
        '--collect-all=pandas',
        '--collect-all=plotly',
        '--collect-all=pyzbar',
        '--collect-all=cv2',
        '--collect-all=qrcode',
        '--collect-all=PIL',
        '--collect-all=bcrypt',
        '--collect-all=fpdf',
        '--collect-all=openpyxl',
        '--collect-all=sqlalchemy',

        # Streamlit reads its own package metadata at start-up
        '--copy-metadata=streamlit',
        '--copy-metadata=packaging',

        '--exclude-module=pytest',
    ])
