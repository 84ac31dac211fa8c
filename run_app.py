# run_app.py
import streamlit.web.cli as stcli
import os, sys


def resolve_path(path):
    if getattr(sys, "frozen", False):
        basedir = sys._MEIPASS
    else:
        basedir = os.path.dirname(os.path.abspath(__file__))
    return os.path.join(basedir, path)


def main():
    # Headless so the frozen build does not try to open a browser tab itself
    os.environ["STREAMLIT_SERVER_HEADLESS"] = "true"

    sys.argv = [
        "streamlit",
        "run",
        resolve_path("app.py"),
        "--global.developmentMode=false",
    ]
    sys.exit(stcli.main())


if __name__ == "__main__":
    main()
