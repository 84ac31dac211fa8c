# widgets.py
import logging

import streamlit as st

import config
from database import ValidationError, NotFoundError

logger = logging.getLogger("asset_panel.views")


def can_write(user_scope):
    return user_scope in (config.SCOPE_ADMIN, config.SCOPE_READ_WRITE)


def current_user():
    return st.session_state.get("username")


# --- FLASH MESSAGES ---
def set_flash(message, kind="success"):
    st.session_state.flash = (message, kind)


def show_flash():
    flash = st.session_state.pop("flash", None)
    if not flash:
        return
    message, kind = flash
    if kind == "error":
        st.error(message)
    else:
        st.success(message)


# --- INLINE FORM ERRORS ---
def form_errors(form_key):
    return st.session_state.get(f"errors_{form_key}", {})


def clear_errors(form_key):
    st.session_state.pop(f"errors_{form_key}", None)


def field_error(errors, field):
    if field in errors:
        st.caption(f":red[{errors[field]}]")


def run_action(form_key, action, success, failure, in_dialog=False):
    """
    Runs a controller mutation. Validation errors are kept for inline display
    and the dialog stays open; other failures become an error flash.
    Returns True on success.
    """
    try:
        action()
    except ValidationError as e:
        st.session_state[f"errors_{form_key}"] = e.errors
        if in_dialog:
            st.rerun(scope="fragment")
        st.rerun()
    except NotFoundError as e:
        logger.warning("%s: %s", failure, e)
        set_flash(f"{failure}: record not found.", "error")
    except Exception:
        logger.exception(failure)
        set_flash(f"{failure}.", "error")
    else:
        clear_errors(form_key)
        set_flash(success)
        return True
    return False


# --- DELETE CONFIRMATION ---
def _set_flag(name, value):
    st.session_state[name] = value


def confirm_delete(key, label="🗑️ Delete", container=None):
    """
    Two-step delete button. The first click only arms it and shows a
    confirmation; returns True once "Confirm delete" is clicked.
    """
    container = container or st
    armed = f"{key}_armed"
    if not st.session_state.get(armed):
        container.button(label, key=key, width="stretch", on_click=_set_flag, args=(armed, True))
        return False
    container.warning("Delete this record? This cannot be undone.")
    confirmed = container.button("Confirm delete", key=f"{key}_confirm", type="primary", width="stretch")
    container.button("Cancel", key=f"{key}_cancel", width="stretch", on_click=_set_flag, args=(armed, False))
    if confirmed:
        st.session_state[armed] = False
    return confirmed


# --- PAGINATION ---
def page_offset(key, page_size=config.PAGE_SIZE):
    return st.session_state.get(key, 0) * page_size


def pagination(key, total, page_size=config.PAGE_SIZE):
    page = st.session_state.get(key, 0)
    last_page = max(0, (total - 1) // page_size)
    if page > last_page:
        st.session_state[key] = page = last_page

    p1, p2, p3 = st.columns([1, 8, 1])
    if page > 0:
        if p1.button("◀ Prev", key=f"{key}_prev"):
            st.session_state[key] = page - 1
            st.rerun()
    if page < last_page:
        if p3.button("Next ▶", key=f"{key}_next"):
            st.session_state[key] = page + 1
            st.rerun()
    p2.caption(f"Showing page {page + 1} of {last_page + 1} ({total} records)")


def reset_page(key):
    st.session_state[key] = 0


def selected_row(event):
    rows = event.selection.rows if event else []
    return rows[0] if len(rows) == 1 else None


# --- TABLE SELECTION ---
def table_key(name):
    return f"{name}_table_{st.session_state.get(f'{name}_table_ver', 0)}"


def close_dialog(name):
    """Drops the table selection that opened a dialog and reruns the page."""
    st.session_state[f"{name}_table_ver"] = st.session_state.get(f"{name}_table_ver", 0) + 1
    st.rerun()
