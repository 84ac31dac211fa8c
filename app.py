import logging

import streamlit as st

import config
import hardware_views
import views
import workforce_views
from database import Database
from logging_config import setup_logging

# Page Configuration
st.set_page_config(
    page_title=config.APP_TITLE,
    page_icon="🖥️",
    layout="wide",
    initial_sidebar_state="expanded"
)

setup_logging(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO), config.LOG_FILE)
logger = logging.getLogger("asset_panel.app")


# Initialize Database once per server process
@st.cache_resource
def get_database(db_url):
    return Database(db_url)


db = get_database(config.DB_URL)

# --- SESSION STATE MANAGEMENT ---
if 'logged_in' not in st.session_state: st.session_state.logged_in = False
if 'user_scope' not in st.session_state: st.session_state.user_scope = None
if 'username' not in st.session_state: st.session_state.username = None
if 'dark_mode' not in st.session_state: st.session_state.dark_mode = False 

# --- DYNAMIC THEME STYLING ---
def get_css(is_dark):
    if is_dark:
        bg_color, sidebar_bg, text_color = "#0e1117", "#262730", "#ffffff"
        metric_bg, metric_border = "#1e1e1e", "#606060"
        input_bg, input_border, input_text = "#000000", "#ffffff", "#ffffff"
        info_box_bg, info_box_text = "#1c2e4a", "#d1e3ff"
    else:
        bg_color, sidebar_bg, text_color = "#ffffff", "#f0f2f6", "#000000"
        metric_bg, metric_border = "#ffffff", "#dcdcdc"
        input_bg, input_border, input_text = "#ffffff", "#dcdcdc", "#000000"
        info_box_bg, info_box_text = "#e8f0fe", "#0e1117"

    return f"""
        <style>
            .stApp {{ background-color: {bg_color}; color: {text_color}; }}
            section[data-testid="stSidebar"] {{ background-color: {sidebar_bg}; border-right: 1px solid {metric_border}; }}
            
            .stTextInput input, .stNumberInput input {{ background-color: {input_bg} !important; color: {input_text} !important; border: 1px solid {input_border} !important; border-radius: 5px; }}
            div[data-baseweb="select"] > div {{ background-color: {input_bg} !important; color: {input_text} !important; border: 1px solid {input_border} !important; }}
            div[data-baseweb="select"] span {{ color: {input_text} !important; }}
            
            div[data-testid="stAlert"] {{ background-color: {info_box_bg}; color: {info_box_text}; border: 1px solid {info_box_text}; }}
            div[data-testid="stAlert"] p {{ color: {info_box_text} !important; }}

            div[data-testid="stMetric"] {{ background-color: {metric_bg}; border: 1px solid {metric_border}; box-shadow: 0 2px 4px rgba(0,0,0,0.5); }}
            div[data-testid="stMetric"] label {{ color: {text_color} !important; }}
            
            h1, h2, h3, h4, h5, h6 {{ color: {text_color} !important; }}
            footer {{visibility: hidden;}}
        </style>
    """

def apply_theme(is_dark):
    st.markdown(get_css(is_dark), unsafe_allow_html=True)

# --- AUTHENTICATION FLOW ---
if not st.session_state.logged_in:
    apply_theme(False)
    col1, col2, col3 = st.columns([1, 1, 1])
    with col2:
        st.header("Asset Panel Login")
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        
        if st.button("Login", type="primary", width="stretch"):
            user = db.verify_user(username, password)
            if user:
                st.session_state.logged_in = True
                st.session_state.username = user[1]
                st.session_state.user_scope = user[3]
                logger.info("User %s logged in", user[1])
                st.rerun()
            else:
                st.error("Invalid Credentials")
else:
    # --- MAIN APP LAYOUT ---
    st.sidebar.title("🖥️ Asset Panel")
    st.sidebar.markdown(f"""
        <div style="background-color: #262730; border: 1px solid #444; border-radius: 5px; padding: 5px 10px; margin-bottom: 20px; text-align: center;">
            <span style="color: #888; font-size: 0.8em;">VERSION</span><br>
            <span style="color: #fff; font-weight: bold;">{config.APP_VERSION}</span>
        </div>
        """, unsafe_allow_html=True)
    
    st.sidebar.info(f"User: **{st.session_state.username}**\nAccess: **{st.session_state.user_scope}**")
    st.sidebar.divider()
    
    def toggle_theme(): st.session_state.dark_mode = not st.session_state.dark_mode
    st.sidebar.toggle("🌙 Dark Mode", value=st.session_state.dark_mode, on_change=toggle_theme)
    apply_theme(st.session_state.dark_mode)

    pages = {
        "Dashboard": views.show_dashboard,
        "Hardware Specs": hardware_views.show_specs,
        "Stock": hardware_views.show_stock,
        "Stations": hardware_views.show_stations,
        "IT Concerns": workforce_views.show_concerns,
        "Attendance": workforce_views.show_attendance,
        "Attendance Points": workforce_views.show_points,
        "Leave Calendar": workforce_views.show_leave,
    }
    if st.session_state.user_scope == config.SCOPE_ADMIN: pages["Admin"] = views.show_admin

    choice = st.sidebar.radio("Navigation", list(pages))
    st.sidebar.markdown("---")

    if st.sidebar.button("Logout", type="secondary"):
        logger.info("User %s logged out", st.session_state.username)
        st.session_state.logged_in = False
        st.session_state.user_scope = None
        st.rerun()

    pages[choice](db, st.session_state.user_scope)
