# app/ui/login.py

import os
import streamlit as st
from dotenv import load_dotenv
from streamlit_cookies_manager import EncryptedCookieManager
from services.api import (
    get_current_user,
    login_user,
    logout_user,
    new_http_session,
    register_user,
    session_cookie_of,
)

load_dotenv()

COOKIE_PASSWORD = os.getenv("COOKIE_PASSWORD")

cookies = EncryptedCookieManager(password=COOKIE_PASSWORD)
if not cookies.ready():
    st.stop()


def http_session():
    if "http" not in st.session_state:
        st.session_state["http"] = new_http_session(cookies.get("session_cookie"))
    return st.session_state["http"]


def logout():
    logout_user(http_session())
    if "session_cookie" in cookies:
        del cookies["session_cookie"]
    cookies.save()


def login_page():
    st.title("🔐 Login")

    if "user" not in st.session_state and "session_cookie" in cookies:
        user = get_current_user(http_session())
        if user:
            st.session_state["user"] = user
            st.session_state["redirect"] = user.get("redirect")
            st.rerun()

    if "show_register" not in st.session_state:
        st.session_state["show_register"] = False

    if st.session_state["show_register"]:
        show_register_form()
    else:
        show_login_form()


def show_login_form():
    with st.form("login_form"):
        identifier = st.text_input("User ID or name")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Login")

    if submitted:
        with st.spinner("Logging in..."):
            http = http_session()
            result = login_user(http, identifier, password)
            if not result.get("success"):
                st.error(f"❌ {result['message']}")
            else:
                st.session_state["user"] = get_current_user(http) or {"user_name": identifier}
                st.session_state["redirect"] = result.get("redirect")
                cookies["session_cookie"] = session_cookie_of(http) or ""
                cookies.save()

                st.success(f"✅ {result['message']}")
                st.rerun()

    if st.button("Create an account"):
        st.session_state["show_register"] = True
        st.rerun()


def show_register_form():
    st.subheader("📝 Register")

    with st.form("register_form"):
        user_id = st.text_input("User ID", key="new_user_id")
        user_name = st.text_input("Name", key="new_user_name")
        email = st.text_input("Email", key="new_email")
        phone = st.text_input("Phone (10 digits)", key="new_phone")
        password = st.text_input("Password", type="password", key="new_pass")
        submitted = st.form_submit_button("Register")

    if submitted:
        with st.spinner("Registering..."):
            result = register_user(user_id, user_name, password, email, phone)
            if result.get("success"):
                st.success(f"🎉 {result['message']}")
                st.session_state["show_register"] = False
                st.rerun()
            else:
                st.error(f"❌ {result['message']}")

    if st.button("← Back to login"):
        st.session_state["show_register"] = False
        st.rerun()
