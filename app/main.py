# app/main.py

import streamlit as st
from dotenv import load_dotenv
from ui.login import login_page, logout


load_dotenv()


def main_page():
    user = st.session_state["user"]
    st.title(f"Welcome back, {user.get('user_name', '')}!")

    redirect = st.session_state.get("redirect")
    if redirect:
        st.link_button("Continue", redirect)

    if st.sidebar.button("🔓 Logout"):
        logout()
        st.session_state.clear()
        st.rerun()


if "user" not in st.session_state:
    login_page()
else:
    main_page()
