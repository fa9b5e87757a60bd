# app/services/api.py

import os
import requests

# Base URL of the FastAPI backend
FASTAPI_URL = os.getenv("API_URL", "http://localhost:3000")

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session_id")


def _as_result(response):
    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}
    data.setdefault("success", response.ok)
    data.setdefault("message", f"Unexpected response ({response.status_code})")
    return data


def new_http_session(session_cookie=None):
    """
    Creates a requests session, optionally restoring a saved session cookie.
    """
    http = requests.Session()
    if session_cookie:
        http.cookies.set(SESSION_COOKIE_NAME, session_cookie)
    return http


def session_cookie_of(http):
    return http.cookies.get(SESSION_COOKIE_NAME)


# -------------------------------
# Authentication-related functions
# -------------------------------

def register_user(user_id, user_name, password, email, phone):
    try:
        res = requests.post(
            f"{FASTAPI_URL}/api/register",
            json={
                "user_id": user_id,
                "user_name": user_name,
                "password": password,
                "email": email,
                "phone": phone,
            },
        )
        return _as_result(res)
    except requests.RequestException as e:
        return {"success": False, "message": str(e)}


def login_user(http, identifier, password):
    """
    Logs in with a user ID or display name. On success the session cookie
    is kept on `http`.
    """
    try:
        res = http.post(
            f"{FASTAPI_URL}/api/login",
            json={"user_name": identifier, "password": password},
        )
        return _as_result(res)
    except requests.RequestException as e:
        return {"success": False, "message": str(e)}


def logout_user(http):
    try:
        res = http.post(f"{FASTAPI_URL}/api/logout")
        return _as_result(res)
    except requests.RequestException as e:
        return {"success": False, "message": str(e)}
    finally:
        http.cookies.clear()


def get_current_user(http):
    """
    Returns the logged-in user for the cookie held by `http`, or None.
    """
    try:
        res = http.get(f"{FASTAPI_URL}/api/me")
    except requests.RequestException:
        return None
    return res.json() if res.status_code == 200 else None
