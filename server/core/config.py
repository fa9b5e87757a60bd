# server/core/config.py

import os
from urllib.parse import quote_plus
from dotenv import load_dotenv


load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


def _mysql_url() -> str | None:
    host = os.getenv("DB_HOST")
    if not host:
        return None
    user = quote_plus(os.getenv("DB_USER", ""))
    password = quote_plus(os.getenv("DB_PASSWORD", ""))
    port = int(os.getenv("DB_PORT") or 3306)
    name = os.getenv("DB_NAME", "")
    return f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}"


# -------------------------------
# Database
# -------------------------------

DATABASE_URL = os.getenv("DATABASE_URL") or _mysql_url() or "sqlite:///./data/app.db"
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_SSL = _flag("DB_SSL", "true")


# -------------------------------
# HTTP server
# -------------------------------

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# -------------------------------
# Sessions
# -------------------------------

DEFAULT_SESSION_SECRET = "dev-session-secret-CHANGE-ME"
SESSION_SECRET = os.getenv("SESSION_SECRET") or DEFAULT_SESSION_SECRET
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session_id")
SESSION_TTL_HOURS = 24
COOKIE_SECURE = _flag("COOKIE_SECURE", "false")

LOGIN_REDIRECT_URL = os.getenv("LOGIN_REDIRECT_URL", "https://movie-eight-mauve.vercel.app/")
