# server/main.py

import logging
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api import auth
from core.config import (
    CORS_ORIGINS,
    DEFAULT_SESSION_SECRET,
    HOST,
    LOG_LEVEL,
    PORT,
    SESSION_SECRET,
)
from core.errors import AccountError, InternalError
from database import check_connection, init_db


logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("accounts.main")


if SESSION_SECRET == DEFAULT_SESSION_SECRET:
    logger.warning("SESSION_SECRET is not set; session cookies are signed with a placeholder key")

check_connection()
try:
    init_db()
except SQLAlchemyError as e:
    logger.error("DB init failed: %s", e)
    logger.error("Server will start but DB operations will fail until connection is fixed.")


app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)


@app.exception_handler(AccountError)
async def account_error_handler(request: Request, exc: AccountError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message}
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    error = InternalError()
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "message": error.message}
    )


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
