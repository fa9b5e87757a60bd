# server/core/accounts.py

import logging
import re
from sqlalchemy import case, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.errors import AuthError, ConflictError, InternalError, ValidationError
from core.security import burn_password_check, get_password_hash, verify_password
from models.user import User


logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"[0-9]{10}")

MISSING_FIELDS = "All fields are required."
INVALID_EMAIL = "Invalid email format."
INVALID_PHONE = "Phone must be 10 digits."
USER_ID_TAKEN = "User ID already exists. Please choose another."
EMAIL_TAKEN = "Email already registered. Please login."
MISSING_CREDENTIALS = "User ID / Username and password are required."
INVALID_CREDENTIALS = "Invalid User ID / username or password."
UNSUPPORTED_PASSWORD = "Password contains unsupported characters."


# -------------------------------
# Validation
# -------------------------------

def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email) is not None


def is_valid_phone(phone: str) -> bool:
    return PHONE_PATTERN.fullmatch(phone) is not None


def validate_registration(user_id, user_name, password, email, phone):
    """
    Checks run in a fixed order and the first failure is reported.
    """
    if not all([user_id, user_name, password, email, phone]):
        raise ValidationError(MISSING_FIELDS)
    if not is_valid_email(email):
        raise ValidationError(INVALID_EMAIL)
    if not is_valid_phone(phone):
        raise ValidationError(INVALID_PHONE)


# -------------------------------
# Registration
# -------------------------------

def _user_id_exists(db: Session, user_id: str) -> bool:
    return db.query(User.user_id).filter(User.user_id == user_id).first() is not None


def _email_exists(db: Session, email: str) -> bool:
    return db.query(User.email).filter(User.email == email).first() is not None


def register_user(db: Session, user_id, user_name, password, email, phone) -> User:
    validate_registration(user_id, user_name, password, email, phone)

    try:
        if _user_id_exists(db, user_id):
            raise ConflictError(USER_ID_TAKEN)
        if _email_exists(db, email):
            raise ConflictError(EMAIL_TAKEN)

        try:
            hashed = get_password_hash(password)
        except ValueError:
            # bcrypt cannot hash every string, e.g. one containing NUL.
            raise ValidationError(UNSUPPORTED_PASSWORD)

        new_user = User(
            user_id=user_id,
            user_name=user_name,
            password=hashed,
            email=email,
            phone=phone,
        )
        db.add(new_user)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent registration won the race; the table constraint decides.
            db.rollback()
            logger.warning("Registration for %s lost a uniqueness race", user_id)
            raise ConflictError(USER_ID_TAKEN if _user_id_exists(db, user_id) else EMAIL_TAKEN)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Registration error for %s", user_id)
        raise InternalError()

    logger.info("New user registered: %s (%s)", user_id, user_name)
    return new_user


# -------------------------------
# Authentication
# -------------------------------

def find_user(db: Session, identifier: str) -> User | None:
    """
    Resolves a login identifier against user_id or user_name.
    An exact user_id match is preferred; otherwise the oldest account
    carrying that display name wins.
    """
    return (
        db.query(User)
        .filter(or_(User.user_id == identifier, User.user_name == identifier))
        .order_by(
            case((User.user_id == identifier, 0), else_=1),
            User.created_at,
            User.user_id,
        )
        .first()
    )


def _password_matches(password: str, user: User | None) -> bool:
    try:
        if user is None:
            burn_password_check(password)
            return False
        return verify_password(password, user.password)
    except ValueError:
        # Passwords bcrypt refuses (e.g. containing NUL) can never have been registered.
        return False


def authenticate_user(db: Session, identifier, password) -> User:
    identifier = (identifier or "").strip()

    if not identifier or not password:
        logger.info("Login rejected: missing fields")
        raise ValidationError(MISSING_CREDENTIALS)

    try:
        user = find_user(db, identifier)
    except SQLAlchemyError:
        logger.exception("Login error during user lookup")
        raise InternalError()

    if not _password_matches(password, user):
        if user is None:
            logger.info("Login failed: unknown identifier")
        else:
            logger.info("Login failed: wrong password for %s", user.user_id)
        raise AuthError(INVALID_CREDENTIALS)

    logger.info("Login success for %s", user.user_id)
    return user
