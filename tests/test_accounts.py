import pytest
from sqlalchemy import inspect

import core.accounts as accounts
from core.accounts import authenticate_user, find_user, register_user
from core.errors import AuthError, ConflictError, InternalError, ValidationError
from core.security import BCRYPT_ROUNDS
from database import init_db
from models.user import User


def _register(db, **fields):
    return register_user(
        db,
        fields["user_id"],
        fields["user_name"],
        fields["password"],
        fields["email"],
        fields["phone"],
    )


def test_init_db_is_idempotent(db_engine):
    init_db(db_engine)
    init_db(db_engine)
    columns = {c["name"] for c in inspect(db_engine).get_columns("users")}
    assert columns == {"user_id", "user_name", "password", "email", "phone", "created_at"}


@pytest.mark.parametrize("email", ["not-an-email", "a@b", "a@b.c ", " a@b.c", "a b@c.d", "a@@b.c"])
def test_invalid_email_rejected(email):
    assert not accounts.is_valid_email(email)


def test_valid_email_accepted():
    assert accounts.is_valid_email("user@example.com")


@pytest.mark.parametrize("phone", ["12345", "12345678901", "12345abcde", "987654321\n", "９８７６５４３２１０"])
def test_invalid_phone_rejected(phone):
    assert not accounts.is_valid_phone(phone)


def test_valid_phone_accepted():
    assert accounts.is_valid_phone("9876543210")


def test_validation_order_first_failure_wins(db, omkar):
    with pytest.raises(ValidationError) as exc:
        _register(db, **{**omkar, "user_name": "", "email": "bad", "phone": "1"})
    assert exc.value.message == accounts.MISSING_FIELDS

    with pytest.raises(ValidationError) as exc:
        _register(db, **{**omkar, "email": "bad", "phone": "1"})
    assert exc.value.message == accounts.INVALID_EMAIL

    with pytest.raises(ValidationError) as exc:
        _register(db, **{**omkar, "phone": "1"})
    assert exc.value.message == accounts.INVALID_PHONE


def test_register_stores_bcrypt_hash(db, omkar):
    _register(db, **omkar)
    row = db.query(User).filter(User.user_id == "netm01").one()
    assert row.password != omkar["password"]
    assert row.password.startswith(f"$2b${BCRYPT_ROUNDS}$")
    assert row.created_at is not None


def test_duplicate_user_id_conflicts(db, omkar):
    _register(db, **omkar)
    with pytest.raises(ConflictError) as exc:
        _register(db, **{**omkar, "email": "other@example.com"})
    assert exc.value.message == accounts.USER_ID_TAKEN


def test_duplicate_email_conflicts(db, omkar):
    _register(db, **omkar)
    with pytest.raises(ConflictError) as exc:
        _register(db, **{**omkar, "user_id": "netm02"})
    assert exc.value.message == accounts.EMAIL_TAKEN


def test_user_id_race_resolved_by_constraint(db, omkar, monkeypatch):
    _register(db, **omkar)
    # A competing request would not share this session's identity map.
    db.expunge_all()
    real = accounts._user_id_exists
    calls = []

    def stale_then_real(session, user_id):
        calls.append(user_id)
        return False if len(calls) == 1 else real(session, user_id)

    monkeypatch.setattr(accounts, "_user_id_exists", stale_then_real)
    with pytest.raises(ConflictError) as exc:
        _register(db, **{**omkar, "email": "other@example.com"})
    assert exc.value.message == accounts.USER_ID_TAKEN
    assert db.query(User).count() == 1


def test_email_race_resolved_by_constraint(db, omkar, monkeypatch):
    _register(db, **omkar)
    monkeypatch.setattr(accounts, "_email_exists", lambda session, email: False)
    with pytest.raises(ConflictError) as exc:
        _register(db, **{**omkar, "user_id": "netm02"})
    assert exc.value.message == accounts.EMAIL_TAKEN


def test_register_without_schema_is_internal_error(tmp_path, omkar):
    from sqlalchemy.orm import sessionmaker
    from database import make_engine

    engine = make_engine(f"sqlite:///{tmp_path / 'no_schema.db'}")
    session = sessionmaker(bind=engine)()
    try:
        with pytest.raises(InternalError) as exc:
            _register(session, **omkar)
        assert exc.value.status_code == 500
        assert exc.value.message == "Server error. Please try again."
    finally:
        session.close()
        engine.dispose()


def test_login_by_user_id_and_by_name(db, omkar):
    _register(db, **omkar)
    assert authenticate_user(db, "netm01", "Secret123").user_id == "netm01"
    assert authenticate_user(db, "  Omkar  ", "Secret123").user_id == "netm01"


def test_login_failures_are_indistinguishable(db, omkar):
    _register(db, **omkar)
    with pytest.raises(AuthError) as wrong_password:
        authenticate_user(db, "netm01", "wrong")
    with pytest.raises(AuthError) as unknown_user:
        authenticate_user(db, "nobody", "Secret123")
    assert wrong_password.value.message == unknown_user.value.message
    assert wrong_password.value.status_code == unknown_user.value.status_code == 401


@pytest.mark.parametrize("identifier,password", [("", "x"), ("   ", "x"), ("netm01", ""), (None, None)])
def test_login_missing_fields(db, identifier, password):
    with pytest.raises(ValidationError) as exc:
        authenticate_user(db, identifier, password)
    assert exc.value.message == accounts.MISSING_CREDENTIALS


def test_exact_user_id_match_beats_display_name(db):
    _register(db, user_id="alice", user_name="bob", password="alice-pw",
              email="alice@example.com", phone="1111111111")
    _register(db, user_id="bob", user_name="Robert", password="bob-pw",
              email="bob@example.com", phone="2222222222")

    assert find_user(db, "bob").user_id == "bob"
    assert authenticate_user(db, "bob", "bob-pw").user_id == "bob"
    with pytest.raises(AuthError):
        authenticate_user(db, "bob", "alice-pw")


def test_unhashable_password_is_validation_error(db, omkar):
    with pytest.raises(ValidationError) as exc:
        _register(db, **{**omkar, "password": "Sec\u0000ret"})
    assert exc.value.message == accounts.UNSUPPORTED_PASSWORD
    assert db.query(User).count() == 0


def test_unhashable_password_fails_login_like_any_wrong_password(db, omkar):
    _register(db, **omkar)
    with pytest.raises(AuthError) as known:
        authenticate_user(db, "netm01", "x\u0000y")
    with pytest.raises(AuthError) as unknown:
        authenticate_user(db, "ghost", "x\u0000y")
    assert known.value.message == unknown.value.message == accounts.INVALID_CREDENTIALS


def test_login_identifier_is_not_logged(db, omkar, caplog):
    _register(db, **omkar)
    typed_password = "Secret123-typed-in-the-wrong-box"
    with caplog.at_level("DEBUG", logger="core.accounts"):
        with pytest.raises(AuthError):
            authenticate_user(db, typed_password, "whatever")
        with pytest.raises(ValidationError):
            authenticate_user(db, typed_password, "")
    assert typed_password not in caplog.text
