import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from models import Role
from schemas import LoginIn, RegisterIn
from security import (
    TokenError,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from services import AuthenticationError, AuthService, UserService


def test_password_hash_roundtrip() -> None:
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)
    assert not verify_password("secret1", "not-a-bcrypt-hash")


def test_token_carries_user_identity() -> None:
    token = create_access_token(7, "alice")
    assert decode_access_token(token) == (7, "alice")


def test_tampered_and_expired_tokens_are_rejected() -> None:
    token = create_access_token(7, "alice")
    with pytest.raises(TokenError, match="Invalid token"):
        decode_access_token("x" + token[1:])
    with pytest.raises(TokenError, match="Token expired"):
        decode_access_token(token, max_age_seconds=-1)


def test_register_then_login() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        auth = AuthService(session)
        registered = auth.register(
            RegisterIn(username="alice", email="Alice@Example.com", password="secret1")
        )
        assert registered["username"] == "alice"
        assert registered["email"] == "alice@example.com"
        assert registered["role"] == Role.user

        logged_in = auth.login(LoginIn(username="alice", password="secret1"))
        assert logged_in["id"] == registered["id"]
        user = auth.resolve_token(logged_in["token"])
        assert user.username == "alice"

        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            auth.login(LoginIn(username="alice", password="wrong-password"))
        with pytest.raises(AuthenticationError):
            auth.login(LoginIn(username="nobody", password="secret1"))


def test_duplicate_registration_is_rejected() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        users = UserService(session)
        users.create("alice", "alice@example.com", "secret1")
        with pytest.raises(ValueError, match="Username already exists"):
            users.create("alice", "other@example.com", "secret1")
        with pytest.raises(ValueError, match="Email already exists"):
            users.create("alice2", "ALICE@example.com", "secret1")


def test_disabled_account_cannot_authenticate() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        users = UserService(session)
        user = users.create("alice", "alice@example.com", "secret1")
        token = create_access_token(user.id, user.username)
        users.set_active(user.id, False)

        auth = AuthService(session)
        with pytest.raises(AuthenticationError, match="Account is disabled"):
            auth.login(LoginIn(username="alice", password="secret1"))
        with pytest.raises(AuthenticationError, match="Account is disabled"):
            auth.resolve_token(token)
        assert users.stats() == {"total_users": 1, "active_users": 0}


def test_token_for_removed_user_is_rejected() -> None:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        users = UserService(session)
        user = users.create("alice", "alice@example.com", "secret1")
        token = create_access_token(user.id, user.username)
        users.delete(user.id)

        with pytest.raises(AuthenticationError, match="Invalid token"):
            AuthService(session).resolve_token(token)
