# tests/test_identity.py

from __future__ import annotations

import pytest

from tasknest.auth.identity import IdentityProvider, validate_sign_up
from tasknest.errors import DuplicateUserError, InvalidCredentialsError, ValidationError
from tasknest.storage.durable_store import DurableStore


@pytest.fixture()
def identity(store: DurableStore, clock) -> IdentityProvider:
    return IdentityProvider(store, clock=clock, session_days=7)


def test_sign_up_opens_session_and_sets_current_user(
    identity: IdentityProvider, store: DurableStore
) -> None:
    user = identity.sign_up("  Ana@Example.com ", "secret1", "Ana Lima")

    assert user.email == "ana@example.com"
    assert identity.current_user() == user
    assert store.load_user() == user
    session = identity.session()
    assert session is not None and session.user_id == user.id


def test_password_is_not_stored_in_plaintext(
    identity: IdentityProvider, kv
) -> None:
    identity.sign_up("ana@example.com", "secret1", "Ana Lima")
    assert "secret1" not in (kv.get("test_auth_users") or "")


def test_duplicate_email_is_rejected(identity: IdentityProvider) -> None:
    identity.sign_up("ana@example.com", "secret1", "Ana Lima")
    with pytest.raises(DuplicateUserError):
        identity.sign_up("ANA@example.com", "other-pass", "Ana Again")


@pytest.mark.parametrize(
    ("email", "password", "name"),
    [
        ("not-an-email", "secret1", "Ana"),
        ("ana@example.com", "12345", "Ana"),
        ("ana@example.com", "secret1", "A"),
    ],
)
def test_sign_up_validation(identity: IdentityProvider, email, password, name) -> None:
    with pytest.raises(ValidationError):
        identity.sign_up(email, password, name)


def test_validate_sign_up_checks_confirmation() -> None:
    with pytest.raises(ValidationError, match="do not match"):
        validate_sign_up("ana@example.com", "secret1", "secret2", "Ana Lima")
    assert validate_sign_up("Ana@Example.com", "secret1", "secret1", " Ana ") == (
        "ana@example.com",
        "secret1",
        "Ana",
    )


def test_sign_in(identity: IdentityProvider, store: DurableStore) -> None:
    created = identity.sign_up("ana@example.com", "secret1", "Ana Lima")
    identity.sign_out()
    assert identity.current_user() is None
    assert store.load_user() is None

    user = identity.sign_in("ANA@example.com", "secret1")

    assert user == created
    assert store.load_user() == created


def test_sign_in_rejects_bad_credentials(identity: IdentityProvider) -> None:
    identity.sign_up("ana@example.com", "secret1", "Ana Lima")
    with pytest.raises(InvalidCredentialsError):
        identity.sign_in("ana@example.com", "wrong-pass")
    with pytest.raises(InvalidCredentialsError):
        identity.sign_in("nobody@example.com", "secret1")


def test_session_expires_after_seven_days(identity: IdentityProvider, kv, clock) -> None:
    identity.sign_up("ana@example.com", "secret1", "Ana Lima")

    clock.advance(days=6, hours=23)
    assert identity.session() is not None

    clock.advance(hours=1)
    assert identity.session() is None
    assert kv.get("test_auth_session") is None
    assert identity.current_user() is None


def test_update_profile(identity: IdentityProvider, store: DurableStore) -> None:
    identity.sign_up("ana@example.com", "secret1", "Ana Lima")

    updated = identity.update_profile(full_name="Ana Souza", preferences={"language": "en"})

    assert updated.full_name == "Ana Souza"
    assert identity.profile() == updated
    assert store.load_user() == updated


def test_update_profile_requires_session(identity: IdentityProvider) -> None:
    with pytest.raises(InvalidCredentialsError):
        identity.update_profile(full_name="Nobody")
