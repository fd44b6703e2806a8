# src/tasknest/auth/identity.py

from __future__ import annotations

"""
Local identity provider.

Credentials, profiles and the active session are persisted through the DurableStore
under their own keys. A successful sign-up / sign-in also writes the signed-in user
as the store's current-user record, which is what the TaskController loads.

Sessions expire after session_days; an expired session is dropped when read.
"""

import hashlib
import hmac
import logging
import secrets
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any

from ..errors import DuplicateUserError, InvalidCredentialsError, ValidationError
from ..storage.durable_store import DurableStore
from ..utils.datetime_helper import Clock, parse_iso, to_iso, utc_now
from .user_models import (
    User,
    UserPreferences,
    apply_profile_changes,
    validate_email,
    validate_full_name,
)

logger = logging.getLogger(__name__)

PASSWORD_MIN_LEN = 6
_PBKDF2_ROUNDS = 120_000


@dataclass(frozen=True, slots=True)
class Session:
    user_id: str
    email: str
    access_token: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "email": self.email,
            "accessToken": self.access_token,
            "issuedAt": to_iso(self.issued_at),
            "expiresAt": to_iso(self.expires_at),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Session:
        return cls(
            user_id=str(raw["userId"]),
            email=str(raw.get("email") or ""),
            access_token=str(raw["accessToken"]),
            issued_at=parse_iso(str(raw["issuedAt"])),
            expires_at=parse_iso(str(raw["expiresAt"])),
        )


def validate_password(raw: Any) -> str:
    password = str(raw or "")
    if len(password) < PASSWORD_MIN_LEN:
        raise ValidationError(
            f"password must be at least {PASSWORD_MIN_LEN} characters", field="password"
        )
    return password


def validate_sign_up(
    email: str, password: str, confirm_password: str, full_name: str
) -> tuple[str, str, str]:
    """Form-level checks for sign-up, including the password confirmation."""
    clean_email = validate_email(email)
    clean_password = validate_password(password)
    if password != confirm_password:
        raise ValidationError("passwords do not match", field="confirm_password")
    return clean_email, clean_password, validate_full_name(full_name)


def _hash_password(password: str, salt: bytes) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _PBKDF2_ROUNDS).hex()


class IdentityProvider:
    def __init__(
        self,
        store: DurableStore,
        *,
        clock: Clock = utc_now,
        session_days: int = 7,
    ) -> None:
        self._store = store
        self._clock = clock
        self._session_ttl = timedelta(days=max(1, int(session_days)))
        self._users_key = store.key("auth_users")
        self._profiles_key = store.key("auth_profiles")
        self._session_key = store.key("auth_session")

    # ---- persistence helpers ----

    def _credentials(self) -> dict[str, Any]:
        data = self._store.read_json(self._users_key, {})
        return data if isinstance(data, dict) else {}

    def _profiles(self) -> dict[str, Any]:
        data = self._store.read_json(self._profiles_key, {})
        return data if isinstance(data, dict) else {}

    def _load_profile(self, user_id: str) -> User | None:
        raw = self._profiles().get(user_id)
        if not isinstance(raw, dict):
            return None
        try:
            return User.from_dict(raw)
        except Exception:
            logger.warning("Stored profile is not decodable user=%s", user_id)
            return None

    def _save_profile(self, user: User) -> None:
        profiles = self._profiles()
        profiles[user.id] = user.to_dict()
        self._store.write_json(self._profiles_key, profiles)

    def _open_session(self, user: User) -> Session:
        now = self._clock()
        session = Session(
            user_id=user.id,
            email=user.email,
            access_token=secrets.token_urlsafe(24),
            issued_at=now,
            expires_at=now + self._session_ttl,
        )
        self._store.write_json(self._session_key, session.to_dict())
        self._store.save_user(user)
        return session

    # ---- public API ----

    def sign_up(self, email: str, password: str, full_name: str) -> User:
        clean_email = validate_email(email)
        clean_password = validate_password(password)
        clean_name = validate_full_name(full_name)

        credentials = self._credentials()
        if clean_email in credentials:
            raise DuplicateUserError(f"a user with email {clean_email} already exists")

        user = User(
            id=f"user_{uuid.uuid4().hex[:12]}",
            email=clean_email,
            full_name=clean_name,
            created_at=self._clock(),
            preferences=UserPreferences(),
        )
        salt = secrets.token_bytes(16)
        credentials[clean_email] = {
            "userId": user.id,
            "salt": salt.hex(),
            "passwordHash": _hash_password(clean_password, salt),
            "createdAt": to_iso(user.created_at),
        }
        self._store.write_json(self._users_key, credentials)
        self._save_profile(user)
        self._open_session(user)
        logger.info("User signed up id=%s", user.id)
        return user

    def sign_in(self, email: str, password: str) -> User:
        clean_email = str(email or "").strip().lower()
        record = self._credentials().get(clean_email)
        if not isinstance(record, dict):
            raise InvalidCredentialsError("invalid email or password")

        try:
            salt = bytes.fromhex(str(record["salt"]))
            expected = str(record["passwordHash"])
            user_id = str(record["userId"])
        except (KeyError, ValueError):
            logger.warning("Corrupt credential record email=%s", clean_email)
            raise InvalidCredentialsError("invalid email or password") from None

        if not hmac.compare_digest(_hash_password(str(password or ""), salt), expected):
            raise InvalidCredentialsError("invalid email or password")

        user = self._load_profile(user_id)
        if user is None:
            user = User(id=user_id, email=clean_email, full_name=clean_email, created_at=self._clock())
            self._save_profile(user)

        self._open_session(user)
        logger.info("User signed in id=%s", user.id)
        return user

    def sign_out(self) -> None:
        session = self.session()
        self._store.remove_key(self._session_key)
        self._store.remove_user()
        logger.info("User signed out id=%s", session.user_id if session else None)

    def session(self) -> Session | None:
        """Active session, or None. Expired or corrupt sessions are removed."""
        raw = self._store.read_json(self._session_key, None)
        if not isinstance(raw, dict):
            return None
        try:
            session = Session.from_dict(raw)
        except Exception:
            logger.warning("Stored session is not decodable; removing it.")
            self._store.remove_key(self._session_key)
            return None
        if session.is_expired(self._clock()):
            logger.info("Session expired user=%s", session.user_id)
            self._store.remove_key(self._session_key)
            return None
        return session

    def current_user(self) -> User | None:
        session = self.session()
        if session is None:
            return None
        return self._load_profile(session.user_id)

    def profile(self) -> User | None:
        return self.current_user()

    def update_profile(self, **changes: Any) -> User:
        """
        Merge profile changes into the signed-in user's profile and current-user record.

        An email change re-keys the credential record; an email that already belongs
        to another account raises DuplicateUserError.
        """
        session = self.session()
        user = self._load_profile(session.user_id) if session else None
        if session is None or user is None:
            raise InvalidCredentialsError("no user is signed in")

        updated = apply_profile_changes(user, changes)

        if updated.email != user.email:
            self._move_credentials(user, updated.email)
            self._store.write_json(self._session_key, replace(session, email=updated.email).to_dict())

        self._save_profile(updated)
        self._store.save_user(updated)
        logger.info("Profile updated id=%s fields=%s", updated.id, sorted(changes))
        return updated

    def _move_credentials(self, user: User, new_email: str) -> None:
        credentials = self._credentials()
        existing = credentials.get(new_email)
        if isinstance(existing, dict) and existing.get("userId") != user.id:
            raise DuplicateUserError(f"a user with email {new_email} already exists")

        record = credentials.pop(user.email, None)
        if not isinstance(record, dict):
            logger.warning("No credential record to move user=%s", user.id)
            return
        credentials[new_email] = record
        self._store.write_json(self._users_key, credentials)
