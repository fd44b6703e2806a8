# src/tasknest/auth/user_models.py

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any

from ..errors import ValidationError
from ..utils.datetime_helper import parse_iso, to_iso

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
FULL_NAME_MIN_LEN = 2


def validate_email(raw: Any) -> str:
    email = str(raw or "").strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("invalid email", field="email")
    return email


def validate_full_name(raw: Any) -> str:
    name = str(raw or "").strip()
    if len(name) < FULL_NAME_MIN_LEN:
        raise ValidationError(
            f"full name must be at least {FULL_NAME_MIN_LEN} characters", field="full_name"
        )
    return name


class Language(StrEnum):
    PT = "pt"
    EN = "en"

    @classmethod
    def from_db(cls, raw: str | None) -> Language:
        if not raw:
            return cls.PT
        try:
            return cls(raw)
        except Exception:
            return cls.PT


@dataclass(slots=True)
class UserPreferences:
    dark_mode: bool = False
    language: Language = Language.PT
    notifications: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "darkMode": self.dark_mode,
            "language": self.language.value,
            "notifications": self.notifications,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> UserPreferences:
        raw = raw or {}
        return cls(
            dark_mode=bool(raw.get("darkMode", False)),
            language=Language.from_db(raw.get("language")),
            notifications=bool(raw.get("notifications", True)),
        )

    def merged(self, changes: Mapping[str, Any]) -> UserPreferences:
        """Key-wise merge; accepts snake_case or wire (camelCase) keys."""
        dark_mode = changes.get("dark_mode", changes.get("darkMode", self.dark_mode))
        notifications = changes.get("notifications", self.notifications)
        language = self.language
        if "language" in changes:
            try:
                language = Language(str(changes["language"]).strip().lower())
            except ValueError:
                raise ValidationError("language must be 'pt' or 'en'", field="language") from None
        return UserPreferences(
            dark_mode=bool(dark_mode),
            language=language,
            notifications=bool(notifications),
        )


@dataclass(slots=True)
class User:
    id: str
    email: str
    full_name: str
    created_at: datetime
    avatar_url: str | None = None
    preferences: UserPreferences = field(default_factory=UserPreferences)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "avatarUrl": self.avatar_url,
            "createdAt": to_iso(self.created_at),
            "preferences": self.preferences.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> User:
        return cls(
            id=str(raw["id"]),
            email=str(raw.get("email") or ""),
            full_name=str(raw.get("fullName") or ""),
            avatar_url=raw.get("avatarUrl") or None,
            created_at=parse_iso(str(raw["createdAt"])),
            preferences=UserPreferences.from_dict(raw.get("preferences")),
        )


PROFILE_FIELDS = frozenset({"full_name", "email", "avatar_url", "preferences"})


def apply_profile_changes(user: User, changes: Mapping[str, Any]) -> User:
    """
    Return a copy of user with validated profile changes merged in.

    preferences are merged key-wise; anything outside PROFILE_FIELDS is rejected.
    """
    unknown = sorted(set(changes) - PROFILE_FIELDS)
    if unknown:
        raise ValidationError(f"unknown profile fields: {', '.join(unknown)}")

    updated = user
    if "full_name" in changes:
        updated = replace(updated, full_name=validate_full_name(changes["full_name"]))
    if "email" in changes:
        updated = replace(updated, email=validate_email(changes["email"]))
    if "avatar_url" in changes:
        updated = replace(updated, avatar_url=(changes["avatar_url"] or None))
    if "preferences" in changes:
        updated = replace(
            updated, preferences=user.preferences.merged(changes["preferences"] or {})
        )
    return updated
