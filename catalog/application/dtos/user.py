"""DTOs for users. Hash and salt fields are supplied by the credential store and never shown in repr."""

from dataclasses import dataclass, field
from datetime import datetime

from catalog.domain.enums import UserRole, UserStatus


@dataclass(frozen=True)
class UserCreate:
    """Input for insert_user. site_id None means not site-scoped (e.g. a global admin)."""

    name: str
    role: UserRole | str
    site_id: str | None = None
    email: str | None = None
    status: UserStatus | str | None = None
    password_hash: str | None = field(default=None, repr=False)
    password_salt: str | None = field(default=None, repr=False)
    api_key_hash: str | None = field(default=None, repr=False)
    api_key_salt: str | None = field(default=None, repr=False)
    id: str | None = None


@dataclass(frozen=True)
class UserUpdate:
    """Partial user update; None leaves a field unchanged.

    clear_site=True moves the user out of any site (site_id becomes None).
    """

    name: str | None = None
    email: str | None = None
    role: UserRole | str | None = None
    status: UserStatus | str | None = None
    site_id: str | None = None
    clear_site: bool = False
    password_hash: str | None = field(default=None, repr=False)
    password_salt: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class UserResult:
    """User read-model. Credential material is present for verification but hidden from repr."""

    id: str
    site_id: str | None
    name: str
    email: str | None
    role: UserRole
    status: UserStatus
    created_at: datetime | None
    updated_at: datetime | None
    password_hash: str | None = field(default=None, repr=False)
    password_salt: str | None = field(default=None, repr=False)
    api_key_hash: str | None = field(default=None, repr=False)
    api_key_salt: str | None = field(default=None, repr=False)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
