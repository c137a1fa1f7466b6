"""
Admin account use cases: login check, bootstrap, add and remove.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cms.core.config import Settings, get_settings
from cms.core.security import hash_password, verify_password
from cms.domain.validation import validate_admin_account
from cms.repositories.local_storage import LocalStorage
from cms.services.session_guard import delete_sessions_for

logger = logging.getLogger(__name__)


class AccountError(Exception):
    """Base class for admin account errors."""


class InvalidCredentialsError(AccountError):
    pass


class SelfRemovalError(AccountError):
    """Raised when an admin tries to remove the account they are logged in with."""


class UnknownAdminError(AccountError):
    pass


@dataclass
class AccountService:
    storage: LocalStorage

    def list_admins(self) -> list[str]:
        return self.storage.admin_users()

    def authenticate(self, email: str, password: str) -> str:
        email_value = (email or "").strip().lower()
        stored = self.storage.admin_credentials().get(email_value)
        if not stored or not verify_password(password or "", stored):
            raise InvalidCredentialsError(email_value)
        if email_value not in self.storage.admin_users():
            raise InvalidCredentialsError(email_value)
        return email_value

    def add_admin(self, email: str, password: str) -> str:
        """Create or replace an admin account. Raises ValidationFailure on bad input."""
        email_value, password_value = validate_admin_account(email, password)
        self.storage.put_admin(email_value, hash_password(password_value))
        logger.info("Admin account saved: %s", email_value)
        return email_value

    def remove_admin(self, email: str, current_email: str) -> list[str]:
        """Remove an admin and revoke their sessions; returns the revoked session tokens."""
        email_value = (email or "").strip().lower()
        if email_value == (current_email or "").strip().lower():
            raise SelfRemovalError(email_value)
        if email_value not in self.storage.admin_users():
            raise UnknownAdminError(email_value)
        self.storage.drop_admin(email_value)
        tokens = delete_sessions_for(email_value)
        logger.info("Admin account removed: %s (%d sessions revoked)", email_value, len(tokens))
        return tokens

    def ensure_bootstrap_admin(self, settings: Settings | None = None) -> bool:
        """Create the configured ADMIN_EMAIL account when no admin exists yet."""
        settings = settings or get_settings()
        if self.storage.admin_users():
            return False
        if not (settings.admin_email and settings.admin_password):
            logger.warning("No admin accounts and ADMIN_EMAIL/ADMIN_PASSWORD not set; login is impossible")
            return False
        self.add_admin(settings.admin_email, settings.admin_password)
        return True
