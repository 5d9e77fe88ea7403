"""
User Manager - Admin credentials and profiles

Module: security.authentication.user_manager
Date: 2026-10-19
Version: 0.1.0

CHANGELOG:
[2026-10-19 v0.1.0] Initial implementation
  - bcrypt password hashing
  - Credential verification with a uniform failure message
  - Seeded default administrators
  - Profile and password updates, user registration

ARCHITECTURE:
UserManager holds the password rules; the users collection itself lives
in RecordStore, which remains the only writer of users.json.

SECURITY NOTES:
- Passwords are hashed with bcrypt (adaptive, salted)
- Login failures never reveal whether the username or password was wrong
- bcrypt only considers 72 bytes, longer passwords are rejected
"""

import dataclasses
import logging
from typing import List

import bcrypt

from ...core.constants import DEFAULT_BCRYPT_ROUNDS, INVALID_CREDENTIALS_MESSAGE
from ...core.exceptions import AuthError, NotFoundError, ValidationError
from ...persistence.record_store import RecordStore
from ...persistence.records import UserRecord, utcnow

MAX_PASSWORD_BYTES = 72

# (username, password, display name, email)
DEFAULT_USERS = [
    ("admin", "admin123", "Administrator", "admin@agency.local"),
    ("Elena", "12345", "Elena", "elena@agency.local"),
    ("Anna", "09876", "Anna", "anna@agency.local"),
]


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """
    Hash password using bcrypt

    Args:
        password: Plaintext password
        rounds: bcrypt cost factor

    Returns:
        bcrypt hash (bytes decoded to string)
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against hash

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        return False


def build_default_users(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> List[UserRecord]:
    """Users seeded into a fresh store"""
    return [
        UserRecord(
            username=username,
            password_hash=hash_password(password, rounds),
            display_name=display_name,
            email=email,
            created_at=utcnow(),
        )
        for username, password, display_name, email in DEFAULT_USERS
    ]


def _validate_new_password(password) -> str:
    if not isinstance(password, str) or not password:
        raise ValidationError("Password is required")
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return password


class UserManager:
    """
    Manages admin credentials and profiles.

    Supports authentication, registration, profile and password changes.
    """

    def __init__(self, store: RecordStore, bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS):
        """
        Initialize user manager

        Args:
            store: RecordStore owning the users collection
            bcrypt_rounds: Cost factor for bcrypt (10-12 recommended)
        """
        self.logger = logging.getLogger("security.user_manager")
        self.store = store
        self.bcrypt_rounds = bcrypt_rounds

    def authenticate(self, username: str, password: str) -> UserRecord:
        """
        Authenticate user with username and password

        Returns:
            UserRecord if authentication succeeds

        Raises:
            ValidationError: If username or password is missing
            AuthError: If the user doesn't exist or the password is wrong
        """
        if not username or not password:
            raise ValidationError("Username and password are required")

        user = self.store.get_user(username)
        if user is None or not verify_password(password, user.password_hash):
            self.logger.warning(f"Authentication failed for {username}")
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)

        self.logger.info(f"User authenticated: {username}")
        return user

    def require_user(self, username: str) -> UserRecord:
        user = self.store.get_user(username)
        if user is None:
            raise NotFoundError(f"User '{username}' not found")
        return user

    def create_user(
        self,
        username: str,
        password: str,
        display_name: str = "",
        email: str = "",
    ) -> UserRecord:
        """
        Create a new admin user with hashed password

        Raises:
            ValidationError: If username or password is missing
            ConflictError: If username already exists
        """
        if not isinstance(username, str) or not username.strip():
            raise ValidationError("Username is required")
        if not isinstance(display_name, str) or not isinstance(email, str):
            raise ValidationError("Display name and email must be strings")
        _validate_new_password(password)

        user = UserRecord(
            username=username.strip(),
            password_hash=hash_password(password, self.bcrypt_rounds),
            display_name=(display_name or username).strip(),
            email=(email or "").strip(),
        )
        return self.store.add_user(user)

    def update_profile(self, username: str, patch: dict) -> UserRecord:
        """
        Update display name and/or email

        Raises:
            NotFoundError: If the user doesn't exist
            ValidationError: If the patch has unknown or malformed fields
        """
        user = self.require_user(username)
        return self.store.replace_user(user.apply_profile(patch))

    def change_password(self, username: str, current_password: str, new_password: str) -> UserRecord:
        """
        Replace a password after checking the current one

        Raises:
            NotFoundError: If the user doesn't exist
            ValidationError: If a password is missing or too long
            AuthError: If the current password is wrong
        """
        if not isinstance(current_password, str) or not current_password:
            raise ValidationError("Current password is required")
        _validate_new_password(new_password)

        user = self.require_user(username)
        if not verify_password(current_password, user.password_hash):
            self.logger.warning(f"Password change refused for {username}")
            raise AuthError("Current password is incorrect")

        updated = dataclasses.replace(user, password_hash=hash_password(new_password, self.bcrypt_rounds))
        self.logger.info(f"Password changed: {username}")
        return self.store.replace_user(updated)
