# Overview: Service-layer operations for auth; password hashing, login and default roles.

"""
Authentication Service

- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS)
- Minimum 8 characters with uppercase, lowercase, digit and special char
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import logging
import re

import bcrypt
from flask import current_app

from ..errors import ValidationError
from ..extensions import db
from ..models import Role, User
from ..time_utils import utcnow
from . import session_service
from .permission_service import ROLE_DESCRIPTIONS

logger = logging.getLogger(__name__)


def validate_password_strength(password: str, field: str = "password") -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises ValidationError on field if requirements not met.
    """
    if not isinstance(password, str) or not password:
        raise ValidationError.for_field(field, f"The {field} field is required.")

    if len(password) < 8:
        raise ValidationError.for_field(field, "Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise ValidationError.for_field(field, "Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise ValidationError.for_field(field, "Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise ValidationError.for_field(field, "Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise ValidationError.for_field(field, "Password must contain at least one special character")


def hash_password(password: str, field: str = "password") -> str:
    """Validate strength, then bcrypt-hash with the configured cost factor."""
    validate_password_strength(password, field)
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def authenticate(login: str, password: str) -> User | None:
    """
    Look up an active user by email or username and check the password.

    Returns None on any mismatch so callers cannot tell which part failed.
    """
    if not login or not password:
        return None

    user = db.session.query(User).filter(
        db.or_(User.email == login, User.username == login)
    ).first()

    if not user or not user.is_active:
        return None

    if not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", login)
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user


def change_password(
    user: User,
    old_password,
    new_password,
    confirmation,
    current_session_id: int | None = None,
) -> None:
    """
    Replace the user's password and revoke every other session.

    Raises ValidationError on old_password / new_password.
    """
    if not old_password or not verify_password(old_password, user.password_hash):
        raise ValidationError.for_field("old_password", "The old password is incorrect.")

    if new_password != confirmation:
        raise ValidationError.for_field("new_password", "The new password confirmation does not match.")

    user.password_hash = hash_password(new_password, "new_password")
    db.session.commit()

    session_service.revoke_all_user_sessions(
        user.id, reason="Password changed", except_session_id=current_session_id
    )
    logger.info("Password changed for user %s", user.id)


def create_default_roles() -> list[Role]:
    """Create admin/cashier/warehouse roles if missing. Idempotent."""
    roles = []
    for name, description in ROLE_DESCRIPTIONS.items():
        role = db.session.query(Role).filter_by(name=name).first()
        if role is None:
            role = Role(name=name, description=description)
            db.session.add(role)
        roles.append(role)
    db.session.commit()
    return roles
