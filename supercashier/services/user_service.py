# Overview: User administration; create, update, deactivate and list users.

from __future__ import annotations

import logging

from ..errors import FieldErrors, NotFoundError, ValidationError
from ..extensions import db
from ..models import Role, User
from ..validation import ModelValidationPolicy, coerce_int, validate_payload
from . import session_service
from .auth_service import hash_password
from .pagination import paginate

logger = logging.getLogger(__name__)


USER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "username", "email", "phone", "role_id", "is_active"},
    required_on_create={"name", "username", "email", "role_id"},
)
USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "username", "email", "phone", "role_id", "is_active"},
)


def _split_password(payload: dict) -> tuple[dict, str | None]:
    if not isinstance(payload, dict):
        return payload, None
    data = dict(payload)
    password = data.pop("password", None)
    return data, password


def _check_references(patch: dict, user_id: int | None = None) -> None:
    errors = FieldErrors()

    if "role_id" in patch and db.session.get(Role, patch["role_id"]) is None:
        errors.add("role_id", "The selected role id is invalid.")

    if "email" in patch:
        email = patch["email"]
        if "@" not in email:
            errors.add("email", "The email must be a valid email address.")
        else:
            clash = db.session.query(User).filter(User.email == email)
            if user_id is not None:
                clash = clash.filter(User.id != user_id)
            if clash.first():
                errors.add("email", "The email has already been taken.")

    if "username" in patch:
        clash = db.session.query(User).filter(User.username == patch["username"])
        if user_id is not None:
            clash = clash.filter(User.id != user_id)
        if clash.first():
            errors.add("username", "The username has already been taken.")

    errors.raise_if_any()


def create_user(payload: dict) -> User:
    """
    Create a user from a request payload.

    Raises ValidationError for missing/invalid fields, unknown role,
    duplicate username/email or a weak password.
    """
    data, password = _split_password(payload)
    if password is None:
        raise ValidationError.for_field("password", "The password field is required.")

    patch = validate_payload(
        model=User,
        payload=data,
        policy=USER_CREATE_POLICY,
        partial=False,
    )
    _check_references(patch)

    user = User(password_hash=hash_password(password), **patch)
    db.session.add(user)
    db.session.commit()

    logger.info("User %s (%s) created", user.id, user.username)
    return user


def update_user(user_id: int, payload: dict) -> User:
    user = get_user(user_id)
    data, password = _split_password(payload)

    patch = validate_payload(
        model=User,
        payload=data,
        policy=USER_UPDATE_POLICY,
        partial=True,
    )
    _check_references(patch, user_id=user.id)

    for key, value in patch.items():
        setattr(user, key, value)
    if password is not None:
        user.password_hash = hash_password(password)

    db.session.commit()

    if patch.get("is_active") is False or password is not None:
        session_service.revoke_all_user_sessions(user.id, reason="Account updated")
    return user


def deactivate_user(user_id: int) -> User:
    """Users are never hard-deleted; sales keep pointing at them."""
    user = get_user(user_id)
    user.is_active = False
    db.session.commit()
    revoked = session_service.revoke_all_user_sessions(user.id, reason="User deactivated")
    logger.info("User %s deactivated (%d session(s) revoked)", user.id, revoked)
    return user


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_users(
    *,
    role: str | None = None,
    role_id=None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(User)
    if role:
        query = query.join(Role, User.role_id == Role.id).filter(Role.name == role)
    if role_id is not None:
        query = query.filter(User.role_id == coerce_int(role_id, "role_id"))
    query = query.order_by(User.name.asc(), User.id.asc())
    return paginate(query, page, per_page, lambda u: u.to_dict())
