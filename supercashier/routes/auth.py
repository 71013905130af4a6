# Overview: Flask API routes for auth; login, current user, logout, refresh and password change.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..errors import FieldErrors, UnauthenticatedError
from ..responses import success, token as token_response
from ..services import auth_service, session_service
from ..validation import json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _issue_token(user, message: str):
    _, plaintext = session_service.create_session(
        user.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    expires_in = session_service.expires_in_seconds()
    response, status = token_response(plaintext, user.to_dict(), expires_in, message)
    response.set_cookie(
        current_app.config["AUTH_COOKIE_NAME"],
        plaintext,
        max_age=expires_in,
        httponly=True,
        samesite="Lax",
        secure=not current_app.debug and not current_app.testing,
    )
    return response, status


@auth_bp.post("/login")
def login():
    """
    Login with email or username and password.

    Request:
        {"email": "...", "password": "..."} or {"username": "...", "password": "..."}
    """
    data = json_object(request.get_json(silent=True))
    login_name = data.get("email") or data.get("username")
    password = data.get("password")

    errors = FieldErrors()
    if not login_name:
        errors.add("email", "The email field is required.")
    if not password:
        errors.add("password", "The password field is required.")
    errors.raise_if_any()

    user = auth_service.authenticate(str(login_name).strip(), str(password))
    if not user:
        current_app.logger.info("Rejected login for %s", login_name)
        raise UnauthenticatedError("Invalid credentials")

    return _issue_token(user, "Login successful")


@auth_bp.get("/me")
@require_auth
def me():
    return success(g.current_user.to_dict(), "User retrieved")


@auth_bp.post("/logout")
@require_auth
def logout():
    session_service.revoke_session(g.token, reason="User logout")
    response, status = success(None, "Successfully logged out")
    response.delete_cookie(current_app.config["AUTH_COOKIE_NAME"])
    return response, status


@auth_bp.post("/refresh")
@require_auth
def refresh():
    """Revoke the presented token and issue a fresh one."""
    session_service.revoke_session(g.token, reason="Token refreshed")
    return _issue_token(g.current_user, "Token refreshed")


@auth_bp.post("/change-password")
@require_auth
def change_password():
    data = json_object(request.get_json(silent=True))
    auth_service.change_password(
        g.current_user,
        data.get("old_password"),
        data.get("new_password"),
        data.get("new_password_confirmation"),
        current_session_id=g.session_context.session.id,
    )
    return success(None, "Password changed successfully")
