# Overview: Request authentication and permission decorators for API routes.

from functools import wraps

from flask import current_app, g, request

from .errors import PermissionDeniedError, UnauthenticatedError
from .services import permission_service, session_service


def _extract_token() -> str | None:
    """Bearer header first, then the session cookie."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get(current_app.config["AUTH_COOKIE_NAME"]) or None


def _load_session() -> bool:
    """Populate g.current_user / g.session_context from the request token."""
    g.current_user = None
    g.session_context = None
    g.token = None

    token = _extract_token()
    if not token:
        return False

    context = session_service.validate_session(token)
    if not context:
        return False

    g.current_user = context.user
    g.session_context = context
    g.token = token
    return True


def current_user_or_none():
    return getattr(g, "current_user", None)


def require_auth(f):
    """
    Require a valid session token.

    Sets g.current_user, g.session_context and g.token.
    Raises UnauthenticatedError (401) when the token is missing, invalid,
    expired, idle too long, or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _load_session():
            raise UnauthenticatedError()
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Resolve the user when a valid token is present; continue anonymously
    otherwise. Routes pass current_user_or_none() into services.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        _load_session()
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission; use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = current_user_or_none()
            if user is None:
                raise UnauthenticatedError()

            try:
                permission_service.require_permission(user, permission_code)
            except PermissionDeniedError:
                current_app.logger.warning(
                    "Permission denied: user=%s permission=%s path=%s",
                    user.id, permission_code, request.path,
                )
                raise

            return f(*args, **kwargs)

        return decorated_function
    return decorator
