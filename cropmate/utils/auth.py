"""Session lookup and role checks shared by every lifecycle operation."""
from __future__ import annotations

from functools import wraps

from flask import g, request

from cropmate.extensions import db
from cropmate.models import User
from cropmate.services.errors import UnauthorizedError
from cropmate.utils.jwt_utils import decode_token, get_bearer_token


def current_user() -> User | None:
    cached = getattr(g, "_cropmate_user", None)
    if cached is not None:
        return cached
    token = get_bearer_token(request.headers.get("Authorization", ""))
    if not token:
        return None
    payload = decode_token(token)
    if not payload:
        return None
    try:
        uid = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    user = db.session.get(User, uid)
    g._cropmate_user = user
    return user


def role_of(user: User | None) -> str:
    if not user:
        return "GUEST"
    return (getattr(user, "role", None) or "").strip().upper()


def require_role(*roles: str):
    """Guard a service function whose first argument is the acting user.

    With no roles given any authenticated user passes.
    """
    allowed = {r.strip().upper() for r in roles}

    def decorator(fn):
        @wraps(fn)
        def wrapper(actor, *args, **kwargs):
            if actor is None:
                raise UnauthorizedError("Unauthorized", status=401)
            if allowed and role_of(actor) not in allowed:
                raise UnauthorizedError(f"Unauthorized: {' or '.join(sorted(allowed))} role required")
            return fn(actor, *args, **kwargs)

        wrapper.required_roles = frozenset(allowed)
        return wrapper

    return decorator
