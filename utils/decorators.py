from __future__ import annotations
from functools import wraps
from typing import Iterable
import logging

import jwt
from flask import request, g

from api.errors import Unauthorized, Forbidden
from utils.security import decode_access_token
from models import storage
from models.user import User

logger = logging.getLogger(__name__)


def resolve_identity(auth_header: str | None) -> User:
    """
    Run the request guard on an Authorization header value and return the account.
    Raises Unauthorized with a message naming the failed check.
    """
    if not auth_header or not auth_header.startswith("Bearer "):
        raise Unauthorized("No authentication token provided")
    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        raise Unauthorized("No authentication token provided")

    try:
        decoded = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")

    user = storage.get(User, decoded.get("id"))
    if not user:
        raise Unauthorized("User no longer exists")
    if not user.is_active:
        raise Unauthorized("User account is deactivated")
    if user.changed_password_after(decoded["iat"]):
        raise Unauthorized("Password was changed. Please log in again")
    return user


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = resolve_identity(request.headers.get("Authorization"))
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def jwt_optional():
    """Same checks as jwt_required, but an anonymous or failing caller continues with g.current_user = None."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                g.current_user = resolve_identity(request.headers.get("Authorization"))
            except Unauthorized as exc:
                logger.debug("Continuing anonymously: %s", exc.message)
                g.current_user = None
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def has_role(role: str | None, allowed_roles: frozenset[str]) -> bool:
    return role is not None and role in allowed_roles


def roles_required(roles: Iterable[str]):
    """
    Allow access only if the authenticated user's role is one of `roles`.
    Runs the jwt_required guard first.
    """
    allowed = frozenset(roles)

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if not has_role(getattr(g.current_user, "role", None), allowed):
                raise Forbidden("You do not have permission to perform this action")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
