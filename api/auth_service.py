"""
Credential & token issuer.

Every successful login, registration, refresh or password change writes a new
refresh token onto the account, which revokes the previous one. The account
row is read then written without a transaction-level lock: two concurrent
refreshes for the same account can both pass the equality check, and the last
writer's token is the only one that survives. Callers see this as a 401 on the
loser's next refresh.
"""
from __future__ import annotations

import hmac
import logging
from typing import Dict, Tuple

import jwt
from sqlalchemy.exc import IntegrityError

from models import storage
from models.base_model import utcnow
from models.user import User
from utils.security import generate_token_pair, decode_refresh_token, verify_password

from .errors import BadRequest, Conflict, Unauthorized

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
ACCOUNT_DEACTIVATED = "Your account has been deactivated"

TokenPair = Dict[str, str]


def _find_by_email(email: str) -> User | None:
    session = storage.get_session()
    return session.query(User).filter(User.email == email.strip().lower()).first()


def _rotate(user: User) -> TokenPair:
    tokens = generate_token_pair(user)
    user.refresh_token = tokens["refreshToken"]
    return tokens


def register(email: str, password: str, first_name: str, last_name: str) -> Tuple[User, TokenPair]:
    if _find_by_email(email):
        raise Conflict("Email already registered")

    user = User(email=email, password=password, first_name=first_name, last_name=last_name)
    tokens = _rotate(user)
    try:
        user.save()
    except IntegrityError:
        # lost a race with another registration for the same email
        raise Conflict("Email already registered")
    logger.info("Registered user %s", user.id)
    return user, tokens


def login(email: str, password: str) -> Tuple[User, TokenPair]:
    user = _find_by_email(email)
    # verify_password runs against a dummy hash when the account is missing
    if not verify_password(password, user.password_hash if user else None) or user is None:
        logger.warning("Failed login attempt for %s", email)
        raise Unauthorized(INVALID_CREDENTIALS)
    if not user.is_active:
        raise Unauthorized(ACCOUNT_DEACTIVATED)

    tokens = _rotate(user)
    user.last_login = utcnow()
    user.save()
    logger.info("User %s logged in", user.id)
    return user, tokens


def refresh(presented: str) -> TokenPair:
    try:
        decoded = decode_refresh_token(presented)
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid or expired refresh token")

    user = storage.get(User, decoded.get("id"))
    if not user or not user.refresh_token or not hmac.compare_digest(user.refresh_token, presented):
        raise Unauthorized("Invalid refresh token")
    if not user.is_active:
        raise Unauthorized(ACCOUNT_DEACTIVATED)

    tokens = _rotate(user)
    user.save()
    logger.info("Rotated refresh token for user %s", user.id)
    return tokens


def update_password(user: User, current_password: str, new_password: str) -> TokenPair:
    if not verify_password(current_password, user.password_hash):
        raise BadRequest("Current password is incorrect")

    # stamps password_changed_at, which retires every access token issued so far
    user.password = new_password
    tokens = _rotate(user)
    user.save()
    logger.info("Password updated for user %s", user.id)
    return tokens


def logout(user: User) -> None:
    if user.refresh_token is None:
        return
    user.refresh_token = None
    user.save()
    logger.info("User %s logged out", user.id)
