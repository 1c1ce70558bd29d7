"""
security helpers:
- Argon2 password hashing via argon2-cffi (cost parameters from app config)
- JWT creation/verification via PyJWT, access and refresh tokens signed with distinct secrets
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from flask import current_app, has_app_context

ACCESS = "access"
REFRESH = "refresh"

# Verified against when the account does not exist, so both login failure paths cost the same
_DUMMY_PASSWORD = "not-the-password-of-anyone"


@lru_cache(maxsize=8)
def _hasher(time_cost: int, memory_cost: int, parallelism: int) -> PasswordHasher:
    return PasswordHasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)


@lru_cache(maxsize=8)
def _dummy_hash(time_cost: int, memory_cost: int, parallelism: int) -> str:
    return _hasher(time_cost, memory_cost, parallelism).hash(_DUMMY_PASSWORD)


def _cost_params() -> tuple[int, int, int]:
    cfg = current_app.config if has_app_context() else {}
    return (
        int(cfg.get("ARGON2_TIME_COST", 3)),
        int(cfg.get("ARGON2_MEMORY_COST", 65536)),
        int(cfg.get("ARGON2_PARALLELISM", 4)),
    )


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return _hasher(*_cost_params()).hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """Verify a plaintext password against an argon2 hash.
    A missing hash still runs one verification and returns False.
    """
    params = _cost_params()
    ph = _hasher(*params)
    if not password_hash:
        try:
            ph.verify(_dummy_hash(*params), password)
        except VerificationError:
            pass
        return False
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _encode(claims: Dict[str, Any], token_type: str, secret: str, expires: timedelta) -> str:
    now = _now()
    payload = dict(claims)
    payload.update(
        {
            # sub-second iat orders tokens strictly against password changes
            "iat": now.timestamp(),
            "exp": int((now + expires).timestamp()),
            "jti": generate_jti(),
            "type": token_type,
        }
    )
    return jwt.encode(payload, secret, algorithm=current_app.config["JWT_ALGORITHM"])


def create_access_token(claims: Dict[str, Any]) -> str:
    return _encode(claims, ACCESS, current_app.config["JWT_SECRET"], current_app.config["JWT_ACCESS_TOKEN_EXPIRES"])


def create_refresh_token(claims: Dict[str, Any]) -> str:
    return _encode(
        claims, REFRESH, current_app.config["JWT_REFRESH_SECRET"], current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]
    )


def generate_token_pair(user) -> Dict[str, str]:
    """Issue a fresh access/refresh pair carrying {id, email}."""
    claims = {"id": str(user.id), "email": user.email}
    return {
        "accessToken": create_access_token(claims),
        "refreshToken": create_refresh_token(claims),
    }


def _decode(token: str, secret: str, expected_type: str) -> Dict[str, Any]:
    decoded = jwt.decode(
        token,
        secret,
        algorithms=[current_app.config["JWT_ALGORITHM"]],
        options={"require": ["exp", "iat"]},
    )
    if decoded.get("type") != expected_type:
        raise jwt.InvalidTokenError("Wrong token type")
    return decoded


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry of an access token.
    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError.
    """
    return _decode(token, current_app.config["JWT_SECRET"], ACCESS)


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return _decode(token, current_app.config["JWT_REFRESH_SECRET"], REFRESH)
