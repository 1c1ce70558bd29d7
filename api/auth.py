"""
Authentication blueprint:
- POST  /auth/register
- POST  /auth/login
- POST  /auth/refresh-token
- GET   /auth/me
- POST  /auth/logout
- PATCH /auth/update-password

Token issuing and rotation live in api.auth_service; this module validates
input, applies rate limits and shapes the responses.
"""
from __future__ import annotations

from flask import Blueprint, request, g

from models.schemas.user import (
    RegisterSchema,
    LoginSchema,
    RefreshTokenSchema,
    UpdatePasswordSchema,
    UserOutSchema,
)
from utils.decorators import jwt_required
from utils.ratelimit import rate_limit

from . import auth_service
from .responses import send_success, send_created, load_or_fail

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
update_password_schema = UpdatePasswordSchema()
user_out_schema = UserOutSchema()


@bp.post("/register")
@rate_limit(
    "auth:register",
    limit=5,
    per_seconds=3600,
    message="Too many accounts created from this IP, please try again after an hour",
)
def register():
    """
    Register a new user and return a token pair.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password, confirmPassword, firstName, lastName]
          properties:
            email: { type: string }
            password: { type: string }
            confirmPassword: { type: string }
            firstName: { type: string }
            lastName: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    data = load_or_fail(register_schema, request.get_json(silent=True))
    user, tokens = auth_service.register(
        email=data["email"],
        password=data["password"],
        first_name=data["first_name"],
        last_name=data["last_name"],
    )
    return send_created({"user": user_out_schema.dump(user), **tokens}, "User registered successfully")


@bp.post("/login")
@rate_limit(
    "auth:login",
    limit=5,
    per_seconds=900,
    message="Too many login attempts, please try again after 15 minutes",
)
def login():
    """
    Login: return the user with an access token and a refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials or deactivated account
    """
    data = load_or_fail(login_schema, request.get_json(silent=True))
    user, tokens = auth_service.login(data["email"], data["password"])
    return send_success({"user": user_out_schema.dump(user), **tokens}, "Login successful")


@bp.post("/refresh-token")
def refresh_token():
    """
    Exchange a refresh token for a new pair (the presented token is retired)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refreshToken: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid, expired or superseded refresh token
    """
    data = load_or_fail(refresh_schema, request.get_json(silent=True))
    tokens = auth_service.refresh(data["refresh_token"])
    return send_success(tokens, "Token refreshed successfully")


@bp.get("/me")
@jwt_required()
def me():
    """
    Current user profile
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return send_success({"user": user_out_schema.dump(g.current_user)})


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: clears the stored refresh token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    auth_service.logout(g.current_user)
    return send_success(None, "Logout successful")


@bp.patch("/update-password")
@jwt_required()
def update_password():
    """
    Change password; returns a fresh token pair
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             currentPassword: { type: string }
             newPassword: { type: string }
             confirmNewPassword: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Validation error or wrong current password
    """
    data = load_or_fail(update_password_schema, request.get_json(silent=True))
    tokens = auth_service.update_password(g.current_user, data["current_password"], data["new_password"])
    return send_success(tokens, "Password updated successfully")
