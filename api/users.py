from __future__ import annotations

import logging
import uuid

from flask import Blueprint, request, g
from sqlalchemy import or_, func

from models import storage
from models.user import User
from models.schemas.user import (
    UpdateProfileSchema,
    UpdateUserSchema,
    UserListQuerySchema,
    UserOutSchema,
)
from utils.decorators import jwt_required, roles_required

from .errors import BadRequest, NotFound, ValidationFailed
from .responses import send_success, send_no_content, send_paginated, load_or_fail

logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__, url_prefix="/users")

ADMIN_ONLY = {"admin"}

# Sorting allowlist: API field -> SQLAlchemy column
SORT_COLUMNS = {
    "createdAt": User.created_at,
    "email": User.email,
    "firstName": User.first_name,
    "lastName": User.last_name,
}

update_profile_schema = UpdateProfileSchema()
update_user_schema = UpdateUserSchema()
list_query_schema = UserListQuerySchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_user_or_404(user_id: str) -> User:
    try:
        uuid.UUID(user_id)
    except ValueError:
        raise ValidationFailed(
            [{"field": "id", "message": "Invalid user ID format", "location": "params"}]
        )
    user = storage.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def apply_updates(user: User, data: dict) -> User:
    for key, value in data.items():
        setattr(user, key, value)
    user.save()
    return user


@bp.patch("/profile")
@jwt_required()
def update_profile():
    """
    Update the caller's own profile
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            firstName: { type: string }
            lastName: { type: string }
            avatar: { type: string }
    responses:
      200: { description: OK }
      400: { description: Validation error }
    """
    data = load_or_fail(update_profile_schema, request.get_json(silent=True))
    user = apply_updates(g.current_user, data)
    return send_success({"user": user_out_schema.dump(user)}, "Profile updated successfully")


@bp.get("")
@roles_required(ADMIN_ONLY)
def list_users():
    """
    List users (admin). Supports pagination, sorting, role/isActive filters and search
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
      - { in: query, name: sortBy, type: string, default: createdAt }
      - { in: query, name: sortOrder, type: string, default: desc }
      - { in: query, name: role, type: string }
      - { in: query, name: isActive, type: string }
      - { in: query, name: search, type: string }
    responses:
      200: { description: OK }
      403: { description: Forbidden }
    """
    params = load_or_fail(list_query_schema, request.args.to_dict(), location="query")
    page, limit = params["page"], params["limit"]

    query = storage.get_session().query(User)
    if "role" in params:
        query = query.filter(User.role == params["role"])
    if "is_active" in params:
        query = query.filter(User.is_active.is_(params["is_active"] == "true"))
    if params.get("search"):
        pattern = f"%{escape_like(params['search'].strip().lower())}%"
        query = query.filter(
            or_(
                func.lower(User.first_name).like(pattern, escape="\\"),
                func.lower(User.last_name).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            )
        )

    column = SORT_COLUMNS[params["sort_by"]]
    order_by = column.asc() if params["sort_order"] == "asc" else column.desc()

    total = query.count()
    rows = query.order_by(order_by, User.id).offset((page - 1) * limit).limit(limit).all()
    return send_paginated(user_list_out_schema.dump(rows), page, limit, total)


@bp.get("/<user_id>")
@roles_required(ADMIN_ONLY)
def get_user(user_id: str):
    """
    Get a user by id (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = get_user_or_404(user_id)
    return send_success({"user": user_out_schema.dump(user)})


@bp.patch("/<user_id>")
@roles_required(ADMIN_ONLY)
def update_user(user_id: str):
    """
    Update a user (admin, partial)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            firstName: { type: string }
            lastName: { type: string }
            role: { type: string, enum: [user, admin, moderator] }
            isActive: { type: boolean }
            isEmailVerified: { type: boolean }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = get_user_or_404(user_id)
    data = load_or_fail(update_user_schema, request.get_json(silent=True))
    apply_updates(user, data)
    logger.info("Admin %s updated user %s: %s", g.current_user.id, user.id, sorted(data))
    return send_success({"user": user_out_schema.dump(user)}, "User updated successfully")


@bp.delete("/<user_id>")
@roles_required(ADMIN_ONLY)
def delete_user(user_id: str):
    """
    Hard delete a user (admin). Admins cannot delete themselves
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      204: { description: Deleted }
      400: { description: Own account }
      404: { description: Not found }
    """
    user = get_user_or_404(user_id)
    if user.id == g.current_user.id:
        raise BadRequest("You cannot delete your own account")
    user.delete()
    storage.save()
    logger.info("Admin %s deleted user %s", g.current_user.id, user_id)
    return send_no_content()


@bp.patch("/<user_id>/deactivate")
@roles_required(ADMIN_ONLY)
def deactivate_user(user_id: str):
    """
    Soft-disable a user (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = apply_updates(get_user_or_404(user_id), {"is_active": False})
    return send_success({"user": user_out_schema.dump(user)}, "User deactivated successfully")


@bp.patch("/<user_id>/activate")
@roles_required(ADMIN_ONLY)
def activate_user(user_id: str):
    """
    Re-enable a user (admin)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: path
        name: user_id
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = apply_updates(get_user_or_404(user_id), {"is_active": True})
    return send_success({"user": user_out_schema.dump(user)}, "User activated successfully")
