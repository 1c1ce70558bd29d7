from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    pre_load,
    validate,
    validates_schema,
)

from models.user import ROLES

PASSWORD_RULES = [
    validate.Length(min=8, max=128, error="Password must be between 8 and 128 characters"),
    validate.Regexp(
        r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)",
        error="Password must contain at least one uppercase letter, one lowercase letter, and one number",
    ),
]
NAME_RULE = validate.Length(min=1, max=50, error="Name must be between 1 and 50 characters")
SORT_FIELDS = ("createdAt", "email", "firstName", "lastName")


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _strip(data, *keys):
    for key in keys:
        if isinstance(data.get(key), str):
            data[key] = data[key].strip()
    return data


class _BodySchema(Schema):
    class Meta:
        # unknown keys are dropped rather than rejected
        unknown = EXCLUDE


class RegisterSchema(_BodySchema):
    email = fields.Email(required=True, error_messages={"required": "Email is required"})
    password = fields.String(required=True, load_only=True, validate=PASSWORD_RULES)
    confirm_password = fields.String(
        required=True,
        load_only=True,
        data_key="confirmPassword",
        error_messages={"required": "Password confirmation is required"},
    )
    first_name = fields.String(required=True, data_key="firstName", validate=NAME_RULE)
    last_name = fields.String(required=True, data_key="lastName", validate=NAME_RULE)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            _strip(data, "firstName", "lastName")
        return data

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match", field_name="confirmPassword")


class LoginSchema(_BodySchema):
    email = fields.Email(required=True, error_messages={"required": "Email is required"})
    password = fields.String(required=True, load_only=True, error_messages={"required": "Password is required"})

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class RefreshTokenSchema(_BodySchema):
    refresh_token = fields.String(
        required=True,
        data_key="refreshToken",
        validate=validate.Length(min=1),
        error_messages={"required": "Refresh token is required"},
    )


class UpdatePasswordSchema(_BodySchema):
    current_password = fields.String(
        required=True,
        load_only=True,
        data_key="currentPassword",
        error_messages={"required": "Current password is required"},
    )
    new_password = fields.String(required=True, load_only=True, data_key="newPassword", validate=PASSWORD_RULES)
    confirm_new_password = fields.String(required=True, load_only=True, data_key="confirmNewPassword")

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("new_password") != data.get("confirm_new_password"):
            raise ValidationError("Passwords do not match", field_name="confirmNewPassword")


class UpdateProfileSchema(_BodySchema):
    first_name = fields.String(data_key="firstName", validate=NAME_RULE)
    last_name = fields.String(data_key="lastName", validate=NAME_RULE)
    avatar = fields.Url(allow_none=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = _strip(dict(data), "firstName", "lastName")
            if data.get("avatar") == "":
                data["avatar"] = None
        return data

    @validates_schema
    def not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("At least one field is required to update")


class UpdateUserSchema(_BodySchema):
    first_name = fields.String(data_key="firstName", validate=NAME_RULE)
    last_name = fields.String(data_key="lastName", validate=NAME_RULE)
    role = fields.String(validate=validate.OneOf(ROLES))
    is_active = fields.Boolean(data_key="isActive")
    is_email_verified = fields.Boolean(data_key="isEmailVerified")

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = _strip(dict(data), "firstName", "lastName")
        return data

    @validates_schema
    def not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("At least one field is required to update")


class UserListQuerySchema(_BodySchema):
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(load_default=10, validate=validate.Range(min=1, max=100))
    sort_by = fields.String(data_key="sortBy", load_default="createdAt", validate=validate.OneOf(SORT_FIELDS))
    sort_order = fields.String(data_key="sortOrder", load_default="desc", validate=validate.OneOf(("asc", "desc")))
    role = fields.String(validate=validate.OneOf(ROLES))
    is_active = fields.String(data_key="isActive", validate=validate.OneOf(("true", "false")))
    search = fields.String(validate=validate.Length(max=100))


class UserOutSchema(Schema):
    id = fields.String()
    email = fields.String()
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    full_name = fields.String(data_key="fullName")
    role = fields.String()
    is_active = fields.Boolean(data_key="isActive")
    is_email_verified = fields.Boolean(data_key="isEmailVerified")
    avatar = fields.String(allow_none=True)
    last_login = fields.DateTime(data_key="lastLogin", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt", allow_none=True)
    updated_at = fields.DateTime(data_key="updatedAt", allow_none=True)
