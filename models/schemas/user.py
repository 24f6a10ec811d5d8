import re

from marshmallow import Schema, fields, pre_load, validates, validates_schema, validate, ValidationError

_PASSWORD_STRENGTH = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class RegisterSchema(Schema):
    email = fields.Email(required=True)
    name = fields.String(required=True, validate=validate.Length(min=2, max=100))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=8, max=128))
    password_confirmation = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict):
            data = dict(data)
            if "email" in data:
                data["email"] = _norm_email(data["email"])
            if "name" in data:
                data["name"] = _strip(data["name"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        if not _PASSWORD_STRENGTH.match(value):
            raise ValidationError(
                "Password must contain at least one uppercase letter, one lowercase letter, and one number"
            )

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get("password") != data.get("password_confirmation"):
            raise ValidationError("Passwords do not match", field_name="password_confirmation")


class LoginSchema(Schema):
    # username or email
    identifier = fields.String(required=True, validate=validate.Length(min=3))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "identifier" in data:
            data = dict(data)
            data["identifier"] = _strip(data["identifier"])
        return data


class RefreshSchema(Schema):
    # optional in the body; may arrive as a cookie instead
    refresh_token = fields.String(load_default=None)


class UserOutSchema(Schema):
    id = fields.String(allow_none=False)
    email = fields.String()
    username = fields.String()
    name = fields.String(allow_none=True)
    avatar = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class TokenPairSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    token_type = fields.String()
    expires_in = fields.Integer()
