"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all
- GET  /auth/me

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens (JWTs signed with HS256) and opaque refresh tokens
- Stores only refresh token hashes in the DB so they can be rotated / revoked
- A reused refresh token revokes every session of its owner
- Login and refresh also set both tokens as httponly cookies; logout clears them
"""
from __future__ import annotations

from flask import Blueprint, Response, request, jsonify, g, current_app

from api import get_sessions
from auth import TokenPair
from models.schemas.user import (
    LoginSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
    UserOutSchema,
)
from utils.decorators import jwt_required

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
user_out_schema = UserOutSchema()
token_pair_schema = TokenPairSchema()


def _refresh_token_from_request() -> str | None:
    payload = refresh_schema.load(request.get_json(silent=True) or {})
    cookie_name = current_app.config.get("REFRESH_TOKEN_COOKIE", "refreshToken")
    return payload.get("refresh_token") or request.cookies.get(cookie_name)


def _cookie_options() -> dict:
    cfg = current_app.config
    return {
        "secure": cfg.get("COOKIE_SECURE", True),
        "samesite": cfg.get("COOKIE_SAMESITE", "Strict"),
        "domain": cfg.get("COOKIE_DOMAIN"),
    }


def _set_token_cookies(response: Response, tokens: TokenPair) -> Response:
    cfg = current_app.config
    issuer = get_sessions().tokens
    options = _cookie_options()
    response.set_cookie(
        cfg.get("ACCESS_TOKEN_COOKIE", "accessToken"),
        tokens.access_token,
        max_age=int(issuer.access_ttl.total_seconds()),
        httponly=True,
        **options,
    )
    # refresh cookie only travels to the auth endpoints
    response.set_cookie(
        cfg.get("REFRESH_TOKEN_COOKIE", "refreshToken"),
        tokens.refresh_token,
        max_age=int(issuer.refresh_ttl.total_seconds()),
        path=cfg.get("REFRESH_TOKEN_COOKIE_PATH", "/api/v1/auth"),
        httponly=True,
        **options,
    )
    return response


def _clear_token_cookies(response: Response) -> Response:
    cfg = current_app.config
    options = _cookie_options()
    response.delete_cookie(cfg.get("ACCESS_TOKEN_COOKIE", "accessToken"), httponly=True, **options)
    response.delete_cookie(
        cfg.get("REFRESH_TOKEN_COOKIE", "refreshToken"),
        path=cfg.get("REFRESH_TOKEN_COOKIE_PATH", "/api/v1/auth"),
        httponly=True,
        **options,
    )
    return response


@bp.post("/register")
def register():
    """
    Register a new user.
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
          properties:
            email: { type: string }
            name: { type: string }
            password: { type: string }
            password_confirmation: { type: string }
    responses:
      201:
        description: Created
      409:
        description: Email already registered
      422:
        description: Validation error
    """
    data = register_schema.load(request.get_json(silent=True) or {})
    user = get_sessions().users.create(
        email=data["email"],
        name=data["name"],
        password=data["password"],
    )
    return jsonify(
        {
            "message": "User registered successfully",
            "data": {"user": user_out_schema.dump(user)},
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login with username or email: returns access_token and refresh_token
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
             identifier: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid credentials
    """
    data = login_schema.load(request.get_json(silent=True) or {})
    tokens = get_sessions().login(data["identifier"], data["password"]).unwrap()
    response = jsonify(
        {
            "message": "Login successful",
            "data": token_pair_schema.dump(tokens),
        }
    )
    return _set_token_cookies(response, tokens), 200


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation).
    The presented refresh token is consumed.
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
             refresh_token: { type: string }
    responses:
      200:
        description: OK (returns new tokens)
      401:
        description: Invalid or expired token
    """
    token = _refresh_token_from_request()
    tokens = get_sessions().refresh(token).unwrap()
    response = jsonify(
        {
            "message": "Tokens refreshed successfully",
            "data": token_pair_schema.dump(tokens),
        }
    )
    return _set_token_cookies(response, tokens), 200


@bp.post("/logout")
def logout():
    """
    Logout: revokes the refresh token. Always succeeds.
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
             refresh_token: { type: string }
    responses:
      200:
        description: Logged out
    """
    get_sessions().logout(_refresh_token_from_request())
    return _clear_token_cookies(jsonify({"message": "Logout successful"})), 200


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    """
    Logout from all devices: revokes every refresh token of the current user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out everywhere
      401:
        description: Unauthorized
    """
    revoked = get_sessions().logout_all(g.current_user.id).unwrap()
    response = jsonify(
        {
            "message": "Logged out from all devices",
            "data": {"revoked": revoked},
        }
    )
    return _clear_token_cookies(response), 200


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
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
    return jsonify({"data": {"user": user_out_schema.dump(g.current_user)}}), 200
