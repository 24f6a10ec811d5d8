from __future__ import annotations
from functools import wraps
from flask import request, g, current_app


def bearer_token() -> str | None:
    """Access token from 'Authorization: Bearer ...', falling back to the cookie."""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    cookie_name = current_app.config.get("ACCESS_TOKEN_COOKIE", "accessToken")
    return request.cookies.get(cookie_name) or None


def jwt_required():
    """
    Authenticate the request with the app's BearerTokenStrategy.
    On success the user is available as g.current_user; on failure the
    AuthError is raised and rendered by the error handlers.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            strategy = current_app.extensions["bearer_strategy"]
            user = strategy.authenticate(bearer_token()).unwrap()
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
