"""
Profile helpers for registration:
- username derived from the display name plus a random 4 digit suffix
- avatar URL built from the name's initials
"""
from __future__ import annotations

import re
import secrets
import time
from typing import Callable
from urllib.parse import urlencode

AVATAR_BASE_URL = "https://ui-avatars.com/api/"
MAX_USERNAME_ATTEMPTS = 10

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


def _clean(name: str) -> str:
    return _NON_ALNUM.sub("", name or "").lower()


def generate_username(name: str) -> str:
    """'Jane Doe' -> 'janedoe4821'"""
    suffix = 1000 + secrets.randbelow(9000)
    return f"{_clean(name) or 'user'}{suffix}"


def generate_unique_username(name: str, exists: Callable[[str], bool]) -> str:
    """
    Keep drawing suffixes until ``exists`` says the username is free; after
    MAX_USERNAME_ATTEMPTS fall back to a millisecond timestamp suffix.
    """
    username = generate_username(name)
    attempts = 0
    while exists(username):
        attempts += 1
        if attempts >= MAX_USERNAME_ATTEMPTS:
            return f"{_clean(name) or 'user'}{int(time.time() * 1000)}"
        username = generate_username(name)
    return username


def generate_avatar_url(name: str) -> str:
    initials = "".join(word[0].upper() for word in (name or "").split() if word)[:2]
    query = urlencode({"name": initials, "color": "7F9CF5", "background": "EBF4FF"})
    return f"{AVATAR_BASE_URL}?{query}"
