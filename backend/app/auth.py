"""
Plateful Backend — Current User Dependency
============================================

What:  Resolves the logged-in user's id from the signed session cookie.
Why:   The "my votes" endpoints are per-user; everything else is public.
How:   Starlette's SessionMiddleware (registered in main.py) decodes the
       cookie into request.session. The login flow that writes
       session["user"] lives in the account service, not here.

Accepted session shapes:
    {"user": "user-123"}
    {"user": {"id": "user-123", ...}}
    {"user": {"username": "alice", ...}}
"""

from typing import Optional

from fastapi import Request

from app.exceptions import UnauthenticatedError


def get_optional_user_id(request: Request) -> Optional[str]:
    """The session's user id, or None when nobody is logged in."""
    user = request.session.get("user")
    if isinstance(user, dict):
        user = user.get("id") or user.get("username")
    if user is None:
        return None
    user = str(user).strip()
    return user or None


def get_current_user_id(request: Request) -> str:
    """Like get_optional_user_id, but raises 401 when nobody is logged in."""
    user_id = get_optional_user_id(request)
    if user_id is None:
        raise UnauthenticatedError()
    return user_id
