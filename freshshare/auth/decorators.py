"""Decorators for protecting API routes."""

from functools import wraps

from flask import g, session

from freshshare.core.constants import SESSION_USER_ID
from freshshare.errors import UnauthorizedError


def login_required(func):
    """Reject the request with a 401 if the user is not logged in."""

    @wraps(func)
    def decorated_function(*args, **kwargs):
        if SESSION_USER_ID not in session or not g.get("user"):
            raise UnauthorizedError()
        return func(*args, **kwargs)

    return decorated_function
