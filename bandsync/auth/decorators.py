"""Decorators for the auth blueprint."""

from functools import wraps

from flask import g

from bandsync.errors import Unauthenticated
from bandsync.utils import bearer_token


def login_required(f=None, profile_required=True):
    """Verify the request's bearer token before running the view.

    Usage:
    @login_required
    async def protected_view():
        ...

    @login_required(profile_required=False)
    async def register():
        ...
    """

    def decorator(func):
        @wraps(func)
        async def decorated_function(*args, **kwargs):
            token = bearer_token()
            if token is None:
                raise Unauthenticated()
            await g.services.session.login(token)
            if profile_required:
                g.services.session.require_profile()
            return await func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
