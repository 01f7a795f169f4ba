"""Routes for the auth blueprint."""

from flask import Blueprint, current_app, g

from bandsync.errors import Unauthenticated
from bandsync.utils import api_response, bearer_token, json_body

from .decorators import login_required

bp = Blueprint("auth", __name__, url_prefix="/auth")


@bp.route("/session", methods=["POST"])
async def session_login():
    """Verify an ID token and report the profile that belongs to it.

    The token comes from the Firebase client-side SDK, either in the
    ``Authorization`` header or as ``idToken`` in the body.
    """
    id_token = json_body().get("idToken") or bearer_token()
    if not id_token:
        raise Unauthenticated()
    profile = await g.services.session.login(id_token)
    current_app.logger.info(f"Session login for {g.services.session.user_id}")
    return api_response(
        {
            "uid": g.services.session.user_id,
            "registered": profile is not None,
            "profile": profile.to_dict() if profile else None,
        }
    )


@bp.route("/register", methods=["POST"])
@login_required(profile_required=False)
async def register():
    """Create the profile of the token's user."""
    data = json_body()
    identity = g.services.session.current_user()
    user = await g.services.users.register(
        identity.uid,
        data.get("email") or identity.email,
        data.get("name") or "",
        data.get("phone") or "",
    )
    await g.services.session.reload_profile()
    return api_response(user.to_dict(), "Registration complete.", 201)


@bp.route("/me", methods=["GET"])
@login_required
async def me():
    """Return the caller's profile."""
    return api_response(g.services.session.require_profile().to_dict())
