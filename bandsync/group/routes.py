"""Routes for the group blueprint."""

from flask import Blueprint, g

from bandsync.auth.decorators import login_required
from bandsync.utils import api_response, json_body

bp = Blueprint("group", __name__, url_prefix="/group")


@bp.route("/", methods=["POST"])
@login_required
async def create_group():
    """Create a group with the caller as its admin."""
    group = await g.services.groups.create_group(json_body().get("name") or "")
    return api_response(group.to_dict(), "Group created.", 201)


@bp.route("/join", methods=["POST"])
@login_required
async def join_group():
    """Ask to join the group behind a join code."""
    request_ = await g.services.groups.join_group(json_body().get("code") or "")
    message = (
        "Your request is still waiting for approval."
        if request_.already_pending
        else "Request sent. An admin needs to approve it."
    )
    return api_response(request_.to_dict(), message, 202)


@bp.route("/<group_id>", methods=["GET"])
@login_required
async def view_group(group_id):
    """Return the group with the profiles of its members."""
    groups = g.services.groups
    group = await groups.get_group(group_id)
    people = await groups.list_members(group_id)
    data = group.to_dict()
    data["member_profiles"] = [user.to_dict() for user in people["members"]]
    data["pending_profiles"] = [user.to_dict() for user in people["pending"]]
    return api_response(data)


@bp.route("/<group_id>", methods=["PATCH"])
@login_required
async def rename_group(group_id):
    group = await g.services.groups.rename_group(
        group_id, json_body().get("name") or ""
    )
    return api_response(group.to_dict(), "Group renamed.")


@bp.route("/<group_id>/code", methods=["POST"])
@login_required
async def regenerate_code(group_id):
    group = await g.services.groups.regenerate_code(group_id)
    return api_response(group.to_dict(), "Join code regenerated.")


@bp.route("/<group_id>/approve/<user_id>", methods=["POST"])
@login_required
async def approve_member(group_id, user_id):
    group = await g.services.groups.approve_member(group_id, user_id)
    return api_response(group.to_dict(), "Member approved.")


@bp.route("/<group_id>/reject/<user_id>", methods=["POST"])
@login_required
async def reject_member(group_id, user_id):
    group = await g.services.groups.reject_member(group_id, user_id)
    return api_response(group.to_dict(), "Request rejected.")


@bp.route("/<group_id>/members/<user_id>/role", methods=["POST"])
@login_required
async def change_role(group_id, user_id):
    group = await g.services.groups.change_role(
        group_id, user_id, json_body().get("role")
    )
    return api_response(group.to_dict(), "Role updated.")


@bp.route("/<group_id>/members/<user_id>", methods=["DELETE"])
@login_required
async def remove_member(group_id, user_id):
    group = await g.services.groups.remove_member(group_id, user_id)
    return api_response(group.to_dict(), "Member removed.")


@bp.route("/<group_id>/leave", methods=["POST"])
@login_required
async def leave_group(group_id):
    """Leave the group, optionally handing the admin role to a successor."""
    await g.services.groups.leave_group(
        group_id, successor_id=json_body().get("successor")
    )
    return api_response(message="You left the group.")
