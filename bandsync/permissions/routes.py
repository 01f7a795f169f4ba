"""Routes for the permissions blueprint."""

from flask import Blueprint, g

from bandsync.auth.decorators import login_required
from bandsync.errors import PermissionDenied
from bandsync.utils import api_response, json_body

bp = Blueprint("permissions", __name__, url_prefix="/permissions")


@bp.route("/<group_id>", methods=["GET"])
@login_required
async def view_permissions(group_id):
    """Return the group's matrix and the modules the caller may open."""
    services = g.services
    group = await services.permissions.load_group(group_id)
    role = group.role_of(services.session.user_id)
    if role is None:
        raise PermissionDenied("You are not a member of this group.")
    matrix = await services.permissions.get_matrix(group_id)
    modules = await services.permissions.accessible_modules(group_id, role)
    return api_response(
        {
            **matrix.to_dict(),
            "role": role.value,
            "accessible_modules": [module.value for module in modules],
        }
    )


@bp.route("/<group_id>/<module>", methods=["PUT"])
@login_required
async def grant_roles(group_id, module):
    """Set the roles allowed to use a module."""
    matrix = await g.services.permissions.grant_roles(
        group_id, module, json_body().get("roles") or []
    )
    return api_response(matrix.to_dict(), "Permissions updated.")


@bp.route("/<group_id>/<module>", methods=["DELETE"])
@login_required
async def revoke_roles(group_id, module):
    """Take roles away from a module."""
    matrix = await g.services.permissions.revoke_roles(
        group_id, module, json_body().get("roles") or []
    )
    return api_response(matrix.to_dict(), "Permissions updated.")


@bp.route("/<group_id>/reset", methods=["POST"])
@login_required
async def reset_permissions(group_id):
    matrix = await g.services.permissions.reset_to_defaults(group_id)
    return api_response(matrix.to_dict(), "Permissions reset to defaults.")
