"""Routes for the group-scoped record collections."""

from flask import Blueprint, g, request

from bandsync.auth.decorators import login_required
from bandsync.context import COLLECTIONS
from bandsync.core.documents import parse_datetime
from bandsync.errors import NotFoundError, ValidationError
from bandsync.finance.filters import (
    FinanceFilter,
    SortOrder,
    summarize,
    unique_categories,
)
from bandsync.tasks.services import split_by_status
from bandsync.utils import api_response, json_body

bp = Blueprint("records", __name__, url_prefix="/group/<group_id>")


def _collection(name):
    if name not in COLLECTIONS:
        raise NotFoundError("Unknown collection.")
    return g.services.collection(name)


def _date_arg(key):
    value = request.args.get(key)
    if not value:
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise ValidationError(f"'{key}' must be an ISO-8601 datetime.") from e


@bp.route("/finances/filtered", methods=["GET"])
@login_required
async def filtered_finances(group_id):
    """Filter and sort finance records with query-string criteria."""
    finance_filter = FinanceFilter.from_args(request.args)
    try:
        order = SortOrder(request.args.get("sort") or SortOrder.DATE_DESC.value)
    except ValueError as e:
        raise ValidationError("Unknown sort order.") from e
    records = await g.services.finances.list_filtered(group_id, finance_filter, order)
    return api_response(
        {
            "records": [record.to_dict() for record in records],
            "categories": unique_categories(records),
            "summary": summarize(records),
        }
    )


@bp.route("/merchandise/sales", methods=["GET"])
@login_required
async def list_sales(group_id):
    sales = await g.services.merchandise.list_sales(group_id)
    return api_response([sale.to_dict() for sale in sales])


@bp.route("/merchandise/<item_id>/sell", methods=["POST"])
@login_required
async def sell_item(group_id, item_id):
    """Record a sale and book its income."""
    data = json_body()
    sale, income = await g.services.merchandise.record_sale(
        group_id,
        item_id,
        data.get("size") or "",
        data.get("quantity", 1),
        data.get("channel") or "concert",
    )
    return api_response(
        {"sale": sale.to_dict(), "income": income.to_dict()}, "Sale recorded.", 201
    )


@bp.route("/tasks/<task_id>/complete", methods=["POST"])
@login_required
async def complete_task(group_id, task_id):
    completed = json_body().get("completed", True)
    if not isinstance(completed, bool):
        raise ValidationError("'completed' must be a boolean.")
    task = await g.services.tasks.set_completed(group_id, task_id, completed)
    return api_response(task.to_dict())


@bp.route("/<collection>/", methods=["GET"])
@login_required
async def list_records(group_id, collection):
    """List a collection. Some collections accept extra query filters."""
    service = _collection(collection)
    services = g.services
    if collection == "calendar":
        records = await service.list_events(
            group_id, _date_arg("start"), _date_arg("end")
        )
    elif collection == "chats" and request.args.get("mine"):
        records = await service.list_for_participant(
            group_id, services.session.user_id
        )
    elif collection == "tasks" and request.args.get("mine"):
        records = await service.list_for_assignee(group_id, services.session.user_id)
    else:
        records = await service.list(group_id)

    if collection == "tasks":
        pending, done = split_by_status(records)
        return api_response(
            {
                "pending": [task.to_dict() for task in pending],
                "completed": [task.to_dict() for task in done],
            }
        )
    return api_response([record.to_dict() for record in records])


@bp.route("/<collection>/", methods=["POST"])
@login_required
async def create_record(group_id, collection):
    record = await _collection(collection).create(group_id, json_body())
    return api_response(record.to_dict(), "Created.", 201)


@bp.route("/<collection>/<record_id>", methods=["GET"])
@login_required
async def get_record(group_id, collection, record_id):
    record = await _collection(collection).get(group_id, record_id)
    return api_response(record.to_dict())


@bp.route("/<collection>/<record_id>", methods=["PUT"])
@login_required
async def update_record(group_id, collection, record_id):
    record = await _collection(collection).update(group_id, record_id, json_body())
    return api_response(record.to_dict(), "Updated.")


@bp.route("/<collection>/<record_id>", methods=["DELETE"])
@login_required
async def delete_record(group_id, collection, record_id):
    await _collection(collection).delete(group_id, record_id)
    return api_response(message="Deleted.")
