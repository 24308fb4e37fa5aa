from flask import Blueprint, current_app, request

from donatehub.schemas.withdraw_schema import WithdrawInfoSchema
from donatehub.services.container import get_services
from donatehub.utils.auth_utils import capability_required, ensure_self_or
from donatehub.utils.constants import WithdrawStatus
from donatehub.utils.exceptions import ForbiddenError
from donatehub.utils.pagination import page_args
from donatehub.utils.response_formatter import paged_response, success_response
from donatehub.utils.roles import LEDGER_READ_ALL, WITHDRAW_REQUEST, WITHDRAW_SETTLE, has_capability

bp = Blueprint("withdraws", __name__, url_prefix="/api/v1/withdraw")

withdraw_info_schema = WithdrawInfoSchema()


@bp.route("/<int:streamer_id>", methods=["POST"])
def create(streamer_id):
    user = ensure_self_or(streamer_id, WITHDRAW_SETTLE)
    if user.id == streamer_id and not has_capability(user.role, WITHDRAW_REQUEST):
        raise ForbiddenError("Only registered streamers can withdraw")

    data = request.get_json(silent=True) or {}
    amount = request.args.get("amount", data.get("amount"))
    card_number = request.args.get("cardNumber", data.get("card_number"))

    wr = get_services().withdraws.create_withdraw(streamer_id, amount, card_number)
    return success_response({"withdraw": withdraw_info_schema.dump(wr)}, status=201)


@bp.route("/complete/<int:withdraw_id>", methods=["PUT"])
@capability_required(WITHDRAW_SETTLE)
def set_status_to_complete(withdraw_id):
    current_app.logger.info("Complete requested for withdraw %s", withdraw_id)
    wr = get_services().withdraws.set_status(withdraw_id, WithdrawStatus.COMPLETED)
    return success_response({"withdraw": withdraw_info_schema.dump(wr)})


@bp.route("/cancel/<int:withdraw_id>", methods=["PUT"])
@capability_required(WITHDRAW_SETTLE)
def set_status_canceled(withdraw_id):
    current_app.logger.info("Cancel requested for withdraw %s", withdraw_id)
    wr = get_services().withdraws.set_status(withdraw_id, WithdrawStatus.CANCELED)
    return success_response({"withdraw": withdraw_info_schema.dump(wr)})


@bp.route("", methods=["GET"])
@capability_required(LEDGER_READ_ALL)
def withdraws_by_status():
    page, size = page_args(request.args)
    items, pagination = get_services().withdraws.list_by_status(
        page, size, request.args.get("status")
    )
    return paged_response("withdraws", items, withdraw_info_schema, pagination)


@bp.route("/<int:streamer_id>", methods=["GET"])
def withdraws_of_streamer_by_status(streamer_id):
    ensure_self_or(streamer_id, LEDGER_READ_ALL)
    page, size = page_args(request.args)
    items, pagination = get_services().withdraws.list_for_streamer_by_status(
        streamer_id, page, size, request.args.get("status")
    )
    return paged_response("withdraws", items, withdraw_info_schema, pagination)
