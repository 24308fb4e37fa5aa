from flask import Blueprint, current_app, request

from donatehub.schemas.donation_schema import (
    CreateDonateSchema,
    DonationCreateSchema,
    DonationInfoSchema,
    DonationStatisticSchema,
)
from donatehub.services.container import get_services
from donatehub.utils.auth_utils import capability_required, ensure_self_or
from donatehub.utils.exceptions import ConflictError
from donatehub.utils.pagination import page_args
from donatehub.utils.response_formatter import paged_response, success_response
from donatehub.utils.roles import LEDGER_READ_ALL

bp = Blueprint("donations", __name__, url_prefix="/api/v1/donation")

donation_create_schema = DonationCreateSchema()
donation_info_schema = DonationInfoSchema()
create_donate_schema = CreateDonateSchema()
statistic_schema = DonationStatisticSchema()


@bp.route("/complete/<method>", methods=["POST"])
def complete(method):
    """Payment provider callback; the body format depends on ``method``."""
    body = request.get_data()
    current_app.logger.info("Payment callback from %s: %s", method, body[:500])

    try:
        get_services().donations.complete_donation(method, body, request.headers)
    except ConflictError:
        # provider retries of a settled donation are acknowledged
        current_app.logger.info("Callback for an already settled donation acknowledged")

    return "OK", 200


@bp.route("/<int:streamer_id>", methods=["POST"])
def donate(streamer_id):
    data = donation_create_schema.load(request.get_json() or {})
    donation, payment_url = get_services().donations.create_donation(
        streamer_id,
        donor_name=data["donor_name"],
        amount=data["amount"],
        method=data["method"],
        message=data.get("message"),
    )

    payload = create_donate_schema.dump({
        "id": donation.id,
        "external_ref": donation.external_ref,
        "amount": donation.amount,
        "method": donation.method,
        "status": donation.status,
        "payment_url": payment_url,
    })
    return success_response({"donation": payload}, status=201)


@bp.route("/<int:streamer_id>", methods=["GET"])
def donations_of_streamer(streamer_id):
    page, size = page_args(request.args)
    items, pagination = get_services().donations.list_for_streamer(streamer_id, page, size)
    return paged_response("donations", items, donation_info_schema, pagination)


@bp.route("", methods=["GET"])
@capability_required(LEDGER_READ_ALL)
def all_donations():
    page, size = page_args(request.args)
    items, pagination = get_services().donations.list_all(page, size)
    return paged_response("donations", items, donation_info_schema, pagination)


@bp.route("/statistics", methods=["GET"])
@capability_required(LEDGER_READ_ALL)
def statistics_for_admin():
    points = get_services().donations.statistics(None, request.args.get("days", 7))
    return success_response({"statistics": statistic_schema.dump(points, many=True)})


@bp.route("/statistics/<int:streamer_id>", methods=["GET"])
def statistics_of_streamer(streamer_id):
    ensure_self_or(streamer_id, LEDGER_READ_ALL)
    points = get_services().donations.statistics(streamer_id, request.args.get("days", 7))
    return success_response({"statistics": statistic_schema.dump(points, many=True)})
