import json

from flask import Blueprint, request

from donatehub.schemas.user_schema import (
    StatisticPointSchema,
    UserInfoForDonateSchema,
    UserInfoSchema,
    UserProfileSchema,
    UserUpdateSchema,
)
from donatehub.services.container import get_services
from donatehub.utils.auth_utils import capability_required, current_account, ensure_self_or
from donatehub.utils.exceptions import InvalidArgumentError
from donatehub.utils.pagination import page_args
from donatehub.utils.response_formatter import paged_response, success_response
from donatehub.utils.roles import ACCOUNTS_MODERATE

bp = Blueprint("users", __name__, url_prefix="/api/v1/user")

user_info_schema = UserInfoSchema()
user_for_donate_schema = UserInfoForDonateSchema()
user_profile_schema = UserProfileSchema()
user_update_schema = UserUpdateSchema()
statistic_schema = StatisticPointSchema()


def _update_payload():
    """Profile fields come as JSON, or as multipart form next to the images."""
    if request.files or request.form:
        raw = request.form.get("update")
        if raw:
            try:
                data = json.loads(raw)
            except ValueError:
                raise InvalidArgumentError("update part is not valid JSON")
        else:
            data = request.form.to_dict()
    else:
        data = request.get_json(silent=True) or {}
    return user_update_schema.load(data)


def _bool_arg(name):
    value = request.args.get(name)
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes")


@bp.route("/user-info/<int:user_id>", methods=["GET"])
def user_info(user_id):
    user = get_services().users.get_by_id(user_id)
    return success_response({"user": user_info_schema.dump(user)})


@bp.route("/<string:channel_name>", methods=["GET"])
def streamer_by_channel_name(channel_name):
    user = get_services().users.find_by_channel_name(channel_name)
    return success_response({"user": user_for_donate_schema.dump(user)})


@bp.route("/verified", methods=["GET"])
def approved_users():
    page, size = page_args(request.args)
    items, pagination = get_services().users.list_by_enabled(True, page, size)
    return paged_response("users", items, user_info_schema, pagination)


@bp.route("/not-verified", methods=["GET"])
@capability_required(ACCOUNTS_MODERATE)
def not_approved_users():
    page, size = page_args(request.args)
    items, pagination = get_services().users.list_by_enabled(False, page, size)
    return paged_response("users", items, user_info_schema, pagination)


@bp.route("/search", methods=["GET"])
def search_users():
    page, size = page_args(request.args)
    items, pagination = get_services().users.search(
        request.args.get("text", ""), page, size, enabled=_bool_arg("enable")
    )
    return paged_response("users", items, user_info_schema, pagination)


@bp.route("/<int:user_id>", methods=["PUT"])
def update(user_id):
    ensure_self_or(user_id, ACCOUNTS_MODERATE)
    user = get_services().users.update_profile(
        user_id,
        _update_payload(),
        profile_img=request.files.get("profileImg"),
        banner_img=request.files.get("bannerImg"),
    )
    return success_response({"user": user_profile_schema.dump(user)})


@bp.route("/register/<int:user_id>", methods=["PUT"])
def full_register(user_id):
    ensure_self_or(user_id, ACCOUNTS_MODERATE)
    user = get_services().users.register_fully(
        user_id,
        _update_payload(),
        profile_img=request.files.get("profileImg"),
        banner_img=request.files.get("bannerImg"),
    )
    return success_response({"user": user_profile_schema.dump(user)})


@bp.route("/enable/<int:streamer_id>", methods=["PUT"])
@capability_required(ACCOUNTS_MODERATE)
def enable(streamer_id):
    user = get_services().users.set_enabled(streamer_id, True)
    return success_response({"user": user_info_schema.dump(user)})


@bp.route("/disable/<int:streamer_id>", methods=["PUT"])
@capability_required(ACCOUNTS_MODERATE)
def disable(streamer_id):
    user = get_services().users.set_enabled(streamer_id, False)
    return success_response({"user": user_info_schema.dump(user)})


@bp.route("/online/<int:streamer_id>", methods=["PUT"])
def online(streamer_id):
    ensure_self_or(streamer_id, ACCOUNTS_MODERATE)
    user = get_services().users.set_online(streamer_id, True)
    return success_response({"user": user_info_schema.dump(user)})


@bp.route("/offline/<int:streamer_id>", methods=["PUT"])
def offline(streamer_id):
    ensure_self_or(streamer_id, ACCOUNTS_MODERATE)
    user = get_services().users.set_online(streamer_id, False)
    return success_response({"user": user_info_schema.dump(user)})


@bp.route("/statistic/register", methods=["GET"])
@capability_required(ACCOUNTS_MODERATE)
def statistics_of_register():
    points = get_services().users.registration_statistics(request.args.get("days", 7))
    return success_response({"statistics": statistic_schema.dump(points, many=True)})


@bp.route("/statistic/last-online", methods=["GET"])
@capability_required(ACCOUNTS_MODERATE)
def statistics_of_last_online():
    points = get_services().users.last_online_statistics(request.args.get("days", 7))
    return success_response({"statistics": statistic_schema.dump(points, many=True)})


@bp.route("/me", methods=["GET"])
def me():
    return success_response({"user": user_profile_schema.dump(current_account())})
