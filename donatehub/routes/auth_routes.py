from flask import Blueprint, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from donatehub.extensions import db
from donatehub.models.user import User
from donatehub.services.container import get_services
from donatehub.utils.exceptions import NotFoundError
from donatehub.utils.response_formatter import success_response

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@bp.route("/login", methods=["POST"])
def login():
    """Sign in with the identity provider payload; creates the account once."""
    data = request.get_json() or {}
    user, access, refresh = get_services().auth.sign_in(data)
    return success_response({
        "role": user.role,
        "access_token": access,
        "refresh_token": refresh,
    })


@bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    user = db.session.get(User, int(get_jwt_identity()))
    if not user:
        raise NotFoundError("User not found")
    access, refresh_token = get_services().auth.generate_tokens_for_user(user)
    return success_response({
        "role": user.role,
        "access_token": access,
        "refresh_token": refresh_token,
    })
