from functools import wraps

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from donatehub.extensions import db
from donatehub.models.user import User
from donatehub.utils.exceptions import ForbiddenError, NotFoundError
from donatehub.utils.roles import has_capability


def current_account():
    """Load the account behind the JWT of the current request."""
    verify_jwt_in_request()
    user = db.session.get(User, int(get_jwt_identity()))
    if not user:
        raise NotFoundError("User not found")
    return user


def capability_required(capability):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = current_account()
            if not has_capability(user.role, capability):
                raise ForbiddenError(f"Missing capability '{capability}'")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def ensure_self_or(account_id, capability):
    """Allow the account itself, or anyone holding ``capability``."""
    user = current_account()
    if user.id == account_id or has_capability(user.role, capability):
        return user
    raise ForbiddenError("You can only access your own account")
