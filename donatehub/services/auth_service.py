import hashlib
import hmac
import logging
import time
from datetime import datetime, timedelta
from decimal import Decimal

from flask_jwt_extended import create_access_token, create_refresh_token

from donatehub.extensions import db
from donatehub.models.user import User
from donatehub.utils.constants import UserRole
from donatehub.utils.exceptions import InvalidArgumentError, ServiceError

LOGIN_MAX_AGE = 86400


def telegram_check_hash(payload, bot_token):
    """HMAC of the Telegram login widget payload, keyed by sha256(bot token)."""
    check_string = "\n".join(
        f"{k}={payload[k]}" for k in sorted(payload) if k != "hash" and payload[k] is not None
    )
    secret = hashlib.sha256(bot_token.encode()).digest()
    return hmac.new(secret, check_string.encode(), hashlib.sha256).hexdigest()


class AuthService:
    def __init__(self, config, logger=None):
        self.config = config
        self.log = logger or logging.getLogger(__name__)

    def sign_in(self, payload):
        """Verify an identity-provider login and return ``(user, access, refresh)``."""
        self._verify(payload)
        try:
            uid = int(payload["id"])
        except (KeyError, TypeError, ValueError):
            raise InvalidArgumentError("id is required", details={"field": "id"})

        user = db.session.get(User, uid)
        if not user:
            is_admin = uid in self.config.get("ADMIN_IDS", [])
            user = User(
                id=uid,
                first_name=payload.get("first_name"),
                username=payload.get("username"),
                role=UserRole.ADMIN if is_admin else UserRole.UNREGISTERED,
                enable=is_admin,
                online=False,
                balance=Decimal("0.00"),
            )
            db.session.add(user)
            self.log.info("New account %s created on first sign-in", uid)
        else:
            user.first_name = payload.get("first_name", user.first_name)
            user.username = payload.get("username", user.username)

        user.last_online_at = datetime.utcnow()
        db.session.commit()

        access, refresh = self.generate_tokens_for_user(user)
        return user, access, refresh

    def generate_tokens_for_user(self, user):
        access = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role},
            expires_delta=timedelta(seconds=self.config.get("ACCESS_EXPIRES", 86400)),
        )
        refresh = create_refresh_token(
            identity=str(user.id),
            expires_delta=timedelta(seconds=self.config.get("REFRESH_EXPIRES", 604800)),
        )
        return access, refresh

    def _verify(self, payload):
        bot_token = self.config.get("TELEGRAM_BOT_TOKEN")
        if not bot_token:
            self.log.warning("TELEGRAM_BOT_TOKEN is not set, skipping login verification")
            return

        received = payload.get("hash") or ""
        if not hmac.compare_digest(telegram_check_hash(payload, bot_token), received):
            raise ServiceError(code="AUTH_FAILED", message="Invalid login data", status=401)

        try:
            auth_date = int(payload.get("auth_date", 0))
        except (TypeError, ValueError):
            auth_date = 0
        if time.time() - auth_date > LOGIN_MAX_AGE:
            raise ServiceError(code="AUTH_EXPIRED", message="Login data is outdated", status=401)
