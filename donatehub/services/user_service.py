import logging
from datetime import datetime, time

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from donatehub.extensions import db
from donatehub.models.user import User
from donatehub.utils.constants import UserRole
from donatehub.utils.exceptions import ConflictError, InvalidArgumentError, NotFoundError
from donatehub.utils.pagination import paginate_query
from donatehub.utils.statistics import fill_days, window_start

PROFILE_FIELDS = ("description", "channel_url", "min_donation_amount")


class UserService:
    def __init__(self, files, logger=None):
        self.files = files
        self.log = logger or logging.getLogger(__name__)

    def get_by_id(self, user_id):
        user = db.session.get(User, user_id)
        if not user:
            self.log.error("User not found: %s", user_id)
            raise NotFoundError("User not found")
        return user

    def find_by_channel_name(self, channel_name):
        self.log.info("Looking up channel %s", channel_name)
        user = User.query.filter(
            func.lower(User.channel_name) == (channel_name or "").strip().lower()
        ).first()
        if not user:
            self.log.error("Channel not found: %s", channel_name)
            raise NotFoundError("Channel not found")
        return user

    def list_by_enabled(self, enabled, page, size):
        q = User.query.filter(User.enable == enabled, User.role == UserRole.STREAMER)
        return paginate_query(q.order_by(User.created_at.desc(), User.id.desc()), page, size)

    def search(self, text, page, size, enabled=None):
        text = (text or "").strip()
        if not text:
            raise InvalidArgumentError("Search text is required")
        term = f"%{text}%"
        q = User.query.filter(
            or_(
                User.first_name.ilike(term),
                User.username.ilike(term),
                User.channel_name.ilike(term),
            )
        )
        if enabled is not None:
            q = q.filter(User.enable == enabled)
        return paginate_query(q.order_by(User.created_at.desc(), User.id.desc()), page, size)

    def set_enabled(self, user_id, enabled):
        user = self.get_by_id(user_id)
        user.enable = enabled
        db.session.commit()
        self.log.info("Streamer %s %s", user_id, "enabled" if enabled else "disabled")
        return user

    def set_online(self, user_id, online):
        user = self.get_by_id(user_id)
        user.online = online
        user.last_online_at = datetime.utcnow()
        db.session.commit()
        return user

    def update_profile(self, user_id, fields, profile_img=None, banner_img=None):
        self.log.info("Updating profile of %s", user_id)
        user = self.get_by_id(user_id)

        if fields.get("channel_name"):
            self._set_channel_name(user, fields["channel_name"])
        for name in PROFILE_FIELDS:
            if name in fields:
                setattr(user, name, fields[name])

        self._store_images(user, profile_img, banner_img)
        self._commit_channel(user_id)
        self.log.info("Profile of %s updated", user_id)
        return user

    def register_fully(self, user_id, fields, profile_img=None, banner_img=None):
        user = self.get_by_id(user_id)
        if user.role != UserRole.UNREGISTERED:
            raise ConflictError("User is already registered", code="ALREADY_REGISTERED")
        if not fields.get("channel_name"):
            raise InvalidArgumentError("channel_name is required", details={"field": "channel_name"})

        self._set_channel_name(user, fields["channel_name"])
        for name in PROFILE_FIELDS:
            if name in fields:
                setattr(user, name, fields[name])
        self._store_images(user, profile_img, banner_img)

        user.role = UserRole.STREAMER
        user.full_registered_at = datetime.utcnow()
        self._commit_channel(user_id)
        self.log.info("User %s registered as streamer with channel %s", user_id, user.channel_name)
        return user

    def registration_statistics(self, days):
        return self._count_by_day(User.created_at, days)

    def last_online_statistics(self, days):
        return self._count_by_day(User.last_online_at, days)

    def _count_by_day(self, column, days):
        start = window_start(days)
        day = func.date(column)
        rows = (
            db.session.query(day, func.count(User.id))
            .filter(column >= datetime.combine(start, time.min))
            .group_by(day)
            .all()
        )
        return fill_days(
            [(d, {"count": count}) for d, count in rows],
            start,
            datetime.utcnow().date(),
            {"count": 0},
        )

    def _set_channel_name(self, user, channel_name):
        channel_name = channel_name.strip()
        taken = User.query.filter(
            func.lower(User.channel_name) == channel_name.lower(),
            User.id != user.id,
        ).first()
        if taken:
            raise ConflictError("Channel name is already taken", code="CHANNEL_TAKEN")
        user.channel_name = channel_name

    def _store_images(self, user, profile_img, banner_img):
        folder = f"profiles/{user.id}"
        profile_url = self.files.upload_file(profile_img, folder)
        if profile_url:
            user.profile_img_url = profile_url
        banner_url = self.files.upload_file(banner_img, folder)
        if banner_url:
            user.banner_img_url = banner_url

    def _commit_channel(self, user_id):
        # the unique index catches a name taken after the check above
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            self.log.warning("Channel name of %s collided on commit", user_id)
            raise ConflictError("Channel name is already taken", code="CHANNEL_TAKEN")
