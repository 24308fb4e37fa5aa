from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from donatehub.extensions import db
from donatehub.main import create_app
from donatehub.models.user import User
from donatehub.services.container import get_services
from donatehub.utils.constants import UserRole

ADMIN_ID = 1


@pytest.fixture
def app(tmp_path):
    app = create_app("testing")
    app.config["UPLOADS_FOLDER"] = str(tmp_path / "uploads")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services()


@pytest.fixture
def make_user(app):
    def _make_user(uid, role=UserRole.STREAMER, enable=True, balance="0", channel_name=None, **kwargs):
        user = User(
            id=uid,
            first_name=kwargs.pop("first_name", f"User {uid}"),
            username=kwargs.pop("username", f"user{uid}"),
            channel_name=channel_name if channel_name is not None else f"channel{uid}",
            role=role,
            enable=enable,
            balance=Decimal(balance),
            **kwargs,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(ADMIN_ID, role=UserRole.ADMIN, channel_name="admin")


@pytest.fixture
def streamer(make_user):
    return make_user(100, channel_name="BestStreamer")


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


def balance_of(user_id):
    db.session.expire_all()
    return db.session.get(User, user_id).balance
