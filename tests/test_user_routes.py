import io
import json
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from donatehub.extensions import db
from donatehub.models.user import User
from donatehub.services.user_service import UserService
from donatehub.utils.constants import UserRole

from conftest import auth_headers


def test_user_info(client, streamer):
    res = client.get(f"/api/v1/user/user-info/{streamer.id}")

    assert res.status_code == 200
    assert res.get_json()["user"]["channel_name"] == "BestStreamer"


def test_user_info_unknown(client):
    assert client.get("/api/v1/user/user-info/4040").status_code == 404


def test_find_by_channel_name_ignores_case(client, streamer):
    res = client.get("/api/v1/user/beststreamer")

    assert res.status_code == 200
    user = res.get_json()["user"]
    assert user["id"] == streamer.id
    assert "balance" not in user


def test_find_by_channel_name_unknown(client):
    assert client.get("/api/v1/user/nobody").status_code == 404


def test_verified_and_not_verified(client, admin, make_user):
    make_user(600, enable=True)
    make_user(601, enable=False)
    make_user(602, enable=False, role=UserRole.UNREGISTERED)

    res = client.get("/api/v1/user/verified?page=0&size=10")
    assert [u["id"] for u in res.get_json()["users"]] == [600]

    res = client.get("/api/v1/user/not-verified?page=0&size=10", headers=auth_headers(admin))
    assert [u["id"] for u in res.get_json()["users"]] == [601]


def test_search_is_case_insensitive(client, make_user):
    make_user(610, first_name="Alice", username="alice_gg", channel_name="AliceLive")
    make_user(611, first_name="Bob", username="bobby", channel_name="BobTV")

    res = client.get("/api/v1/user/search?text=ALICE&page=0&size=10")
    assert [u["id"] for u in res.get_json()["users"]] == [610]

    res = client.get("/api/v1/user/search?text=tv&page=0&size=10")
    assert [u["id"] for u in res.get_json()["users"]] == [611]

    res = client.get("/api/v1/user/search?text=b&enable=false&page=0&size=10")
    assert res.get_json()["users"] == []


def test_search_requires_text(client):
    assert client.get("/api/v1/user/search?page=0&size=10").status_code == 400


def test_enable_and_disable(client, admin, make_user):
    user = make_user(620, enable=False)

    res = client.put(f"/api/v1/user/enable/{user.id}", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.get_json()["user"]["enable"] is True

    res = client.put(f"/api/v1/user/disable/{user.id}", headers=auth_headers(admin))
    assert res.get_json()["user"]["enable"] is False


def test_enable_requires_admin(client, make_user):
    user = make_user(620, enable=False)

    assert client.put(f"/api/v1/user/enable/{user.id}", headers=auth_headers(user)).status_code == 403


def test_enable_unknown_user(client, admin):
    assert client.put("/api/v1/user/enable/9999", headers=auth_headers(admin)).status_code == 404


def test_online_and_offline(client, streamer):
    res = client.put(f"/api/v1/user/online/{streamer.id}", headers=auth_headers(streamer))
    assert res.get_json()["user"]["online"] is True

    res = client.put(f"/api/v1/user/offline/{streamer.id}", headers=auth_headers(streamer))
    assert res.get_json()["user"]["online"] is False
    assert res.get_json()["user"]["last_online_at"] is not None


def test_update_profile_json(client, streamer):
    res = client.put(
        f"/api/v1/user/{streamer.id}",
        json={"description": "Speedruns", "channel_url": "https://twitch.tv/best", "min_donation_amount": 2},
        headers=auth_headers(streamer),
    )

    assert res.status_code == 200
    user = res.get_json()["user"]
    assert user["description"] == "Speedruns"
    assert user["min_donation_amount"] == 2.0


def test_update_profile_with_image(client, app, streamer):
    res = client.put(
        f"/api/v1/user/{streamer.id}",
        data={
            "update": json.dumps({"description": "with avatar"}),
            "profileImg": (io.BytesIO(b"png-bytes"), "avatar.png"),
        },
        content_type="multipart/form-data",
        headers=auth_headers(streamer),
    )

    assert res.status_code == 200
    url = res.get_json()["user"]["profile_img_url"]
    assert url.startswith(f"/uploads/profiles/{streamer.id}/")
    assert url.endswith("_avatar.png")
    assert client.get(url).data == b"png-bytes"


def test_update_profile_uploads_to_storage(client, app, streamer):
    app.config["STORAGE_UPLOAD_URL"] = "https://storage.example/upload"
    reply = MagicMock()
    reply.json.return_value = {"url": "https://cdn.example/banner.jpg"}

    with patch("donatehub.services.file_service.requests.post", return_value=reply) as post:
        res = client.put(
            f"/api/v1/user/{streamer.id}",
            data={"bannerImg": (io.BytesIO(b"jpg"), "banner.jpg")},
            content_type="multipart/form-data",
            headers=auth_headers(streamer),
        )

    assert res.status_code == 200
    assert res.get_json()["user"]["banner_img_url"] == "https://cdn.example/banner.jpg"
    assert post.call_args.args[0] == "https://storage.example/upload"


def test_update_profile_rejects_non_image(client, streamer):
    res = client.put(
        f"/api/v1/user/{streamer.id}",
        data={"profileImg": (io.BytesIO(b"x"), "script.sh")},
        content_type="multipart/form-data",
        headers=auth_headers(streamer),
    )

    assert res.status_code == 400
    assert res.get_json()["error"]["code"] == "INVALID_FILE"


def test_update_channel_name_taken(client, streamer, make_user):
    other = make_user(630)

    res = client.put(
        f"/api/v1/user/{other.id}",
        json={"channel_name": "beststreamer"},
        headers=auth_headers(other),
    )

    assert res.status_code == 409


def test_update_other_account_forbidden(client, streamer, make_user):
    other = make_user(631)

    res = client.put(f"/api/v1/user/{streamer.id}", json={"description": "x"}, headers=auth_headers(other))

    assert res.status_code == 403


def test_register_fully(client, make_user):
    user = make_user(640, role=UserRole.UNREGISTERED, enable=False, channel_name=None)
    user.channel_name = None
    db.session.commit()

    res = client.put(
        f"/api/v1/user/register/{user.id}",
        json={"channel_name": "NewChannel", "description": "hello"},
        headers=auth_headers(user),
    )

    assert res.status_code == 200
    body = res.get_json()["user"]
    assert body["role"] == UserRole.STREAMER
    assert body["channel_name"] == "NewChannel"
    assert "donation:receive" in body["capabilities"]
    assert db.session.get(User, user.id).full_registered_at is not None

    again = client.put(
        f"/api/v1/user/register/{user.id}",
        json={"channel_name": "Other"},
        headers=auth_headers(user),
    )
    assert again.status_code == 409


def test_register_requires_channel_name(client, make_user):
    user = make_user(641, role=UserRole.UNREGISTERED, enable=False)

    res = client.put(f"/api/v1/user/register/{user.id}", json={}, headers=auth_headers(user))

    assert res.status_code == 400


def test_me(client, streamer):
    res = client.get("/api/v1/user/me", headers=auth_headers(streamer))

    assert res.status_code == 200
    me = res.get_json()["user"]
    assert me["id"] == streamer.id
    assert me["balance"] == 0.0


def test_me_requires_token(client):
    res = client.get("/api/v1/user/me")

    assert res.status_code == 401
    assert res.get_json()["error"]["code"] == "UNAUTHORIZED"


def test_registration_statistics(client, admin, make_user):
    make_user(650, created_at=datetime.utcnow())
    make_user(651, created_at=datetime.utcnow() - timedelta(days=1))
    make_user(652, created_at=datetime.utcnow() - timedelta(days=20))

    res = client.get("/api/v1/user/statistic/register?days=2", headers=auth_headers(admin))

    points = res.get_json()["statistics"]
    assert [p["count"] for p in points] == [1, 2]


def test_last_online_statistics(client, admin, make_user):
    now = datetime.utcnow()
    make_user(660, last_online_at=now - timedelta(days=2))
    returning = make_user(661, last_online_at=now - timedelta(days=10))
    make_user(662, last_online_at=now - timedelta(days=30))

    client.put(f"/api/v1/user/online/{returning.id}", headers=auth_headers(returning))
    client.put(f"/api/v1/user/offline/{returning.id}", headers=auth_headers(returning))

    res = client.get("/api/v1/user/statistic/last-online?days=4", headers=auth_headers(admin))

    assert res.status_code == 200
    points = res.get_json()["statistics"]
    assert [p["day"] for p in points][-1] == now.date().isoformat()
    # admin and the returning streamer today, nobody yesterday or three days ago
    assert [p["count"] for p in points] == [0, 1, 0, 2]


def test_channel_name_collision_on_commit(client, streamer, make_user):
    other = make_user(670, role=UserRole.UNREGISTERED, enable=False)

    def skip_check(self, user, channel_name):
        user.channel_name = channel_name

    with patch.object(UserService, "_set_channel_name", skip_check):
        res = client.put(
            f"/api/v1/user/{other.id}",
            json={"channel_name": "BestStreamer"},
            headers=auth_headers(other),
        )
        assert res.status_code == 409
        assert res.get_json()["error"]["code"] == "CHANNEL_TAKEN"

        res = client.put(
            f"/api/v1/user/register/{other.id}",
            json={"channel_name": "BestStreamer"},
            headers=auth_headers(other),
        )
        assert res.status_code == 409
        assert res.get_json()["error"]["code"] == "CHANNEL_TAKEN"

    db.session.expire_all()
    user = db.session.get(User, other.id)
    assert user.channel_name == "channel670"
    assert user.role == UserRole.UNREGISTERED
