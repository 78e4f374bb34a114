import pytest

from tests.fixtures.factories import auth_headers


@pytest.fixture
def user(make_user):
    return make_user("user@example.com", name="User")


def test_read_profile(client, user):
    resp = client.get("/profile", headers=auth_headers(user))

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["email"] == "user@example.com"
    assert body["data"]["name"] == "User"
    assert "hashed_password" not in body["data"]


def test_update_profile(client, db, user):
    resp = client.patch(
        "/profile",
        json={"name": "Renamed", "bio": "Writes things", "profession": "Editor"},
        headers=auth_headers(user),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Profile updated successfully"
    assert body["data"]["name"] == "Renamed"
    assert body["data"]["profession"] == "Editor"

    db.refresh(user)
    assert user.bio == "Writes things"


def test_update_profile_validation_error(client, user):
    resp = client.patch("/profile", json={"bio": "x" * 501}, headers=auth_headers(user))

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Validation error"
    assert body["details"]


class TestAvatar:
    def test_upload_avatar(self, client, db, media, user):
        resp = client.post(
            "/profile/avatar",
            files={"avatar": ("me.png", b"\x89PNG...", "image/png")},
            headers=auth_headers(user),
        )

        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert resp.json()["timestamp"]
        data = resp.json()["data"]
        assert data["avatar"].startswith("https://media.test/avatars/")
        db.refresh(user)
        assert user.avatar_public_id == data["avatarPublicId"]
        assert media.deleted == []

    def test_replacing_avatar_deletes_previous(self, client, db, media, user):
        user.avatar = "https://media.test/old.png"
        user.avatar_public_id = "avatars/old"
        db.commit()

        resp = client.post(
            "/profile/avatar",
            files={"avatar": ("me.png", b"\x89PNG...", "image/png")},
            headers=auth_headers(user),
        )

        assert resp.status_code == 200
        assert media.deleted == ["avatars/old"]

    def test_old_avatar_delete_failure_is_tolerated(self, client, media, user, db):
        user.avatar_public_id = "avatars/old"
        db.commit()
        media.fail_delete = True

        resp = client.post(
            "/profile/avatar",
            files={"avatar": ("me.png", b"\x89PNG...", "image/png")},
            headers=auth_headers(user),
        )

        assert resp.status_code == 200

    def test_missing_file(self, client, user):
        resp = client.post("/profile/avatar", headers=auth_headers(user))

        assert resp.status_code == 400
        assert resp.json()["error"] == "No file provided"

    def test_non_image_is_rejected(self, client, media, user):
        resp = client.post(
            "/profile/avatar",
            files={"avatar": ("notes.txt", b"hello", "text/plain")},
            headers=auth_headers(user),
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "File must be an image"
        assert media.uploads == []

    def test_oversized_image_is_rejected(self, client, media, user, monkeypatch):
        from docvault.core.config import settings

        monkeypatch.setattr(settings, "AVATAR_MAX_BYTES", 4)

        resp = client.post(
            "/profile/avatar",
            files={"avatar": ("me.png", b"\x89PNG...", "image/png")},
            headers=auth_headers(user),
        )

        assert resp.status_code == 400
        assert media.uploads == []

    def test_upload_failure_is_internal(self, client, media, user):
        media.fail_upload = True

        resp = client.post(
            "/profile/avatar",
            files={"avatar": ("me.png", b"\x89PNG...", "image/png")},
            headers=auth_headers(user),
        )

        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Failed to upload avatar"
        assert "boom" in body["details"]
