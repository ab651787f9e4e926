import pytest

from clicks_backend.core.exceptions import InvalidTransition, ValidationError
from clicks_backend.modules.profiles.editor import EditorState, ProfileEditor
from clicks_backend.modules.profiles.schemas import ProfileResponse
from clicks_backend.modules.profiles.service import avatar_path
from tests.helpers import U1, auth


@pytest.fixture
def editor():
    return ProfileEditor(ProfileResponse(id=U1, full_name="Alice", username="alice"))


def test_editor_starts_viewing_and_prefills_draft(editor):
    assert editor.state == EditorState.VIEWING

    draft = editor.begin_edit()

    assert editor.state == EditorState.EDITING
    assert draft.full_name == "Alice"
    assert draft.username == "alice"
    assert draft.website == ""


def test_editor_cancel_returns_to_viewing(editor):
    editor.begin_edit()
    editor.cancel()

    assert editor.state == EditorState.VIEWING
    assert editor.draft is None


def test_editor_successful_save(editor):
    seen_states = []

    def save(form):
        seen_states.append(editor.state)
        return ProfileResponse(id=U1, full_name=form.full_name)

    editor.begin_edit()
    updated = editor.submit({"full_name": "Alice Liddell"}, save)

    assert seen_states == [EditorState.SAVING]
    assert editor.state == EditorState.VIEWING
    assert updated.full_name == "Alice Liddell"
    assert editor.profile is updated


def test_editor_failed_save_returns_to_editing(editor):
    def save(form):
        raise RuntimeError("network down")

    editor.begin_edit()
    with pytest.raises(RuntimeError):
        editor.submit({"full_name": "Alice"}, save)

    assert editor.state == EditorState.EDITING
    assert editor.profile.full_name == "Alice"


def test_editor_invalid_form_does_not_save(editor):
    calls = []
    editor.begin_edit()

    with pytest.raises(ValidationError) as exc:
        editor.submit({"username": "a b"}, calls.append)

    assert calls == []
    assert editor.state == EditorState.EDITING
    assert exc.value.errors[0]["field"] == "username"


@pytest.mark.parametrize("action", ["cancel", "submit"])
def test_editor_rejects_transitions_from_viewing(editor, action):
    with pytest.raises(InvalidTransition):
        if action == "cancel":
            editor.cancel()
        else:
            editor.submit({}, lambda form: None)


def test_editor_cannot_begin_twice(editor):
    editor.begin_edit()
    with pytest.raises(InvalidTransition):
        editor.begin_edit()


def test_avatar_path_keeps_extension_under_user_folder():
    path = avatar_path(U1, "Me At The Beach.JPG", "image/jpeg")

    folder, name = path.split("/")
    assert folder == U1
    assert name.endswith(".jpg")
    assert len(name) == len("0" * 32 + ".jpg")
    assert avatar_path(U1, "a.png", "image/png") != avatar_path(U1, "a.png", "image/png")


def test_avatar_path_guesses_extension_from_content_type():
    assert avatar_path(U1, "blob", "image/png").endswith(".png")


def test_get_my_profile(client):
    response = client.get("/api/v1/profiles/me", headers=auth())

    assert response.status_code == 200
    assert response.json()["username"] == "alice"


def test_get_missing_profile(client, db):
    db.tables["profiles"] = []

    response = client.get("/api/v1/profiles/me", headers=auth())

    assert response.status_code == 404


def test_update_my_profile(client, db):
    response = client.put(
        "/api/v1/profiles/me",
        json={
            "full_name": "Alice Liddell",
            "username": "alice_l",
            "website": "https://alice.example.com",
            "bio": "",
            "location": "Oxford",
            "social_links": {"twitter": "@alice", "github": "", "linkedin": ""},
        },
        headers=auth(),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["notification"]["title"] == "Profile updated"
    assert body["profile"]["username"] == "alice_l"
    (update,) = db.writes_to("profiles", "update")
    assert update[2]["bio"] is None
    assert update[2]["social_links"] == {"twitter": "@alice"}
    row = next(r for r in db.rows("profiles") if r["id"] == U1)
    assert row["location"] == "Oxford"


@pytest.mark.parametrize("payload, field", [
    ({"username": "ab"}, "username"),
    ({"website": "ftp://example.com"}, "website"),
    ({"bio": "x" * 501}, "bio"),
    ({"full_name": "x" * 101}, "full_name"),
    ({"social_links": {"github": "g" * 101}}, "social_links.github"),
])
def test_update_my_profile_rejects_invalid_fields(client, db, payload, field):
    response = client.put("/api/v1/profiles/me", json=payload, headers=auth())

    assert response.status_code == 422
    body = response.json()
    assert body["errors"][0]["field"] == field
    assert body["notification"]["variant"] == "destructive"
    assert db.writes == []


def test_update_my_profile_backend_failure(client, db):
    db.fail_on("profiles", "update", Exception("connection reset"))

    response = client.put("/api/v1/profiles/me", json={"full_name": "Alice"}, headers=auth())

    assert response.status_code == 502
    assert response.json()["notification"]["description"] == "There was an error updating your profile"


def test_upload_avatar(client, db):
    db.tables["profiles"][0]["avatar_url"] = "https://old.example.com/a.png"

    response = client.post(
        "/api/v1/profiles/me/avatar",
        files={"file": ("face.png", b"\x89PNG data", "image/png")},
        headers=auth(),
    )

    assert response.status_code == 200
    ((bucket, path),) = db.storage.objects.keys()
    assert bucket == "avatars"
    assert path.startswith(f"{U1}/") and path.endswith(".png")
    avatar_url = response.json()["profile"]["avatar_url"]
    assert avatar_url.endswith(path)
    assert db.rows("profiles")[0]["avatar_url"] == avatar_url


def test_upload_avatar_storage_failure(client, db):
    db.storage.upload_error = Exception("bucket not found")

    response = client.post(
        "/api/v1/profiles/me/avatar",
        files={"file": ("face.png", b"\x89PNG data", "image/png")},
        headers=auth(),
    )

    assert response.status_code == 502
    assert response.json()["notification"]["title"] == "Upload failed"
    assert db.writes_to("profiles", "update") == []


def test_upload_avatar_rejects_non_images(client, db):
    response = client.post(
        "/api/v1/profiles/me/avatar",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth(),
    )

    assert response.status_code == 422
    assert db.storage.objects == {}
