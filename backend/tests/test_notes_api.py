"""Tests for the note routes."""

from uuid import uuid4

from conftest import OTHER_USER_ID, USER_ID


class TestAuthRequired:
    def test_get_notes_without_session(self, client):
        resp = client.get("/notes")
        assert resp.status_code == 401

    def test_delete_without_session(self, client):
        resp = client.request("DELETE", "/notes", json={"noteIds": [str(uuid4())]})
        assert resp.status_code == 401


class TestReadActive:
    def test_first_read_creates_empty_note(self, logged_in, repo):
        resp = logged_in.get("/notes")

        assert resp.status_code == 200
        body = resp.json()
        assert body["content"] == ""
        assert body["title"] == "Untitled Note"
        assert body["isActive"] is True
        assert [str(i) for i in repo.active_ids(USER_ID)] == [body["id"]]

    def test_read_specific_note_activates_it(self, logged_in, repo):
        repo.add(USER_ID, content="current", is_active=True)
        older = repo.add(USER_ID, content="older")

        resp = logged_in.get("/notes", params={"id": str(older.id)})

        assert resp.json()["id"] == str(older.id)
        assert repo.active_ids(USER_ID) == [older.id]

    def test_read_unowned_note_falls_back(self, logged_in, repo, other_user_note):
        mine = repo.add(USER_ID, content="mine", is_active=True)

        resp = logged_in.get("/notes", params={"id": str(other_user_note.id)})

        assert resp.status_code == 200
        assert resp.json()["id"] == str(mine.id)
        assert "not yours" not in resp.text


class TestSave:
    def test_save_creates_then_updates(self, logged_in, repo):
        first = logged_in.post("/notes", json={"content": "hello"})
        assert first.status_code == 200
        note = first.json()["note"]
        assert note["content"] == "hello"
        assert note["isActive"] is True

        second = logged_in.post("/notes", json={"content": "hello world"})
        assert second.json()["note"]["id"] == note["id"]
        assert second.json()["note"]["content"] == "hello world"
        assert len(repo.rows) == 1

    def test_empty_save_with_no_note(self, logged_in, repo):
        resp = logged_in.post("/notes", json={"content": ""})

        assert resp.status_code == 200
        assert resp.json() == {"message": "Nothing to save", "note": None}
        assert repo.rows == {}

    def test_invalid_body_is_400(self, logged_in):
        resp = logged_in.post("/notes", json={"content": 42})
        assert resp.status_code == 400
        assert "content" in resp.json()["detail"]


class TestNewNote:
    def test_new_note_replaces_active(self, logged_in, repo):
        old = repo.add(USER_ID, content="old", is_active=True)

        resp = logged_in.post("/notes/new", json={"content": ""})

        assert resp.status_code == 201
        new_id = resp.json()["note"]["id"]
        assert new_id != str(old.id)
        assert [str(i) for i in repo.active_ids(USER_ID)] == [new_id]

        # Subsequent saves go to the new note
        logged_in.post("/notes", json={"content": "fresh"})
        assert repo.rows[old.id].content == "old"

    def test_new_note_without_body(self, logged_in, repo):
        resp = logged_in.post("/notes/new")

        assert resp.status_code == 201
        assert resp.json()["note"]["content"] == ""


class TestActivate:
    def test_activate_owned(self, logged_in, repo):
        repo.add(USER_ID, content="a", is_active=True)
        target = repo.add(USER_ID, content="b")

        resp = logged_in.post(f"/notes/{target.id}/activate")

        assert resp.status_code == 200
        assert logged_in.get("/notes").json()["id"] == str(target.id)

    def test_activate_unowned_is_404(self, logged_in, repo, other_user_note):
        mine = repo.add(USER_ID, content="a", is_active=True)

        resp = logged_in.post(f"/notes/{other_user_note.id}/activate")

        assert resp.status_code == 404
        assert repo.active_ids(USER_ID) == [mine.id]
        assert repo.active_ids(OTHER_USER_ID) == [other_user_note.id]


class TestDelete:
    def test_delete_filters_unowned_ids(self, logged_in, repo, other_user_note):
        mine = repo.add(USER_ID, content="mine")

        resp = logged_in.request(
            "DELETE", "/notes", json={"noteIds": [str(mine.id), str(other_user_note.id)]}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["deletedCount"] == 1
        assert body["deletedIds"] == [str(mine.id)]
        assert body["skippedIds"] == [str(other_user_note.id)]
        assert other_user_note.id in repo.rows

    def test_delete_active_note_then_read_creates_new(self, logged_in, repo):
        active_id = logged_in.post("/notes", json={"content": "to be removed"}).json()["note"]["id"]

        resp = logged_in.request("DELETE", "/notes", json={"noteIds": [active_id]})
        assert resp.json()["deletedCount"] == 1
        assert repo.active_ids(USER_ID) == []

        fresh = logged_in.get("/notes").json()
        assert fresh["id"] != active_id
        assert fresh["content"] == ""

    def test_empty_id_list_is_400(self, logged_in):
        resp = logged_in.request("DELETE", "/notes", json={"noteIds": []})
        assert resp.status_code == 400


def test_documents_lists_only_own_notes(logged_in, repo, other_user_note):
    older = repo.add(USER_ID, content="older")
    newer = repo.add(USER_ID, content="newer")

    resp = logged_in.get("/documents")

    assert resp.status_code == 200
    assert [n["id"] for n in resp.json()] == [str(newer.id), str(older.id)]
