"""
End-to-end tests for the Emotion Journal API endpoints.

These tests drive the HTTP API through FastAPI's TestClient against an
application built on a fresh in-memory store.
"""

import logging

from bson import ObjectId
from fastapi.testclient import TestClient

from emotion_journal.config import Settings
from emotion_journal.exceptions import StorageError
from emotion_journal.server import BANNER, create_app
from emotion_journal.store import MemoryJournalStore
from emotion_journal.tokens import decode_token

SETTINGS = Settings(_env_file=None, storage_backend="memory", jwt_secret="test-secret")


# MARK: - Workflow


class TestAPISync:
    """Integration tests covering the complete application flow."""

    def setup_method(self):
        """Set up a fresh app with a new journal store for each test."""
        self.store = MemoryJournalStore()
        self.app = create_app(self.store, SETTINGS)

    def test_complete_workflow(self):
        """Register -> record emotion -> list it back."""
        with TestClient(self.app) as client:
            register = client.post(
                "/api/users/register", json={"name": "A", "email": "a@x.com"}
            )
            assert register.status_code == 201
            user = register.json()
            assert user["name"] == "A"
            assert user["email"] == "a@x.com"
            assert {"id", "createdAt", "updatedAt"} <= user.keys()

            created = client.post(
                "/api/emotions",
                json={"email": "a@x.com", "text": "ok", "detectedEmotion": "happy"},
            )
            assert created.status_code == 201
            emotion = created.json()
            assert emotion["userId"] == user["id"]
            assert emotion["email"] == "a@x.com"
            assert emotion["text"] == "ok"
            assert emotion["detectedEmotion"] == "happy"

            listed = client.get("/api/emotions", params={"email": "a@x.com"})
            assert listed.status_code == 200
            assert listed.json() == [emotion]

    def test_root_banner(self):
        with TestClient(self.app) as client:
            response = client.get("/")
            assert response.status_code == 200
            assert response.text == BANNER
            assert response.headers["content-type"].startswith("text/plain")

    def test_cors_is_open(self):
        with TestClient(self.app) as client:
            response = client.options(
                "/api/emotions",
                headers={
                    "Origin": "http://somewhere.example",
                    "Access-Control-Request-Method": "DELETE",
                },
            )
            assert response.status_code == 200
            assert response.headers["access-control-allow-origin"] == "*"
            assert "DELETE" in response.headers["access-control-allow-methods"]


# MARK: - Users


class TestUsers:
    def setup_method(self):
        self.store = MemoryJournalStore()
        self.app = create_app(self.store, SETTINGS)

    def test_get_user_by_email(self):
        with TestClient(self.app) as client:
            registered = client.post(
                "/api/users/register", json={"name": "Ada", "email": "ada@example.com"}
            ).json()

            response = client.get("/api/users/email/ada@example.com")
            assert response.status_code == 200
            assert response.json() == registered

    def test_get_unknown_user(self):
        with TestClient(self.app) as client:
            response = client.get("/api/users/email/nobody@example.com")
            assert response.status_code == 404
            assert response.json() == {"error": "User not found"}

    def test_duplicate_registration(self):
        with TestClient(self.app) as client:
            payload = {"name": "Ada", "email": "ada@example.com"}
            assert client.post("/api/users/register", json=payload).status_code == 201

            second = client.post(
                "/api/users/register", json={"name": "Other", "email": "ada@example.com"}
            )
            assert second.status_code == 400
            assert second.json() == {"error": "Email already registered"}

            # The original registration is untouched
            kept = client.get("/api/users/email/ada@example.com").json()
            assert kept["name"] == "Ada"

    def test_register_missing_fields(self):
        with TestClient(self.app) as client:
            response = client.post("/api/users/register", json={})
            assert response.status_code == 400
            assert response.json() == {"error": "Name, email required"}

            response = client.post("/api/users/register", json={"name": "Ada"})
            assert response.json() == {"error": "Email required"}

    def test_register_empty_and_null_fields_count_as_missing(self):
        with TestClient(self.app) as client:
            response = client.post(
                "/api/users/register", json={"name": "", "email": None}
            )
            assert response.status_code == 400
            assert response.json() == {"error": "Name, email required"}

    def test_register_without_body(self):
        with TestClient(self.app) as client:
            response = client.post("/api/users/register")
            assert response.status_code == 400
            assert response.json() == {"error": "Request body required"}

    def test_register_wrong_type(self):
        with TestClient(self.app) as client:
            response = client.post(
                "/api/users/register", json={"name": "Ada", "email": 42}
            )
            assert response.status_code == 400
            assert response.json() == {"error": "Invalid value for: email"}

    def test_register_malformed_json(self):
        with TestClient(self.app) as client:
            response = client.post(
                "/api/users/register",
                content=b'{"name": ',
                headers={"Content-Type": "application/json"},
            )
            assert response.status_code == 400
            assert response.json() == {"error": "Malformed JSON body"}


# MARK: - Emotions


class TestEmotions:
    def setup_method(self):
        self.store = MemoryJournalStore()
        self.app = create_app(self.store, SETTINGS)

    def _register(self, client, name, email):
        response = client.post("/api/users/register", json={"name": name, "email": email})
        assert response.status_code == 201
        return response.json()

    def _record(self, client, email, text, label="happy"):
        response = client.post(
            "/api/emotions",
            json={"email": email, "text": text, "detectedEmotion": label},
        )
        assert response.status_code == 201
        return response.json()

    def test_list_requires_email(self):
        with TestClient(self.app) as client:
            response = client.get("/api/emotions")
            assert response.status_code == 400
            assert response.json() == {"error": "Email required"}

            response = client.get("/api/emotions", params={"email": ""})
            assert response.status_code == 400
            assert response.json() == {"error": "Email required"}

    def test_list_unknown_user(self):
        with TestClient(self.app) as client:
            response = client.get("/api/emotions", params={"email": "nobody@x.com"})
            assert response.status_code == 404
            assert response.json() == {"error": "User not found"}

    def test_list_empty_is_not_an_error(self):
        with TestClient(self.app) as client:
            self._register(client, "A", "a@x.com")
            response = client.get("/api/emotions", params={"email": "a@x.com"})
            assert response.status_code == 200
            assert response.json() == []

    def test_list_newest_first(self):
        with TestClient(self.app) as client:
            self._register(client, "A", "a@x.com")
            ids = [self._record(client, "a@x.com", text)["id"] for text in ("1", "2", "3")]

            listed = client.get("/api/emotions", params={"email": "a@x.com"}).json()
            assert [e["id"] for e in listed] == list(reversed(ids))

    def test_create_missing_fields(self):
        with TestClient(self.app) as client:
            response = client.post("/api/emotions", json={"email": "a@x.com"})
            assert response.status_code == 400
            assert response.json() == {"error": "Text, detectedEmotion required"}

    def test_create_for_unknown_user_persists_nothing(self):
        with TestClient(self.app) as client:
            response = client.post(
                "/api/emotions",
                json={"email": "ghost@x.com", "text": "boo", "detectedEmotion": "fear"},
            )
            assert response.status_code == 404
            assert response.json() == {"error": "User not found"}

            # Registering the email afterwards shows an empty journal
            self._register(client, "Ghost", "ghost@x.com")
            listed = client.get("/api/emotions", params={"email": "ghost@x.com"})
            assert listed.json() == []

    def test_delete_one(self):
        with TestClient(self.app) as client:
            self._register(client, "A", "a@x.com")
            kept = self._record(client, "a@x.com", "keep")
            doomed = self._record(client, "a@x.com", "drop")

            response = client.delete(f"/api/emotions/{doomed['id']}")
            assert response.status_code == 200
            assert response.json() == {"message": "Emotion deleted"}

            listed = client.get("/api/emotions", params={"email": "a@x.com"}).json()
            assert listed == [kept]

    def test_delete_one_absent_still_succeeds(self):
        with TestClient(self.app) as client:
            for emotion_id in (str(ObjectId()), "not-an-id"):
                response = client.delete(f"/api/emotions/{emotion_id}")
                assert response.status_code == 200
                assert response.json() == {"message": "Emotion deleted"}

    def test_delete_all_for_user_leaves_others(self):
        with TestClient(self.app) as client:
            self._register(client, "A", "a@x.com")
            self._register(client, "B", "b@x.com")
            self._record(client, "a@x.com", "one")
            self._record(client, "a@x.com", "two")
            other = self._record(client, "b@x.com", "three")

            response = client.delete("/api/emotions", params={"email": "a@x.com"})
            assert response.status_code == 200
            assert response.json() == {"message": "All emotions deleted", "deletedCount": 2}

            assert client.get("/api/emotions", params={"email": "a@x.com"}).json() == []
            assert client.get("/api/emotions", params={"email": "b@x.com"}).json() == [
                other
            ]

    def test_delete_all_with_nothing_to_delete(self):
        with TestClient(self.app) as client:
            self._register(client, "A", "a@x.com")
            response = client.delete("/api/emotions", params={"email": "a@x.com"})
            assert response.status_code == 200
            assert response.json()["deletedCount"] == 0

    def test_delete_all_errors(self):
        with TestClient(self.app) as client:
            missing = client.delete("/api/emotions")
            assert missing.status_code == 400
            assert missing.json() == {"error": "Email required"}

            unknown = client.delete("/api/emotions", params={"email": "nobody@x.com"})
            assert unknown.status_code == 404


# MARK: - Tokens


class TestTokens:
    def setup_method(self):
        self.app = create_app(MemoryJournalStore(), SETTINGS)

    def test_issue_token(self):
        with TestClient(self.app) as client:
            response = client.post("/jwt", json={"email": "anyone@x.com"})
            assert response.status_code == 200

            claims = decode_token(response.json()["token"], SETTINGS)
            assert claims["email"] == "anyone@x.com"
            assert claims["exp"] - claims["iat"] == 3600

    def test_issue_token_requires_email(self):
        with TestClient(self.app) as client:
            response = client.post("/jwt", json={})
            assert response.status_code == 400
            assert response.json() == {"error": "Email required"}


# MARK: - Failures


class BrokenStore(MemoryJournalStore):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    async def find_user_by_email(self, email):
        raise self.error


class BrokenDeleteStore(MemoryJournalStore):
    async def delete_emotion(self, emotion_id):
        raise RuntimeError("connection reset by peer")


class TestFailures:
    """Unexpected failures surface as 500 without leaking internals."""

    def test_storage_error(self):
        app = create_app(BrokenStore(StorageError("find user")), SETTINGS)
        with TestClient(app) as client:
            response = client.get("/api/users/email/a@x.com")
            assert response.status_code == 500
            assert response.json() == {"error": "Storage operation failed"}

    def test_unexpected_error_is_not_exposed(self):
        app = create_app(BrokenStore(RuntimeError("secret driver detail")), SETTINGS)
        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/emotions", params={"email": "a@x.com"})
            assert response.status_code == 500
            assert response.json() == {"error": "Internal server error"}
            assert "secret" not in response.text

    def test_unexpected_error_keeps_cors_and_access_log(self, caplog):
        app = create_app(BrokenDeleteStore(), SETTINGS)
        caplog.set_level(logging.INFO, logger="emotion_journal.access")

        with TestClient(app) as client:
            response = client.delete(
                "/api/emotions/abc", headers={"Origin": "http://somewhere.example"}
            )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
        assert response.headers["access-control-allow-origin"] == "*"

        access = [r for r in caplog.records if r.name == "emotion_journal.access"]
        assert len(access) == 1
        assert access[0].levelno == logging.ERROR
        assert "DELETE /api/emotions/abc 500" in access[0].getMessage()
