"""HTTP tests for the /api/users routes."""

import pytest
from fastapi.testclient import TestClient

from src.roster.api.http.routers.users import parse_active_filter
from src.roster.core.services import UserService
from src.roster.core.storage import InMemoryRecordStore
from src.roster.runtime.config.config_data import AppConfig, ConfigData
from tests.fixtures.core import ANA_ID, LUIS_ID, MARIA_ID

USERS = "/api/users"


def names(body: dict) -> list[str]:
    return [user["name"] for user in body["data"]]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("false", False), (None, None), ("", None), ("True", None), ("1", None)],
)
def test_parse_active_filter(raw, expected):
    assert parse_active_filter(raw) is expected


class TestListUsers:
    def test_default_listing(self, client: TestClient):
        response = client.get(USERS)

        assert response.status_code == 200
        body = response.json()
        assert names(body) == ["Ana", "Luis", "Maria", "Pedro"]
        assert body["metadata"] == {
            "page": 1,
            "limit": 50,
            "totalItems": 4,
            "totalPages": 1,
            "hasNextPage": False,
            "hasPrevPage": False,
        }

    def test_users_use_wrapped_id_and_camel_case(self, client: TestClient):
        user = client.get(USERS).json()["data"][0]

        assert user["id"] == {"$oid": ANA_ID}
        assert user["lastName"] == "Garcia Lopez"
        assert user["isActive"] is True

    def test_pagination_params(self, client: TestClient):
        body = client.get(USERS, params={"page": 2, "limit": 3}).json()

        assert names(body) == ["Pedro"]
        assert body["metadata"]["totalPages"] == 2
        assert body["metadata"]["hasPrevPage"] is True
        assert body["metadata"]["hasNextPage"] is False

    def test_search_param(self, client: TestClient):
        assert names(client.get(USERS, params={"search": "GARCIA"}).json()) == ["Ana"]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("true", ["Ana", "Maria"]),
            ("false", ["Luis", "Pedro"]),
            ("yes", ["Ana", "Luis", "Maria", "Pedro"]),
        ],
    )
    def test_active_filter(self, client: TestClient, value, expected):
        assert names(client.get(USERS, params={"isActive": value}).json()) == expected

    def test_zero_limit_is_rejected(self, client: TestClient):
        assert client.get(USERS, params={"limit": 0}).status_code == 422

    def test_non_numeric_page_is_rejected(self, client: TestClient):
        assert client.get(USERS, params={"page": "two"}).status_code == 422


class TestGetUser:
    def test_found(self, client: TestClient):
        response = client.get(f"{USERS}/{MARIA_ID}")

        assert response.status_code == 200
        assert response.json()["name"] == "Maria"

    def test_body_matches_stored_entry(self, client: TestClient, sample_documents):
        body = client.get(f"{USERS}/{LUIS_ID}").json()

        assert body == sample_documents[1]
        assert "username" not in body
        assert "photo" not in body

    def test_legacy_entry_is_returned_as_stored(self):
        from src.roster.api.http.app import app
        from src.roster.api.http.app_data import ApplicationDependencies

        document = {"id": {"$oid": ANA_ID}, "name": "Ana", "phone": 600111222}
        store = InMemoryRecordStore([document])
        store.load()
        previous = getattr(app.state, "app_dependencies", None)
        app.state.app_dependencies = ApplicationDependencies(
            record_store=store, user_service=UserService(store)
        )
        try:
            response = TestClient(app).get(f"{USERS}/{ANA_ID}")
        finally:
            app.state.app_dependencies = previous

        assert response.json() == document

    def test_not_found(self, client: TestClient):
        response = client.get(f"{USERS}/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}


class TestCreateUser:
    def test_create_returns_201_and_appends(
        self, client: TestClient, memory_store: InMemoryRecordStore
    ):
        response = client.post(
            USERS,
            json={"name": "Lucia", "lastName": "Ruiz Vega", "email": "lucia@academy.test"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["username"] == "LRuiz"
        assert body["isActive"] is True
        assert memory_store.documents[-1]["id"] == body["id"]
        assert memory_store.documents[-1] == body

    def test_client_supplied_id_is_ignored(self, client: TestClient):
        response = client.post(
            USERS,
            json={
                "id": {"$oid": ANA_ID},
                "name": "Lucia",
                "lastName": "Ruiz",
                "email": "lucia@academy.test",
            },
        )

        assert response.status_code == 201
        assert response.json()["id"]["$oid"] != ANA_ID

    def test_missing_required_field(self, client: TestClient):
        response = client.post(USERS, json={"name": "Lucia", "email": "l@x.com"})

        assert response.status_code == 422

    def test_invalid_email(self, client: TestClient):
        response = client.post(
            USERS, json={"name": "Lucia", "lastName": "Ruiz", "email": "lucia"}
        )

        assert response.status_code == 422


class TestUpdateUser:
    def test_partial_update(self, client: TestClient):
        response = client.put(f"{USERS}/{LUIS_ID}", json={"phone": "600000000"})

        assert response.status_code == 200
        body = response.json()
        assert body["phone"] == "600000000"
        assert body["name"] == "Luis"
        assert body["id"] == {"$oid": LUIS_ID}

    def test_body_id_does_not_change_identity(self, client: TestClient):
        response = client.put(
            f"{USERS}/{LUIS_ID}", json={"id": {"$oid": "other"}, "name": "Luisa"}
        )

        assert response.json()["id"] == {"$oid": LUIS_ID}
        assert client.get(f"{USERS}/other").status_code == 404

    def test_clearing_name_is_rejected(self, client: TestClient):
        response = client.put(f"{USERS}/{LUIS_ID}", json={"name": None})

        assert response.status_code == 422

    def test_update_missing_user(self, client: TestClient):
        response = client.put(f"{USERS}/missing", json={"name": "X"})

        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}


class TestActivation:
    def test_deactivate(self, client: TestClient):
        response = client.patch(f"{USERS}/{ANA_ID}/deactivate")

        assert response.status_code == 200
        assert response.json()["isActive"] is False
        assert names(client.get(USERS, params={"isActive": "true"}).json()) == ["Maria"]

    def test_activate(self, client: TestClient):
        response = client.patch(f"{USERS}/{LUIS_ID}/activate")

        assert response.status_code == 200
        assert response.json()["isActive"] is True

    @pytest.mark.parametrize("action", ["activate", "deactivate"])
    def test_missing_user(self, client: TestClient, action):
        response = client.patch(f"{USERS}/missing/{action}")

        assert response.status_code == 404


class TestMiddleware:
    def test_request_id_is_echoed(self, client: TestClient):
        response = client.get(USERS, headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client: TestClient):
        assert client.get(USERS).headers["X-Request-ID"]

    def test_security_headers(self, client: TestClient):
        response = client.get(USERS)

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_cors_preflight_allows_frontend_origin(self, client: TestClient):
        response = client.options(
            USERS,
            headers={
                "Origin": "http://localhost:4200",
                "Access-Control-Request-Method": "PUT",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:4200"

    def test_oversized_body_is_rejected(self, client: TestClient, monkeypatch):
        import src.roster.api.http.app as application

        small = ConfigData(app=AppConfig(environment="test", max_body_mb=1))
        monkeypatch.setattr(application, "get_config", lambda: small)

        response = client.post(
            USERS,
            json={
                "name": "Lucia",
                "lastName": "Ruiz",
                "email": "lucia@academy.test",
                "photo": "data:image/png;base64," + "A" * (1024 * 1024),
            },
        )

        assert response.status_code == 413

    def test_photo_under_limit_is_accepted(self, client: TestClient):
        response = client.post(
            USERS,
            json={
                "name": "Lucia",
                "lastName": "Ruiz",
                "email": "lucia@academy.test",
                "photo": "data:image/png;base64," + "A" * (2 * 1024 * 1024),
            },
        )

        assert response.status_code == 201
        assert response.json()["photo"].startswith("data:image/png")
