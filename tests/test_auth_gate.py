# =============================================================================
# tests/test_auth_gate.py - HTTP Basic Auth Tests
# =============================================================================

import base64

import pytest

from modules.auth_gate import AuthGate, DENIAL_BODY


def basic(user, password):
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def auth_client(make_app):
    app = make_app(auth=True, user="admin", **{"pass": "secret"})
    return app.test_client()


class TestAuthDisabled:
    """Auth gate disabled: every request reaches the router."""

    def test_request_without_credentials_passes(self, client, router_calls):
        response = client.get("/")
        assert response.status_code == 200
        assert router_calls == ["index"]

    def test_request_with_any_credentials_passes(self, client, router_calls):
        response = client.get("/", headers=basic("nobody", "wrong"))
        assert response.status_code == 200
        assert router_calls == ["index"]


class TestAuthEnabled:
    """Auth gate enabled with a single shared credential."""

    def test_correct_credentials_reach_router(self, auth_client, router_calls):
        response = auth_client.get("/", headers=basic("admin", "secret"))
        assert response.status_code == 200
        assert response.data == b"router reached"
        assert router_calls == ["index"]

    def test_wrong_password_is_challenged(self, auth_client, router_calls):
        response = auth_client.get("/", headers=basic("admin", "wrong"))
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"].startswith("Basic")
        assert response.get_data(as_text=True) == DENIAL_BODY
        assert router_calls == []

    def test_wrong_user_is_challenged(self, auth_client, router_calls):
        response = auth_client.get("/", headers=basic("root", "secret"))
        assert response.status_code == 401
        assert router_calls == []

    def test_missing_header_is_challenged(self, auth_client, router_calls):
        response = auth_client.get("/")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'Basic realm="example"'
        assert router_calls == []

    def test_static_files_are_served_before_auth(self, auth_client):
        response = auth_client.get("/css/style.css")
        assert response.status_code == 200

    def test_custom_realm(self):
        gate = AuthGate(enabled=True, user="a", password="b", realm="staff")
        assert gate.realm == "staff"

    def test_from_config_reads_credentials(self):
        gate = AuthGate.from_config({"auth": True, "user": "u", "pass": "p"})
        assert gate.enabled is True
        assert (gate.user, gate.password, gate.realm) == ("u", "p", "example")
