# =============================================================================
# tests/test_body_parsing.py - Request Body Parsing Tests
# =============================================================================
# maxPostSize is 64 bytes in the shared test configuration.
# =============================================================================

import io
import json

import pytest

LIMIT = 64


class TestBodyLimits:
    """The same size limit applies to urlencoded, text and JSON bodies."""

    @pytest.mark.parametrize("content_type", [
        "text/plain",
        "application/json",
        "application/x-www-form-urlencoded",
    ])
    def test_body_at_limit_is_accepted(self, client, router_calls, content_type):
        if content_type == "application/json":
            payload = json.dumps({"k": "x" * (LIMIT - 9)})
        elif content_type == "application/x-www-form-urlencoded":
            payload = "k=" + "x" * (LIMIT - 2)
        else:
            payload = "x" * LIMIT
        assert len(payload) == LIMIT

        response = client.post("/echo", data=payload, content_type=content_type)

        assert response.status_code == 200
        assert router_calls == ["echo"]

    @pytest.mark.parametrize("content_type", [
        "text/plain",
        "application/json",
        "application/x-www-form-urlencoded",
    ])
    def test_body_one_byte_over_limit_is_rejected(self, client, router_calls, content_type):
        response = client.post("/echo", data="x" * (LIMIT + 1), content_type=content_type)

        assert response.status_code == 413
        assert router_calls == []
        # rendered by the error page
        assert "<h2>413</h2>" in response.get_data(as_text=True)

    def test_other_content_types_are_not_limited(self, client, router_calls):
        response = client.post("/echo", data=b"x" * (LIMIT * 4), content_type="application/octet-stream")
        assert response.status_code == 200
        assert response.get_json() == {"body": None}


class TestBodyParsers:
    """Parsed bodies are exposed on the request context."""

    def test_urlencoded(self, client):
        response = client.post("/echo", data="a=1&b=2&b=3", content_type="application/x-www-form-urlencoded")
        assert response.get_json() == {"body": {"a": "1", "b": ["2", "3"]}}

    def test_text(self, client):
        response = client.post("/echo", data="hello", content_type="text/plain; charset=utf-8")
        assert response.get_json() == {"body": "hello"}

    def test_json(self, client):
        response = client.post("/echo", json={"name": "gate"})
        assert response.get_json() == {"body": {"name": "gate"}}

    def test_empty_json_body(self, client):
        response = client.post("/echo", data="", content_type="application/json")
        assert response.get_json() == {"body": {}}

    def test_malformed_json_is_bad_request(self, client, router_calls):
        response = client.post("/echo", data="{not json", content_type="application/json")
        assert response.status_code == 400
        assert router_calls == []

    def test_unknown_charset_is_unsupported_media_type(self, client, router_calls):
        response = client.post("/echo", data=b"hello", content_type="text/plain; charset=bogus")
        assert response.status_code == 415
        assert router_calls == []


class TestStreamedBodies:
    """Bodies without Content-Length are read no further than the limit."""

    @staticmethod
    def post_streamed(client, stream):
        return client.post(
            "/echo",
            input_stream=stream,
            content_type="text/plain",
            headers={"Transfer-Encoding": "chunked"},
            environ_overrides={"wsgi.input_terminated": True},
        )

    def test_streamed_body_within_limit(self, client, router_calls):
        response = self.post_streamed(client, io.BytesIO(b"x" * LIMIT))
        assert response.status_code == 200
        assert response.get_json() == {"body": "x" * LIMIT}

    def test_streamed_body_over_limit_is_rejected(self, client, router_calls):
        stream = io.BytesIO(b"x" * (LIMIT * 100))
        response = self.post_streamed(client, stream)
        assert response.status_code == 413
        assert router_calls == []
        assert stream.tell() <= LIMIT + 1
