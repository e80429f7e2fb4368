# =============================================================================
# tests/test_error_renderer.py - Error Page Tests
# =============================================================================

from werkzeug.exceptions import NotFound, RequestEntityTooLarge

from modules.error_renderer import ErrorRenderer, error_status


class TestErrorStatus:
    """Status code resolution for raised failures."""

    def test_http_exception_code(self):
        assert error_status(RequestEntityTooLarge()) == 413

    def test_declared_status_code(self):
        error = RuntimeError("x")
        error.status_code = 409
        assert error_status(error) == 409

    def test_defaults_to_500(self):
        assert error_status(RuntimeError("x")) == 500

    def test_ignores_non_http_codes(self):
        error = OSError(2, "No such file")
        error.code = 2
        assert error_status(error) == 500

    def test_code_attribute_is_not_a_status(self):
        error = RuntimeError("lookup failed")
        error.code = 404
        assert error_status(error) == 500


class TestErrorRenderer:
    """Rendering of unhandled failures."""

    def test_unhandled_error_renders_500_page(self, client):
        response = client.get("/boom")
        html = response.get_data(as_text=True)

        assert response.status_code == 500
        assert "<h1>something broke</h1>" in html
        assert "RuntimeError" in html

    def test_declared_status_is_used(self, client):
        response = client.get("/teapot")
        assert response.status_code == 418
        assert "short and stout" in response.get_data(as_text=True)

    def test_unknown_route_renders_404(self, client):
        response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert "<h2>404</h2>" in response.get_data(as_text=True)

    def test_details_hidden_in_production(self, make_app):
        client = make_app(env="production").test_client()
        html = client.get("/boom").get_data(as_text=True)
        assert "something broke" in html
        assert "Traceback" not in html

    def test_no_error_passes_through(self, app):
        with app.test_request_context("/"):
            assert ErrorRenderer().handle(None) is None

    def test_template_failure_falls_back_to_text(self, app):
        renderer = ErrorRenderer(template="missing.html")
        with app.test_request_context("/"):
            response = renderer.handle(NotFound())
        assert response.status_code == 404
        assert response.mimetype == "text/plain"
        assert response.get_data(as_text=True).startswith("404")
