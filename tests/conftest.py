# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Shared fixtures: a fakeredis session client, an application factory wired
# with a test blueprint, and a test client.
# =============================================================================

import fakeredis
import pytest
from flask import Blueprint, flash, jsonify, redirect, render_template_string

from app import create_app
from modules.request_context import get_request_context


PAGE = "{% extends 'layout.html' %}{% block content %}<main>page</main>{% endblock %}"


def make_test_blueprint(calls):
    bp = Blueprint("test_routes", __name__)

    @bp.route("/")
    def index():
        calls.append("index")
        return "router reached"

    @bp.route("/page")
    def page():
        calls.append("page")
        get_request_context().set_selected_menu("about")
        return render_template_string(PAGE)

    @bp.route("/flash", methods=["POST"])
    def add_flash():
        flash("Saved <b>draft</b>", "success")
        flash("First problem", "danger")
        flash("Second problem", "danger")
        return redirect("/page")

    @bp.route("/echo", methods=["POST"])
    def echo():
        calls.append("echo")
        body = get_request_context().body
        return jsonify({"body": body})

    @bp.route("/trace")
    def trace():
        return jsonify({"trace": get_request_context().trace})

    @bp.route("/boom")
    def boom():
        raise RuntimeError("something broke")

    @bp.route("/teapot")
    def teapot():
        error = ValueError("short and stout")
        error.status_code = 418
        raise error

    return bp


@pytest.fixture
def base_config():
    return {
        "env": "test",
        "secret": "test-secret",
        "maxPostSize": 64,
        "menu": [
            {"key": "home", "title": "Home", "url": "/"},
            {"key": "about", "title": "About", "url": "/page"},
        ],
    }


@pytest.fixture
def router_calls():
    return []


@pytest.fixture
def redis_store():
    return fakeredis.FakeRedis()


@pytest.fixture
def make_app(base_config, router_calls, redis_store):
    def _make_app(**overrides):
        config = dict(base_config)
        config.update(overrides)
        app = create_app(
            config,
            blueprints=[make_test_blueprint(router_calls)],
            session_client=redis_store,
        )
        app.config["TESTING"] = True
        return app
    return _make_app


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()
