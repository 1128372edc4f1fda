"""Application factory and error envelope tests."""


def test_health_endpoint(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}


def test_unknown_route_returns_json_404(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert response.get_json()["error"]["code"] == "NOT_FOUND"


def test_method_not_allowed_is_json(client):
    response = client.delete("/api/health")
    assert response.status_code == 405
    assert "error" in response.get_json()


def test_test_config_overrides_environment(app):
    assert app.config["TESTING"] is True
    assert app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:"
    assert "post_scheduler" not in app.extensions
