import os

import pytest
from httpx import ASGITransport, AsyncClient

from spa_serve.app import create_app


@pytest.fixture
def app(dist, monkeypatch):
    monkeypatch.setenv("SPA_SERVE_DIST", str(dist))
    monkeypatch.setenv("SPA_SERVE_WEB_ENV", '{"api_url": "https://api.example.com"}')
    monkeypatch.delenv("SPA_SERVE_MODE", raising=False)
    return create_app()


async def test_health(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "mode": "production"}


async def test_spa_mounted_with_web_env(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        route = await client.get("/settings/profile")
        asset = await client.get("/file.txt")
        missing = await client.get("/missing.js")
    assert route.status_code == 200
    assert 'window.APP_ENV = {"api_url":"https://api.example.com"};' in route.text
    assert asset.text == "hello world"
    assert missing.status_code == 404


def test_dev_mode_does_not_mount(dist, monkeypatch):
    monkeypatch.setenv("SPA_SERVE_MODE", "dev")
    monkeypatch.setenv("SPA_SERVE_DIST", str(dist / "nope"))
    app = create_app()
    assert not [r for r in app.routes if getattr(r, "name", None) == "spa"]


def test_invalid_web_env(dist, monkeypatch):
    monkeypatch.setenv("SPA_SERVE_DIST", str(dist))
    monkeypatch.setenv("SPA_SERVE_WEB_ENV", "{not json")
    monkeypatch.delenv("SPA_SERVE_MODE", raising=False)
    with pytest.raises(ValueError, match="SPA_SERVE_WEB_ENV"):
        create_app()


def test_main_serves_given_directory(dist, monkeypatch):
    from spa_serve import __main__

    served = {}
    monkeypatch.setattr(__main__.uvicorn, "run", lambda app, **kwargs: served.update(app=app, **kwargs))
    monkeypatch.setattr("sys.argv", ["spa_serve", str(dist), "--port", "9000"])
    monkeypatch.delenv("SPA_SERVE_DIST", raising=False)
    monkeypatch.delenv("SPA_SERVE_MODE", raising=False)
    monkeypatch.delenv("SPA_SERVE_WEB_ENV", raising=False)

    __main__.main()

    assert served["port"] == 9000
    assert [r for r in served["app"].routes if getattr(r, "name", None) == "spa"]
    assert "SPA_SERVE_DIST" not in os.environ
