import pytest

from enjoyrecord.core.config import settings
from enjoyrecord.main import app
from enjoyrecord.core.security import require_admin_password


def test_require_admin_password_open_when_unconfigured():
    assert require_admin_password(None, None).ok is True
    assert require_admin_password("anything", "   ").ok is True


def test_require_admin_password_missing_and_mismatch():
    missing = require_admin_password("  ", "secret")
    assert (missing.ok, missing.status, missing.error) == (False, 401, "Missing admin password.")

    wrong = require_admin_password("nope", "secret")
    assert (wrong.ok, wrong.status, wrong.error) == (False, 403, "Invalid admin password.")

    assert require_admin_password(" secret ", "secret").ok is True


@pytest.mark.anyio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


@pytest.mark.anyio
async def test_admin_check_reports_configuration(client, monkeypatch):
    r = await client.get("/api/admin/check")
    assert r.json() == {"configured": True}

    monkeypatch.setattr(settings, "admin_password", None)
    r = await client.get("/api/admin/check")
    assert r.json() == {"configured": False}


@pytest.mark.anyio
async def test_admin_verify(client, admin_headers):
    r = await client.post("/api/admin/verify", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    r = await client.post("/api/admin/verify")
    assert r.status_code == 401

    r = await client.post("/api/admin/verify", headers={"x-admin-password": "guess"})
    assert r.status_code == 403


@pytest.mark.anyio
async def test_admin_verify_open_without_password(client, monkeypatch):
    monkeypatch.setattr(settings, "admin_password", None)
    r = await client.post("/api/admin/verify")
    assert r.status_code == 200


@pytest.mark.anyio
async def test_only_api_routes_are_mounted(client):
    paths = {getattr(route, "path", "") for route in app.routes}
    assert not any(p.startswith("/mcp") for p in paths)

    r = await client.post("/mcp", json={})
    assert r.status_code in (404, 405)
