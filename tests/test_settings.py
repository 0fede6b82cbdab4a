from settings import Settings


def test_defaults(monkeypatch):
    for name in ("PORT", "ENVIRONMENT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    s = Settings(_env_file=None)
    assert s.PORT == 5000
    assert s.ENVIRONMENT == "development"
    assert s.is_production is False


def test_production_from_env(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("PORT", "3000")
    s = Settings(_env_file=None)
    assert s.is_production is True
    assert s.PORT == 3000


def test_production_disables_access_log(monkeypatch):
    import server

    calls = {}
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kwargs: calls.update(kwargs))
    monkeypatch.setattr(server, "settings", Settings(_env_file=None, ENVIRONMENT="production"))
    server.run_servers(8123)
    assert calls["port"] == 8123
    assert calls["access_log"] is False
