"""Tests for the main_db connectivity check."""
import main_db


def test_reports_connection_and_grants(monkeypatch, capsys):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("DB_PRINCIPAL", "hetzner-ci")

    assert main_db.main([]) == 0
    out = capsys.readouterr().out

    assert "Connection test: OK" in out
    assert "Alembic revision: not found" in out
    assert "Principal hetzner-ci: SELECT, INSERT, UPDATE" in out


def test_missing_url_exits_2(monkeypatch):
    for name in ("DATABASE_URL", "DB_HOST", "DB_NAME", "DB_USER", "DB_PASSWORD"):
        monkeypatch.delenv(name, raising=False)

    assert main_db.main([]) == 2
