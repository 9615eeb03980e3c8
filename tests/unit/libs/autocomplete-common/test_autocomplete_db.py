# tests/unit/libs/autocomplete-common/test_autocomplete_db.py
from autocomplete_common.db import get_async_database_url


def test_database_url_prefers_database_url_and_forces_asyncpg(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/app")
    monkeypatch.delenv("HOST_DATABASE_URL", raising=False)

    assert get_async_database_url() == "postgresql+asyncpg://u:p@db:5432/app"


def test_database_url_falls_back_to_host_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("HOST_DATABASE_URL", "postgresql+asyncpg://u:p@localhost:55432/app")

    assert get_async_database_url() == "postgresql+asyncpg://u:p@localhost:55432/app"


def test_database_url_is_built_from_postgres_settings(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("HOST_DATABASE_URL", raising=False)

    url = get_async_database_url()

    assert url.startswith("postgresql+asyncpg://")
