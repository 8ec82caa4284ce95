import pytest

from todo_store.errors import ConfigurationError
from todo_store.settings import get_settings


@pytest.fixture
def env(monkeypatch):
    for name in (
        "DB_URI",
        "DATABASE_NAME",
        "TODO_COLLECTION",
        "ID_STRATEGY",
        "COUNTERS_COLLECTION",
        "CORS_ALLOW_ORIGINS",
        "LOG_LEVEL",
        "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DB_URI", "mongodb://db.example:27017")
    monkeypatch.setenv("DATABASE_NAME", "todo_app")
    return monkeypatch


def test_defaults(env):
    settings = get_settings()
    assert settings.db_uri == "mongodb://db.example:27017"
    assert settings.database_name == "todo_app"
    assert settings.collection_name == "todos"
    assert settings.id_strategy == "max"
    assert settings.counters_collection == "counters"
    assert settings.cors_allow_origins == ["*"]
    assert settings.log_level == "INFO"
    assert settings.log_json is True


def test_missing_uri(env):
    env.delenv("DB_URI")
    with pytest.raises(ConfigurationError, match="DB_URI"):
        get_settings()


def test_blank_database_name(env):
    env.setenv("DATABASE_NAME", "   ")
    with pytest.raises(ConfigurationError, match="DATABASE_NAME"):
        get_settings()


def test_overrides(env):
    env.setenv("TODO_COLLECTION", "items")
    env.setenv("ID_STRATEGY", "Counter")
    env.setenv("CORS_ALLOW_ORIGINS", "http://a.example, http://b.example")
    env.setenv("LOG_LEVEL", "debug")
    env.setenv("LOG_JSON", "off")

    settings = get_settings()
    assert settings.collection_name == "items"
    assert settings.id_strategy == "counter"
    assert settings.cors_allow_origins == ["http://a.example", "http://b.example"]
    assert settings.log_level == "DEBUG"
    assert settings.log_json is False


def test_unknown_id_strategy_falls_back_to_max(env):
    env.setenv("ID_STRATEGY", "uuid")
    assert get_settings().id_strategy == "max"
