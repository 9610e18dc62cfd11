import json

import pytest
from sqlalchemy import create_engine

import config
from crud_ops import get_user_by_email, verify_password
from database import check_connection
from seed import init_db


@pytest.fixture
def clean_env(monkeypatch):
    for name in ["DATABASE_URL", "COURSEPORTAL_CONFIG"] + ["COURSEPORTAL_" + key.upper() for key in config.DEFAULTS]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_without_file(clean_env, tmp_path):
    settings = config.load_config(str(tmp_path / "missing.json"))
    assert settings.database_url == config.DEFAULTS["database_url"]
    assert settings.cors_origins == ["*"]
    assert settings.log_level == "INFO"


def test_file_overrides_defaults(clean_env, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"database_url": "sqlite:///./other.db", "log_level": "debug", "stray": 1}))
    settings = config.load_config(str(path))
    assert settings.database_url == "sqlite:///./other.db"
    assert settings.log_level == "DEBUG"
    assert not hasattr(settings, "stray")


def test_environment_overrides_file(clean_env, tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"database_url": "sqlite:///./other.db"}))
    clean_env.setenv("DATABASE_URL", "sqlite:///./env.db")
    clean_env.setenv("COURSEPORTAL_CORS_ORIGINS", "https://a.example.org, https://b.example.org")
    settings = config.load_config(str(path))
    assert settings.database_url == "sqlite:///./env.db"
    assert settings.cors_origins == ["https://a.example.org", "https://b.example.org"]


def test_prefixed_environment_values_are_typed(clean_env, tmp_path):
    clean_env.setenv("COURSEPORTAL_LOG_LEVEL", "warning")
    clean_env.setenv("COURSEPORTAL_SESSION_COOKIE_SECURE", "true")
    settings = config.load_config(str(tmp_path / "missing.json"))
    assert settings.log_level == "WARNING"
    assert settings.session_cookie_secure is True


def test_create_config_file(clean_env, tmp_path):
    path = config.create_config_file(str(tmp_path / "config.json"))
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == config.DEFAULTS


def test_check_connection_ok(engine):
    assert check_connection(engine) is None


def test_check_connection_failure_exits(tmp_path):
    broken = create_engine(f"sqlite:///{tmp_path}/no/such/dir/portal.db")
    with pytest.raises(SystemExit) as excinfo:
        check_connection(broken)
    assert excinfo.value.code == 1


def test_init_db_seeds_admin_once(engine, session_factory, db):
    init_db(bind=engine, session_factory=session_factory)
    init_db(bind=engine, session_factory=session_factory)

    admin = get_user_by_email(db, config.settings.admin_email)
    assert admin is not None
    assert verify_password(config.settings.admin_password, admin.password_hash)
