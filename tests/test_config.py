from pathlib import Path

import pytest

from insight.config import Config, load_config

ENV_VARS = (
    "INSIGHT_DATA_DIR",
    "INSIGHT_DB_PATH",
    "INSIGHT_CONFIG",
    "INSIGHT_LOG_LEVEL",
    "SIGHTENGINE_API_USER",
    "SIGHTENGINE_API_SECRET",
    "SIGHTENGINE_API_URL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.data_dir == Path("data")
    assert config.db_path == Path("data") / "insight.db"
    assert config.log_level == "INFO"
    assert config.has_sightengine_credentials is False


def test_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("INSIGHT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("INSIGHT_LOG_LEVEL", "debug")
    monkeypatch.setenv("SIGHTENGINE_API_USER", "user")
    monkeypatch.setenv("SIGHTENGINE_API_SECRET", "secret")
    config = load_config()
    assert config.db_path == tmp_path / "insight.db"
    assert config.log_level == "DEBUG"
    assert config.has_sightengine_credentials is True


def test_yaml_overrides_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("INSIGHT_DATA_DIR", "from-env")
    path = tmp_path / "insight.yaml"
    path.write_text("data_dir: from-yaml\nmax_history_items: 20\n")
    config = load_config(path)
    assert config.data_dir == Path("from-yaml")
    assert config.max_history_items == 20


def test_yaml_from_environment_variable(monkeypatch, tmp_path):
    path = tmp_path / "insight.yaml"
    path.write_text("db_path: custom.db\n")
    monkeypatch.setenv("INSIGHT_CONFIG", str(path))
    assert load_config().db_path == Path("custom.db")


def test_yaml_rejects_unknown_keys(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("colour: blue\n")
    with pytest.raises(ValueError, match="Unknown config keys: colour"):
        load_config(path)


def test_missing_yaml(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_explicit_db_path():
    assert Config(data_dir="x", db_path="y.db").db_path == Path("y.db")
