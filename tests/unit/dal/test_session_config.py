import pytest

from dal.config import DEFAULT_STORAGE_KEY, SessionConfig


def test_session_config_defaults() -> None:
    """Without overrides the config uses in-memory storage and default limits."""
    config = SessionConfig.from_env()

    assert config.storage_key == DEFAULT_STORAGE_KEY
    assert config.storage_dir is None
    assert config.storage_timeout_seconds == 5.0
    assert config.table_rows_limit == 100
    assert config.tokenized_statement_split is False


def test_session_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables override every field."""
    monkeypatch.setenv("SCHEMACRAFT_STORAGE_KEY", "custom_db")
    monkeypatch.setenv("SCHEMACRAFT_STORAGE_DIR", "/tmp/schemacraft")
    monkeypatch.setenv("DAL_STORAGE_TIMEOUT_SECS", "1.5")
    monkeypatch.setenv("DAL_TABLE_ROWS_LIMIT", "10")
    monkeypatch.setenv("DAL_EXPORT_ROWS_LIMIT", "20")
    monkeypatch.setenv("DAL_TOKENIZED_STATEMENT_SPLIT", "yes")

    config = SessionConfig.from_env()

    assert config.storage_key == "custom_db"
    assert config.storage_dir == "/tmp/schemacraft"
    assert config.storage_timeout_seconds == 1.5
    assert config.table_rows_limit == 10
    assert config.export_rows_limit == 20
    assert config.tokenized_statement_split is True


def test_session_config_rejects_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Invalid numeric values fail loudly."""
    monkeypatch.setenv("DAL_TABLE_ROWS_LIMIT", "lots")

    with pytest.raises(ValueError, match="DAL_TABLE_ROWS_LIMIT"):
        SessionConfig.from_env()
