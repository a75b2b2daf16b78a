from __future__ import annotations

from collections.abc import Iterator

import pytest

from etl_base.config import DEFAULT_SUBMIT_BUDGET_BYTES, get_settings, load_settings
from etl_base.errors import ConfigurationError

ENV_NAMES = ("ETL_API", "ETL_LAYER", "ETL_TOKEN", "ETL_SUBMIT_SIZE", "DEBUG")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _set_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ETL_API", "https://etl.example.com")
    monkeypatch.setenv("ETL_LAYER", "12")
    monkeypatch.setenv("ETL_TOKEN", "etl.secret")


def test_settings_are_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)

    settings = load_settings()

    assert settings.api_base == "https://etl.example.com"
    assert settings.layer_id == 12
    assert settings.token == "etl.secret"
    assert settings.submit_budget_bytes == DEFAULT_SUBMIT_BUDGET_BYTES == 49_000_000
    assert settings.debug is False


def test_optional_settings_are_parsed(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv("ETL_SUBMIT_SIZE", "1024")
    monkeypatch.setenv("DEBUG", "true")

    settings = load_settings()

    assert settings.submit_budget_bytes == 1024
    assert settings.debug is True


def test_dotenv_file_is_read(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    (tmp_path / ".env").write_text("ETL_API=http://localhost:5001\nETL_LAYER=3\nETL_TOKEN=from-file\n")

    settings = load_settings()

    assert settings.api_base == "http://localhost:5001"
    assert settings.layer_id == 3


def test_missing_api_raises_configuration_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ETL_LAYER", "12")
    monkeypatch.setenv("ETL_TOKEN", "etl.secret")

    with pytest.raises(ConfigurationError) as exc_info:
        load_settings()

    assert exc_info.value.code == "SETTINGS_INVALID"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("ETL_API", "etl.example.com"),
        ("ETL_LAYER", "0"),
        ("ETL_LAYER", "not-a-number"),
        ("ETL_TOKEN", ""),
        ("ETL_SUBMIT_SIZE", "0"),
    ],
)
def test_invalid_values_raise_configuration_error(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    _set_required(monkeypatch)
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        load_settings()


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch) -> None:
    _set_required(monkeypatch)

    assert get_settings() is get_settings()


def test_explicit_overrides_take_field_names(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = load_settings(api_base="http://etl.local", layer_id=1, token="t", submit_budget_bytes=10)

    assert settings.submit_budget_bytes == 10
