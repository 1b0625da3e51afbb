import json
from pathlib import Path

import pytest

import asset_viewer.config as config_module
from asset_viewer.bootstrap import BootstrapError, initialize_app
from asset_viewer.config import DEFAULT_ENDPOINTS, AppConfig, EndpointTemplates, load_config


def test_defaults_apply_for_an_empty_mapping(tmp_path: Path) -> None:
    config = AppConfig.from_mapping({}, base_path=tmp_path)

    assert config.api_root == "http://localhost:5000/api"
    assert config.request_timeout == 15.0
    assert config.telemetry_max_attempts == 2
    assert config.endpoints.book == DEFAULT_ENDPOINTS["book"]
    assert config.log_root == (tmp_path / "logs").resolve()
    assert config.log_root.is_dir()


def test_base_url_and_prefix_are_normalized(tmp_path: Path) -> None:
    config = AppConfig.from_mapping(
        {"api_base_url": "https://content.example/ ", "api_prefix": "v2/"},
        base_path=tmp_path,
    )

    assert config.api_base_url == "https://content.example"
    assert config.api_prefix == "/v2"
    assert config.api_root == "https://content.example/v2"


@pytest.mark.parametrize(
    "overrides",
    [
        {"api_base_url": ""},
        {"request_timeout": 0},
        {"telemetry_max_attempts": 0},
        {"telemetry_max_attempts": float("inf")},
        {"telemetry_backoff_seconds": -1},
        {"endpoints": {"book": "  "}},
    ],
)
def test_invalid_settings_are_rejected(tmp_path: Path, overrides) -> None:
    with pytest.raises(ValueError):
        AppConfig.from_mapping(overrides, base_path=tmp_path)


def test_endpoint_overrides_gain_a_leading_slash() -> None:
    endpoints = EndpointTemplates.from_mapping({"book": "books/{book_id}", "unknown": "/x"})

    assert endpoints.book == "/books/{book_id}"
    assert endpoints.chapter == DEFAULT_ENDPOINTS["chapter"]
    assert endpoints.for_kind("book") == "/books/{book_id}"
    with pytest.raises(KeyError):
        endpoints.for_kind("answer")


def test_log_root_falls_back_when_preferred_is_unusable(tmp_path: Path, monkeypatch) -> None:
    home_dir = tmp_path / "home"
    monkeypatch.setattr(config_module.Path, "home", lambda: home_dir)

    blocked = tmp_path / "logs"
    blocked.write_text("not a directory", encoding="utf-8")

    config = AppConfig.from_mapping({"log_root": "logs"}, base_path=tmp_path)

    expected = (home_dir / ".asset_viewer" / "logs").resolve()
    assert config.log_root == expected
    assert expected.is_dir()


def test_environment_overrides_the_file(tmp_path: Path, monkeypatch) -> None:
    config_file = tmp_path / "settings.json"
    config_file.write_text(
        json.dumps({"api_base_url": "http://from-file.test", "log_root": str(tmp_path / "logs")}),
        encoding="utf-8",
    )
    monkeypatch.setenv(config_module.API_URL_ENV, "http://from-env.test/")
    monkeypatch.setenv(config_module.TIMEOUT_ENV, "not-a-number")

    config = load_config(config_file)

    assert config.api_base_url == "http://from-env.test"
    assert config.request_timeout == 15.0


def test_explicit_config_file_must_exist(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.json")


def test_initialize_app_wraps_configuration_errors(tmp_path: Path) -> None:
    with pytest.raises(BootstrapError) as excinfo:
        initialize_app(tmp_path / "missing.json")

    assert "configuration" in str(excinfo.value).lower()


def test_initialize_app_reports_malformed_json(tmp_path: Path) -> None:
    config_file = tmp_path / "broken.json"
    config_file.write_text("{not json", encoding="utf-8")

    with pytest.raises(BootstrapError):
        initialize_app(config_file)
