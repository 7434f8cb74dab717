import pytest
from pydantic import ValidationError

from scout.config import Settings, load_settings


def test_defaults_without_file(tmp_path):
    settings = load_settings(str(tmp_path / "missing.yml"), env={})

    assert settings.crawl.max_count == 50
    assert settings.crawl.default_count == 10
    assert settings.http.max_retries == 3
    assert settings.http.base_delay == 2.0
    assert settings.http.max_delay == 30.0
    assert settings.render.navigation_timeout_ms == 30_000
    assert settings.stream.timeout_s == 300
    assert settings.crawl.api_page_delay == 1.0


def test_yaml_file_is_applied(tmp_path):
    path = tmp_path / "scout.yml"
    path.write_text("crawl:\n  default_count: 5\nrender:\n  headless: false\n")

    settings = load_settings(str(path), env={})

    assert settings.crawl.default_count == 5
    assert settings.render.headless is False
    assert settings.crawl.max_count == 50


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "scout.yml"
    path.write_text("crawl:\n  max_count: 20\n")
    env = {"SCOUT_MAX_COUNT": "25", "SCOUT_HEADLESS": "false", "CHROME_BIN": "/usr/bin/chromium", "SCOUT_MLH_SEASON": ""}

    settings = load_settings(str(path), env=env)

    assert settings.crawl.max_count == 25
    assert settings.render.headless is False
    assert settings.render.executable_path == "/usr/bin/chromium"
    assert settings.crawl.mlh_season == 2026


def test_config_path_from_environment(tmp_path):
    path = tmp_path / "custom.yml"
    path.write_text("stream:\n  timeout_s: 12\n")

    assert load_settings(env={"SCOUT_CONFIG": str(path)}).stream.timeout_s == 12


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "scout.yml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_settings(str(path), env={})


def test_bad_values_fail_validation():
    with pytest.raises(ValidationError):
        load_settings("does-not-exist.yml", env={"SCOUT_MAX_COUNT": "lots"})


def test_settings_are_independent():
    first, second = Settings(), Settings()
    first.crawl.max_count = 1
    assert second.crawl.max_count == 50
