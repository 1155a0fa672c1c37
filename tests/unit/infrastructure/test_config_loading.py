"""Tests for layered configuration loading: defaults < YAML < ENV < CLI."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from debridarr.infrastructure.config.load import load_config


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    config = {
        "app_name": "debridarr-test",
        "environment": "test",
        "http": {"timeout_seconds": 15.0},
        "logging": {"level": "DEBUG", "format": "console"},
        "jackett": {"url": "http://jackett.yaml:9117", "api_key": "yamlkey"},
        "cache": {"backend": "memory", "directory": str(tmp_path / "cache")},
        "default_user_config": {"maxTorrents": 3, "priotizeLanguages": "french"},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaults:
    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "debridarr"
        assert config.jackett_url == "http://localhost:9117"
        assert config.log_format == "console"
        assert config.rate_limit_max_requests == 150
        assert config.torrent_infos_ttl_seconds == 7 * 86_400
        assert config.default_user_config.max_torrents == 8
        assert config.static_dir is None

    def test_prod_logs_json(self) -> None:
        assert load_config(cli_overrides={"environment": "prod"}).log_format == "json"


class TestYaml:
    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "debridarr-test"
        assert config.http_timeout_seconds == 15.0
        assert config.log_level == "DEBUG"
        assert config.jackett_api_key == "yamlkey"
        assert config.cache.backend == "memory"
        assert config.cache.directory == tmp_path / "cache"
        assert config.default_user_config.max_torrents == 3
        assert config.default_user_config.prioritize_languages == ["french"]
        # Untouched keys keep their defaults.
        assert config.http_user_agent == "Debridarr/0.1.0"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yaml")

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(config_path=path)

    def test_missing_dotenv(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / ".env")


class TestEnv:
    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEBRIDARR_JACKETT_URL", "http://jackett.env:9117")
        monkeypatch.setenv("DEBRIDARR_IMMUTABLE_USER_CONFIG_KEYS", "debridId, debridApiKey")
        monkeypatch.setenv("DEBRIDARR_DEFAULT_USER_CONFIG", '{"maxTorrents": 10}')
        monkeypatch.setenv("CACHE_BACKEND", "redis")

        config = load_config(config_path=yaml_config)

        assert config.jackett_url == "http://jackett.env:9117"
        assert config.jackett_api_key == "yamlkey"
        assert config.immutable_user_config_keys == ["debridId", "debridApiKey"]
        assert config.default_user_config.max_torrents == 10
        assert config.cache.backend == "redis"

    def test_dotenv_file_is_an_env_layer(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("DEBRIDARR_REPLACE_PASSKEY", raising=False)
        dotenv = tmp_path / ".env"
        dotenv.write_text("DEBRIDARR_REPLACE_PASSKEY=operatorkey\n", encoding="utf-8")

        try:
            config = load_config(dotenv_path=dotenv)
        finally:
            # load_dotenv writes straight into the process environment.
            os.environ.pop("DEBRIDARR_REPLACE_PASSKEY", None)

        assert config.replace_passkey == "operatorkey"


class TestCli:
    def test_cli_beats_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("DEBRIDARR_LOG_LEVEL", "WARNING")
        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR", "jackett_url": "http://cli:9117"},
        )
        assert config.log_level == "ERROR"
        assert config.jackett_url == "http://cli:9117"

    def test_invalid_value_rejected(self) -> None:
        with pytest.raises(ValueError):
            load_config(cli_overrides={"http_timeout_seconds": 0})
