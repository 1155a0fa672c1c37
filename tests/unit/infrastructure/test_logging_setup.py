"""Tests for the uvicorn logging config built from AppConfig."""

from __future__ import annotations

import structlog

from debridarr.infrastructure.config import AppConfig
from debridarr.infrastructure.logging.setup import build_logging_config


class TestBuildLoggingConfig:
    def test_level_applied_to_uvicorn_and_root(self) -> None:
        cfg = build_logging_config(AppConfig(log_level="DEBUG"))
        assert cfg["root"] == {"handlers": ["default"], "level": "DEBUG"}
        assert cfg["loggers"]["uvicorn"]["level"] == "DEBUG"
        assert cfg["loggers"]["uvicorn.access"]["level"] == "DEBUG"

    def test_http_client_loggers_quiet(self) -> None:
        cfg = build_logging_config(AppConfig())
        assert cfg["loggers"]["httpx"] == {"level": "WARNING"}
        assert cfg["loggers"]["httpcore"] == {"level": "WARNING"}

    def test_renderer_follows_format(self) -> None:
        json_cfg = build_logging_config(AppConfig(log_format="json"))
        console_cfg = build_logging_config(AppConfig(log_format="console"))
        assert isinstance(
            json_cfg["formatters"]["structlog"]["processors"][-1],
            structlog.processors.JSONRenderer,
        )
        assert isinstance(
            console_cfg["formatters"]["structlog"]["processors"][-1],
            structlog.dev.ConsoleRenderer,
        )

    def test_base_config_not_mutated(self) -> None:
        build_logging_config(AppConfig(log_level="ERROR"))
        cfg = build_logging_config(AppConfig())
        assert cfg["loggers"]["uvicorn"]["level"] == "INFO"
        assert cfg["handlers"]["default"]["formatter"] == "structlog"
