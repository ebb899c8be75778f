"""Tests for settings and logging setup."""

import pytest
import structlog

from build_controller.config import Settings
from build_controller.logs import configure_logging


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PIPELINE_SERVICE_ACCOUNT", raising=False)
        settings = Settings(_env_file=None)

        assert settings.pipeline_service_account == "pipeline"
        assert settings.git_provider_annotation == "tekton.dev/git-0"
        assert settings.trigger_template_requeue_seconds == 5.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PIPELINE_SERVICE_ACCOUNT", "builder")
        monkeypatch.setenv("CONFLICT_RETRY_ATTEMPTS", "2")

        settings = Settings(_env_file=None)

        assert settings.pipeline_service_account == "builder"
        assert settings.conflict_retry_attempts == 2

    def test_retry_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, conflict_retry_attempts=0)


class TestConfigureLogging:
    @pytest.mark.parametrize(
        "log_format, renderer",
        [("json", structlog.processors.JSONRenderer), ("console", structlog.dev.ConsoleRenderer)],
    )
    def test_renderer_follows_format(self, reset_structlog, log_format, renderer):
        configure_logging(Settings(_env_file=None, log_format=log_format))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], renderer)
