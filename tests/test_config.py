"""
Tests for configuration module.

Tests settings validation, immutability, YAML loading and
environment variable overrides.
"""

import pytest
import yaml
from pydantic import ValidationError

from portal_worker.config import (
    Settings,
    BrowserSettings,
    PrecheckSettings,
    SearchSettings,
    ServerSettings,
    load_config,
)
from portal_worker.core.exceptions import ConfigurationError


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings_valid(self):
        """Default settings should be valid."""
        settings = Settings()

        assert settings.browser.headless is True
        assert settings.browser.launch_args == ["--no-sandbox"]
        assert settings.server.port == 10000
        assert settings.server.secret is None
        assert settings.precheck.timeout_ms == 35000
        assert settings.precheck.link_limit == 10

    def test_default_markers(self):
        """Baseline marker weights should match the precheck heuristic."""
        markers = {m.phrase: m.weight for m in PrecheckSettings().markers}

        assert markers == {
            "apply online": 1,
            "captcha": -1,
            "otp": -1,
            "upload": 1,
            "payment": 1,
        }

    def test_marker_phrases_lowercased(self):
        """Marker phrases are matched against lower-cased text."""
        settings = PrecheckSettings(markers=[{"phrase": "Apply NOW", "weight": 2}])

        assert settings.markers[0].phrase == "apply now"

    def test_settings_are_frozen(self):
        """Settings cannot be mutated after construction."""
        settings = Settings()

        with pytest.raises(ValidationError):
            settings.server.port = 8080

    def test_empty_secret_means_unset(self):
        """An empty secret disables auth rather than requiring ''."""
        assert ServerSettings(secret="").secret is None
        assert ServerSettings(secret="  ").secret is None
        assert ServerSettings(secret=1234).secret == "1234"

    def test_search_configured_needs_both_credentials(self):
        assert not SearchSettings(api_key="k").is_configured
        assert not SearchSettings(engine_id="cx").is_configured
        assert SearchSettings(api_key="k", engine_id="cx").is_configured

    def test_browser_settings_validation(self):
        """Browser settings should validate constraints."""
        browser = BrowserSettings(timeout_ms=45000, viewport_width=1920)
        assert browser.timeout_ms == 45000

        with pytest.raises(ValueError):
            BrowserSettings(timeout_ms=10)

    def test_concurrency_must_be_positive(self):
        with pytest.raises(ValueError):
            ServerSettings(max_concurrent_sessions=0)

    def test_extra_fields_rejected(self):
        with pytest.raises(ValueError):
            Settings(unknown_section={})

    def test_search_limits_consistent(self):
        with pytest.raises(ValueError):
            Settings(search={"default_limit": 8, "max_limit": 5})


class TestConfigLoader:
    """Tests for configuration loading."""

    def test_load_config_defaults(self):
        """Loading without file or environment should use defaults."""
        settings = load_config(config_path=None, environ={})

        assert isinstance(settings, Settings)
        assert settings.server.secret is None
        assert settings.search.api_key is None

    def test_load_config_from_yaml(self, temp_dir):
        """YAML values override defaults."""
        config_path = temp_dir / "worker.yaml"
        config_path.write_text(yaml.dump({
            "server": {"port": 8081, "max_concurrent_sessions": 3},
            "precheck": {"link_limit": 5},
        }))

        settings = load_config(config_path, environ={})

        assert settings.server.port == 8081
        assert settings.server.max_concurrent_sessions == 3
        assert settings.precheck.link_limit == 5
        assert settings.browser.headless is True

    def test_empty_yaml_uses_defaults(self, temp_dir):
        config_path = temp_dir / "empty.yaml"
        config_path.write_text("")

        settings = load_config(config_path, environ={})

        assert settings.server.port == 10000

    def test_missing_file_raises(self, temp_dir):
        with pytest.raises(ConfigurationError):
            load_config(temp_dir / "missing.yaml", environ={})

    def test_non_mapping_yaml_raises(self, temp_dir):
        config_path = temp_dir / "list.yaml"
        config_path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_config(config_path, environ={})

    def test_invalid_value_raises_configuration_error(self, temp_dir):
        config_path = temp_dir / "bad.yaml"
        config_path.write_text(yaml.dump({"server": {"port": 0}}))

        with pytest.raises(ConfigurationError):
            load_config(config_path, environ={})

    def test_legacy_environment_variables(self):
        """Flat variables from earlier deployments are honoured."""
        settings = load_config(environ={
            "PLAYWRIGHT_WORKER_SECRET": "s3cret",
            "GOOGLE_API_KEY": "gkey",
            "GOOGLE_CX": "gcx",
            "OPENAI_API_KEY": "okey",
            "PORT": "9000",
        })

        assert settings.server.secret == "s3cret"
        assert settings.search.api_key == "gkey"
        assert settings.search.engine_id == "gcx"
        assert settings.text_generation.api_key == "okey"
        assert settings.server.port == 9000

    def test_empty_legacy_variable_ignored(self):
        settings = load_config(environ={"PLAYWRIGHT_WORKER_SECRET": ""})

        assert settings.server.secret is None

    def test_nested_environment_overrides(self):
        """Nested variables are coerced by field type."""
        settings = load_config(environ={
            "PORTAL_WORKER__SERVER__MAX_CONCURRENT_SESSIONS": "8",
            "PORTAL_WORKER__BROWSER__HEADLESS": "false",
            "PORTAL_WORKER__BROWSER__LAUNCH_ARGS": "[--no-sandbox, --disable-gpu]",
            "PORTAL_WORKER__SERVER__SECRET": "0042",
        })

        assert settings.server.max_concurrent_sessions == 8
        assert settings.browser.headless is False
        assert settings.browser.launch_args == ["--no-sandbox", "--disable-gpu"]
        assert settings.server.secret == "0042"

    def test_nested_overrides_beat_legacy_and_yaml(self, temp_dir):
        config_path = temp_dir / "worker.yaml"
        config_path.write_text(yaml.dump({"server": {"secret": "from-yaml"}}))

        settings = load_config(config_path, environ={
            "PLAYWRIGHT_WORKER_SECRET": "from-legacy",
            "PORTAL_WORKER__SERVER__SECRET": "from-nested",
        })

        assert settings.server.secret == "from-nested"
