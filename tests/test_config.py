import pytest
from pydantic import ValidationError

from config import Settings, get_settings_for_environment


class TestSettings:
    """Test settings defaults and validation."""

    def test_defaults(self, monkeypatch):
        """Test the reference configuration."""
        monkeypatch.delenv("BANK_MAX_AMOUNT", raising=False)
        settings = Settings()

        assert settings.initial_balance == 0
        assert settings.min_amount == 1
        assert settings.max_amount == 10
        assert settings.deposit_interval == 1.0
        assert settings.fair_lock is True

    def test_environment_variables(self, monkeypatch):
        """Test that BANK_-prefixed variables override defaults."""
        monkeypatch.setenv("BANK_MAX_AMOUNT", "25")
        monkeypatch.setenv("BANK_FAIR_LOCK", "false")

        settings = Settings()

        assert settings.max_amount == 25
        assert settings.fair_lock is False

    def test_min_above_max_rejected(self):
        """Test that an empty amount range is invalid."""
        with pytest.raises(ValidationError):
            Settings(min_amount=8, max_amount=3)

    def test_negative_initial_balance_rejected(self):
        """Test that the account can't be seeded in debt."""
        with pytest.raises(ValidationError):
            Settings(initial_balance=-1)

    def test_unbounded_run_rejected(self):
        """Test that a run needs a duration or both iteration caps."""
        with pytest.raises(ValidationError):
            Settings(duration=None, deposit_iterations=10)

        settings = Settings(duration=None, deposit_iterations=10, withdraw_iterations=5)
        assert settings.duration is None

    def test_invalid_log_format(self):
        """Test that only json and text log formats are accepted."""
        with pytest.raises(ValidationError):
            Settings(log_format="xml")


    def test_only_monitor_settings(self):
        """Test that every setting configures the run, logging or the account."""
        assert not {"app_name", "app_version", "debug"} & set(Settings.model_fields)


class TestEnvironmentProfiles:
    """Test environment-specific settings."""

    def test_testing_profile(self):
        """Test the fast, quiet testing profile."""
        settings = get_settings_for_environment("testing")

        assert settings.deposit_interval == 0.0
        assert settings.log_level == "WARNING"
        assert settings.seed == 42

    def test_production_profile(self):
        """Test that production logs JSON."""
        settings = get_settings_for_environment("production")

        assert settings.log_format == "json"
        assert settings.log_level == "INFO"

    def test_overrides(self):
        """Test that explicit overrides win over the profile."""
        settings = get_settings_for_environment("testing", seed=7, max_amount=3)

        assert settings.seed == 7
        assert settings.max_amount == 3

    def test_unknown_environment_falls_back(self):
        """Test that unknown environments use the base settings."""
        settings = get_settings_for_environment("staging")

        assert type(settings) is Settings
