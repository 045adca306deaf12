"""Unit tests for settings"""

import pytest
from pydantic import ValidationError

from energymodeller.config import Settings, get_settings


class TestSettings:
    """Test Settings defaults and environment overrides"""

    def test_defaults(self):
        """Test default settings"""
        settings = Settings(_env_file=None)

        assert settings.WORKLOAD_PREDICTOR == "CpuRecentHistoryWorkloadPredictor"
        assert settings.WORKLOAD_PREDICTION_MAPPING_FILE == "WorkloadPredictionMapping.csv"
        assert settings.ENERGY_SHARE_RULE == "LoadFractionShareRule"
        assert settings.CONSIDER_IDLE_ENERGY is True
        assert settings.WORKLOAD_CACHE_ENABLED is False
        assert settings.BOOT_HISTORY_BUCKET_SIZE == 500
        assert settings.RECENT_HISTORY_WINDOW_SECONDS == 60

    def test_environment_override(self, monkeypatch):
        """Test settings read from environment variables"""
        monkeypatch.setenv("WORKLOAD_CACHE_ENABLED", "true")
        monkeypatch.setenv("BOOT_HISTORY_BUCKET_SIZE", "300")

        settings = Settings(_env_file=None)
        assert settings.WORKLOAD_CACHE_ENABLED is True
        assert settings.BOOT_HISTORY_BUCKET_SIZE == 300

    def test_bucket_size_must_be_positive(self):
        """Test bucket size validation"""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, BOOT_HISTORY_BUCKET_SIZE=0)

    def test_get_settings_is_singleton(self):
        """Test get_settings returns one instance"""
        assert get_settings() is get_settings()
