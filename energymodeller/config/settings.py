"""
Application settings and environment configuration
"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8', extra='ignore')

    # Workload prediction
    WORKLOAD_PREDICTOR: str = Field(
        "CpuRecentHistoryWorkloadPredictor",
        description="Display name or class name of the workload estimator to use",
    )
    WORKLOAD_PREDICTION_MAPPING_FILE: str = Field(
        "WorkloadPredictionMapping.csv",
        description="CSV rule table mapping VM properties to predictor names",
    )
    BOOT_HISTORY_BUCKET_SIZE: int = Field(500, gt=0, description="Boot trace bucket size in seconds")
    RECENT_HISTORY_WINDOW_SECONDS: int = Field(
        60, gt=0, description="Window of live CPU data used by the recent history predictor"
    )

    # Statistics cache
    WORKLOAD_CACHE_ENABLED: bool = Field(False, description="Consult the workload statistics cache first")

    # Energy attribution
    ENERGY_SHARE_RULE: str = Field("LoadFractionShareRule", description="Energy share rule class name")
    CONSIDER_IDLE_ENERGY: bool = Field(True, description="Split host idle power evenly across tenants")

    # Logging
    LOG_LEVEL: str = Field("INFO", description="Logging level")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings (singleton)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
