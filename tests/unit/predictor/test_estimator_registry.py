"""Unit tests for resolving estimators by name"""

import logging
import pytest

from energymodeller.datastore import WorkloadStatisticsCache
from energymodeller.predictor import (
    WORKLOAD_ESTIMATORS,
    BootAverageCpuWorkloadPredictorDisk,
    CpuRecentHistoryWorkloadPredictor,
    DoWAverageCpuWorkloadPredictor,
    UserDefinedWorkloadPredictorMapper,
    get_workload_estimator,
)


class TestGetWorkloadEstimator:
    """Test get_workload_estimator"""

    def test_display_names_are_unique(self):
        """Test every estimator has its own display name"""
        names = [estimator_class.name for estimator_class in WORKLOAD_ESTIMATORS]
        assert len(set(names)) == len(names) == 8

    @pytest.mark.parametrize("name", ["DoWAverageCpuWorkloadPredictor", "Day of Week Workload App Tag Predictor"])
    def test_resolve_by_class_or_display_name(self, name, database, clock):
        """Test lookup by class name or display name"""
        cache = WorkloadStatisticsCache()
        estimator = get_workload_estimator(name, database=database, cache=cache, clock=clock)

        assert type(estimator) is DoWAverageCpuWorkloadPredictor
        assert estimator.database is database
        assert estimator.cache is cache

    def test_boot_bucket_size_is_passed(self, database):
        """Test boot estimators receive the bucket size"""
        estimator = get_workload_estimator(
            "BootAverageCpuWorkloadPredictorDisk", database=database, boot_history_bucket_size=900
        )
        assert isinstance(estimator, BootAverageCpuWorkloadPredictorDisk)
        assert estimator.boot_history_bucket_size == 900

    def test_recent_history_window_is_passed(self, data_source):
        """Test the recent history window is passed on"""
        estimator = get_workload_estimator(
            "CPU Recent History Workload Predictor", data_source=data_source, recent_history_window_seconds=30
        )
        assert isinstance(estimator, CpuRecentHistoryWorkloadPredictor)
        assert estimator.window_seconds == 30

    def test_mapper(self, tmp_path, database):
        """Test building the mapper with its rule table"""
        estimator = get_workload_estimator(
            "UserDefinedWorkloadPredictorMapper", database=database, rules_file=tmp_path / "rules.csv"
        )
        assert isinstance(estimator, UserDefinedWorkloadPredictorMapper)
        assert (tmp_path / "rules.csv").exists()

    def test_unknown_name_falls_back_to_recent_history(self, data_source, caplog):
        """Test an unknown name falls back to recent history"""
        with caplog.at_level(logging.WARNING):
            estimator = get_workload_estimator("ArimaPredictor", data_source=data_source)

        assert isinstance(estimator, CpuRecentHistoryWorkloadPredictor)
        assert estimator.data_source is data_source
        assert "ArimaPredictor" in caplog.text
