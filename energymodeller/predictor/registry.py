"""
Estimator registry - resolves a configured estimator name to a wired instance.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from ..datastore.cache import WorkloadStatisticsCache
from ..datastore.connector import DatabaseConnector, HostDataSource
from .average import BasicAverageCpuWorkloadPredictor, BasicAverageCpuWorkloadPredictorDisk
from .base import WorkloadEstimator
from .boot import DEFAULT_BOOT_BUCKET_SIZE, BootAverageCpuWorkloadPredictor, BootAverageCpuWorkloadPredictorDisk
from .day_of_week import DoWAverageCpuWorkloadPredictor, DoWAverageCpuWorkloadPredictorDisk
from .mapper import UserDefinedWorkloadPredictorMapper
from .recent_history import DEFAULT_WINDOW_SECONDS, CpuRecentHistoryWorkloadPredictor

logger = logging.getLogger(__name__)

WORKLOAD_ESTIMATORS = (
    BasicAverageCpuWorkloadPredictor,
    BasicAverageCpuWorkloadPredictorDisk,
    BootAverageCpuWorkloadPredictor,
    BootAverageCpuWorkloadPredictorDisk,
    DoWAverageCpuWorkloadPredictor,
    DoWAverageCpuWorkloadPredictorDisk,
    CpuRecentHistoryWorkloadPredictor,
    UserDefinedWorkloadPredictorMapper,
)


def find_estimator_class(name: str) -> Optional[type]:
    """Estimator class by display name or class name."""
    for estimator_class in WORKLOAD_ESTIMATORS:
        if name in (estimator_class.name, estimator_class.__name__):
            return estimator_class
    return None


def get_workload_estimator(
    name: str,
    database: Optional[DatabaseConnector] = None,
    data_source: Optional[HostDataSource] = None,
    cache: Optional[WorkloadStatisticsCache] = None,
    clock: Optional[Callable[[], datetime]] = None,
    boot_history_bucket_size: int = DEFAULT_BOOT_BUCKET_SIZE,
    recent_history_window_seconds: int = DEFAULT_WINDOW_SECONDS,
    rules_file: Optional[Union[str, Path]] = None,
) -> WorkloadEstimator:
    """
    Build the named estimator with its collaborators injected.

    Unknown names fall back to the recent history estimator.
    """
    estimator_class = find_estimator_class(name)
    if estimator_class is None:
        logger.warning(f"Unknown workload estimator '{name}', using {CpuRecentHistoryWorkloadPredictor.name}")
        estimator_class = CpuRecentHistoryWorkloadPredictor

    if estimator_class is CpuRecentHistoryWorkloadPredictor:
        return CpuRecentHistoryWorkloadPredictor(data_source, recent_history_window_seconds)
    if estimator_class is UserDefinedWorkloadPredictorMapper:
        return UserDefinedWorkloadPredictorMapper(
            rules_file=rules_file,
            database=database,
            data_source=data_source,
            cache=cache,
            clock=clock,
            boot_history_bucket_size=boot_history_bucket_size,
            recent_history_window_seconds=recent_history_window_seconds,
        )
    if issubclass(estimator_class, BootAverageCpuWorkloadPredictor):
        return estimator_class(database, data_source, cache, clock, boot_history_bucket_size)
    return estimator_class(database, data_source, cache, clock)
