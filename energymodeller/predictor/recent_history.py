"""
Recent history predictor - assumes the near future looks like the last minute.
"""

import logging
from typing import Collection, Optional

from ..datastore.connector import HostDataSource
from ..types.energyuser import Host, WorkloadSource
from .base import WorkloadEstimator

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60


class CpuRecentHistoryWorkloadPredictor(WorkloadEstimator):
    """
    Predicts the host's CPU utilisation as its measured average over a
    recent window. The workload itself is not inspected.
    """

    name = "CPU Recent History Workload Predictor"
    requires_vm_information = False

    def __init__(
        self,
        data_source: Optional[HostDataSource] = None,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
    ):
        super().__init__(data_source=data_source)
        self.window_seconds = window_seconds

    def get_cpu_utilisation(self, host: Host, workload: Collection[WorkloadSource]) -> float:
        if self.data_source is None:
            logger.warning(f"{self.name}: no data source set, returning zero utilisation for {host.host_name}")
            return 0.0
        return self.data_source.get_cpu_utilisation(host, self.window_seconds)
