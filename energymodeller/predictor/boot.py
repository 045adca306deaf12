"""
Boot-indexed predictors.

Utilisation history is bucketed by time since boot (bucket_size seconds per
bucket). A deployed VM is predicted from the bucket matching its current boot
age; without that bucket the mean of all buckets is used, with the maximum
stddev across them. Planned VMs, and VMs with an unknown boot time, have no
boot age and use the aggregate figure for the key.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..datastore.cache import DISK, TAG, WorkloadStatisticsCache
from ..datastore.connector import DatabaseConnector, HostDataSource
from ..types.energyuser import VM, EnergyUserKind
from ..types.usage import VmLoadHistoryBootRecord, VmLoadHistoryRecord
from .base import VmHistoryWorkloadEstimator, average_with_max_std_dev

logger = logging.getLogger(__name__)

DEFAULT_BOOT_BUCKET_SIZE = 500


class BootAverageCpuWorkloadPredictor(VmHistoryWorkloadEstimator):
    """Boot-indexed predictor keyed on application tags."""

    name = "Boot Workload App Tag Predictor"
    dimension = TAG

    def __init__(
        self,
        database: Optional[DatabaseConnector] = None,
        data_source: Optional[HostDataSource] = None,
        cache: Optional[WorkloadStatisticsCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
        boot_history_bucket_size: int = DEFAULT_BOOT_BUCKET_SIZE,
    ):
        super().__init__(database, data_source, cache, clock)
        if boot_history_bucket_size <= 0:
            raise ValueError("Boot history bucket size must be positive")
        self.boot_history_bucket_size = boot_history_bucket_size

    def _boot_trace(self, key: str) -> List[VmLoadHistoryBootRecord]:
        return self.database.boot_trace_for_tag(key, self.boot_history_bucket_size)

    def _history_for(self, vm: VM, key: str) -> VmLoadHistoryRecord:
        if vm.kind is not EnergyUserKind.DEPLOYED_VM:
            return self._aggregate_history(key)
        boot_age = vm.time_from_boot(self._clock())
        if boot_age < 0:
            return self._aggregate_history(key)

        trace = self._boot_trace(key)
        if not trace:
            return self._aggregate_history(key)
        bucket = boot_age // self.boot_history_bucket_size
        for record in trace:
            if record.index == bucket:
                return record
        logger.debug(f"{self.name}: no boot bucket {bucket} for {self.dimension} '{key}', using mean of buckets")
        return average_with_max_std_dev(trace)

    def _from_cache(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self.cache.get_boot_utilisation_for_tags(vm)


class BootAverageCpuWorkloadPredictorDisk(BootAverageCpuWorkloadPredictor):
    """Boot-indexed predictor keyed on disk images."""

    name = "Boot Workload Disk Predictor"
    dimension = DISK

    def _boot_trace(self, key: str) -> List[VmLoadHistoryBootRecord]:
        return self.database.boot_trace_for_disk(key, self.boot_history_bucket_size)

    def _from_cache(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self.cache.get_boot_utilisation_for_disks(vm)
