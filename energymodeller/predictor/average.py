"""
Basic average predictors - one aggregate utilisation figure per key.
"""

from typing import Optional

from ..datastore.cache import DISK, TAG
from ..types.energyuser import VM
from ..types.usage import VmLoadHistoryRecord
from .base import VmHistoryWorkloadEstimator


class BasicAverageCpuWorkloadPredictor(VmHistoryWorkloadEstimator):
    """Predicts from the average utilisation of VMs sharing an application tag."""

    name = "Average Workload App Tag Predictor"
    dimension = TAG

    def _history_for(self, vm: VM, key: str) -> VmLoadHistoryRecord:
        return self._aggregate_history(key)

    def _from_cache(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self.cache.get_utilisation_for_tags(vm)


class BasicAverageCpuWorkloadPredictorDisk(VmHistoryWorkloadEstimator):
    """Predicts from the average utilisation of VMs booted from the same disk image."""

    name = "Average Workload Disk Predictor"
    dimension = DISK

    def _history_for(self, vm: VM, key: str) -> VmLoadHistoryRecord:
        return self._aggregate_history(key)

    def _from_cache(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self.cache.get_utilisation_for_disks(vm)
