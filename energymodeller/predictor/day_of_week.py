"""
Day-of-week predictors - utilisation history by (ISO day of week, hour of day).
"""

from datetime import datetime
from typing import List, Optional, Sequence

from ..datastore.cache import DISK, TAG
from ..types.energyuser import VM, EnergyUserKind
from ..types.usage import VmLoadHistoryRecord, VmLoadHistoryWeekRecord
from .base import VmHistoryWorkloadEstimator, average_with_max_std_dev


def get_utilisation(records: Sequence[VmLoadHistoryWeekRecord], now: datetime) -> VmLoadHistoryRecord:
    """
    Pick the record for the current day of week and hour.

    When no record matches exactly, the mean utilisation of all records is
    returned together with the maximum stddev across them.
    """
    day_of_week = now.isoweekday()
    for record in records:
        if record.day_of_week == day_of_week and record.hour_of_day == now.hour:
            return record
    return average_with_max_std_dev(records)


class DoWAverageCpuWorkloadPredictor(VmHistoryWorkloadEstimator):
    """Day-of-week predictor keyed on application tags."""

    name = "Day of Week Workload App Tag Predictor"
    dimension = TAG

    def _week_trace(self, key: str) -> List[VmLoadHistoryWeekRecord]:
        return self.database.week_trace_for_tag(key)

    def _history_for(self, vm: VM, key: str) -> VmLoadHistoryRecord:
        # Planned VMs have no running history to align with the clock.
        if vm.kind is not EnergyUserKind.DEPLOYED_VM:
            return self._aggregate_history(key)
        trace = self._week_trace(key)
        if not trace:
            return self._aggregate_history(key)
        return get_utilisation(trace, self._clock())

    def _from_cache(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self.cache.get_dow_utilisation_for_tags(vm)


class DoWAverageCpuWorkloadPredictorDisk(DoWAverageCpuWorkloadPredictor):
    """Day-of-week predictor keyed on disk images."""

    name = "Day of Week Workload Disk Predictor"
    dimension = DISK

    def _week_trace(self, key: str) -> List[VmLoadHistoryWeekRecord]:
        return self.database.week_trace_for_disk(key)

    def _from_cache(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self.cache.get_dow_utilisation_for_disks(vm)
