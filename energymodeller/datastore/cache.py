"""
Workload statistics cache - recently observed utilisation by tag and disk.

The cache is shared between the measurement ingestion task and prediction
requests. Statistics per key are immutable values replaced under a lock, so
a reader always observes either the old or the new value of a key.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence

import numpy as np

from ..types.energyuser import VM, EnergyUserKind
from ..types.measurement import VmMeasurement
from ..types.usage import VmLoadHistoryRecord

logger = logging.getLogger(__name__)

TAG = "tag"
DISK = "disk"


@dataclass(frozen=True)
class UtilisationStatistics:
    """Running mean and variance (Welford) of CPU utilisation samples."""
    count: int = 0
    mean: float = 0.0
    m2: float = 0.0

    def add(self, value: float) -> "UtilisationStatistics":
        count = self.count + 1
        delta = value - self.mean
        mean = self.mean + delta / count
        m2 = self.m2 + delta * (value - mean)
        return UtilisationStatistics(count, mean, m2)

    @property
    def std_dev(self) -> float:
        if self.count < 2:
            return 0.0
        return (self.m2 / (self.count - 1)) ** 0.5


class WorkloadStatisticsCache:
    """
    In-memory utilisation statistics keyed by tag or disk image.

    Keys are kept for the aggregate, per boot bucket and per (ISO day of
    week, hour of day). Constructed once per service and injected into the
    ingestion path and the estimators.
    """

    def __init__(
        self,
        in_use: bool = False,
        boot_bucket_size: int = 500,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._in_use = in_use
        self.boot_bucket_size = boot_bucket_size
        self._clock = clock or datetime.now
        self._lock = threading.Lock()
        self._stats: Dict[Hashable, UtilisationStatistics] = {}

    def is_in_use(self) -> bool:
        return self._in_use

    def set_in_use(self, in_use: bool):
        self._in_use = in_use

    def size(self) -> int:
        with self._lock:
            return len(self._stats)

    def clear(self):
        with self._lock:
            self._stats = {}

    def close(self):
        """Disable the cache and drop all statistics."""
        self.set_in_use(False)
        self.clear()

    def add_vm_to_statistics(self, vm_measurements: Iterable[VmMeasurement]):
        """Fold fresh VM measurements into the statistics."""
        added = 0
        for measurement in vm_measurements:
            if not measurement.has_cpu_data:
                continue
            keys = self._keys_for(measurement)
            with self._lock:
                for key in keys:
                    current = self._stats.get(key, UtilisationStatistics())
                    self._stats[key] = current.add(measurement.cpu_utilisation)
            added += 1
        logger.debug(f"Added {added} VM measurements to workload statistics")

    def _keys_for(self, measurement: VmMeasurement) -> List[Hashable]:
        vm = measurement.vm
        when = datetime.fromtimestamp(measurement.clock)
        bucket = None
        if vm.created is not None:
            boot_age = measurement.clock - int(vm.created.timestamp())
            if boot_age >= 0:
                bucket = boot_age // self.boot_bucket_size
        keys = []
        for dimension, values in ((TAG, vm.application_tags), (DISK, vm.disk_images)):
            for value in values:
                keys.append((dimension, value))
                keys.append((dimension, value, "dow", when.isoweekday(), when.hour))
                if bucket is not None:
                    keys.append((dimension, value, "boot", bucket))
        return keys

    def _lookup(self, keys: Sequence[Hashable]) -> Optional[VmLoadHistoryRecord]:
        """Mean utilisation over the keys present, with the maximum stddev; None on a full miss."""
        with self._lock:
            found = [self._stats[key] for key in keys if key in self._stats]
        if not found:
            return None
        utilisation = float(np.mean([stats.mean for stats in found]))
        std_dev = max(stats.std_dev for stats in found)
        return VmLoadHistoryRecord(utilisation=utilisation, std_dev=std_dev)

    def _boot_bucket(self, vm: VM) -> Optional[int]:
        if vm.kind is not EnergyUserKind.DEPLOYED_VM:
            return None
        boot_age = vm.time_from_boot(self._clock())
        if boot_age < 0:
            return None
        return boot_age // self.boot_bucket_size

    def get_utilisation_for_tags(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self._lookup([(TAG, tag) for tag in vm.application_tags])

    def get_utilisation_for_disks(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        return self._lookup([(DISK, disk) for disk in vm.disk_images])

    def get_boot_utilisation_for_tags(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        bucket = self._boot_bucket(vm)
        if bucket is None:
            return None
        return self._lookup([(TAG, tag, "boot", bucket) for tag in vm.application_tags])

    def get_boot_utilisation_for_disks(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        bucket = self._boot_bucket(vm)
        if bucket is None:
            return None
        return self._lookup([(DISK, disk, "boot", bucket) for disk in vm.disk_images])

    def get_dow_utilisation_for_tags(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        now = self._clock()
        return self._lookup([(TAG, tag, "dow", now.isoweekday(), now.hour) for tag in vm.application_tags])

    def get_dow_utilisation_for_disks(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        now = self._clock()
        return self._lookup([(DISK, disk, "dow", now.isoweekday(), now.hour) for disk in vm.disk_images])
