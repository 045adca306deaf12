"""
Workload estimator contract and the shared history-based implementation.

A workload estimator predicts the CPU utilisation (0-1) a host will see from
the workload placed on it. History-based estimators key on one VM dimension,
application tags or disk images, and average the historical utilisation of
each key the VM carries, keeping the maximum standard deviation seen.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, ClassVar, Collection, List, Optional, Sequence

import numpy as np

from ..datastore.cache import DISK, TAG, WorkloadStatisticsCache
from ..datastore.connector import DatabaseConnector, HostDataSource
from ..exceptions import MissingHistoryError
from ..types.energyuser import VM, Host, WorkloadSource, describe_energy_user, is_vm
from ..types.usage import VmLoadHistoryRecord

logger = logging.getLogger(__name__)


def average_with_max_std_dev(records: Sequence[VmLoadHistoryRecord]) -> VmLoadHistoryRecord:
    """Mean utilisation of the records with the largest stddev among them; zeros when empty."""
    if not records:
        return VmLoadHistoryRecord(utilisation=0.0, std_dev=0.0)
    utilisation = float(np.mean([record.utilisation for record in records]))
    std_dev = max(record.std_dev for record in records)
    return VmLoadHistoryRecord(utilisation=utilisation, std_dev=std_dev)


class WorkloadEstimator(ABC):
    """Predicts the CPU utilisation induced on a host by its workload."""

    name: ClassVar[str] = ""
    requires_vm_information: ClassVar[bool] = True

    def __init__(
        self,
        database: Optional[DatabaseConnector] = None,
        data_source: Optional[HostDataSource] = None,
    ):
        self.database = database
        self.data_source = data_source

    def set_data_source(self, data_source: HostDataSource):
        self.data_source = data_source

    def set_database_connector(self, database: DatabaseConnector):
        self.database = database

    @abstractmethod
    def get_cpu_utilisation(self, host: Host, workload: Collection[WorkloadSource]) -> float:
        """
        Predict the host's CPU utilisation for the given workload.

        Args:
            host: The host the workload runs on (or is planned for)
            workload: VMs and/or applications placed on the host

        Returns:
            Predicted utilisation as a 0-1 fraction (not clamped)
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class VmHistoryWorkloadEstimator(WorkloadEstimator):
    """
    Estimator over the historical utilisation of one VM dimension.

    Subclasses set ``dimension`` (TAG or DISK) and implement the history
    query for a single key and the matching cache lookup. When the statistics
    cache is in use it is consulted first and the connector is only queried
    on a miss.
    """

    dimension: ClassVar[str] = TAG

    def __init__(
        self,
        database: Optional[DatabaseConnector] = None,
        data_source: Optional[HostDataSource] = None,
        cache: Optional[WorkloadStatisticsCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(database, data_source)
        self.cache = cache
        self._clock = clock or datetime.now

    def set_cache(self, cache: WorkloadStatisticsCache):
        self.cache = cache

    def keys_of(self, vm: VM) -> List[str]:
        """The tags or disk images of the VM this estimator keys on."""
        if self.dimension == TAG:
            return list(vm.application_tags)
        if self.dimension == DISK:
            return list(vm.disk_images)
        raise ValueError(f"Unknown estimator dimension: {self.dimension}")

    def get_cpu_utilisation(self, host: Host, workload: Collection[WorkloadSource]) -> float:
        vms = [user for user in workload if is_vm(user) and self.keys_of(user)]
        if not vms:
            return 0.0
        return float(np.mean([self.get_average_cpu_utilisation(vm).utilisation for vm in vms]))

    def get_average_cpu_utilisation(self, vm: VM) -> VmLoadHistoryRecord:
        """Average utilisation over the VM's keys, with the maximum stddev seen."""
        if self.cache is not None and self.cache.is_in_use():
            cached = self._from_cache(vm)
            if cached is not None:
                return cached

        if self.database is None:
            logger.warning(
                f"{self.name}: no database connector set, "
                f"returning zero utilisation for {describe_energy_user(vm)}"
            )
            return VmLoadHistoryRecord(utilisation=0.0, std_dev=0.0)

        records = []
        for key in self.keys_of(vm):
            try:
                records.append(self._history_for(vm, key))
            except MissingHistoryError:
                logger.warning(f"{self.name}: no history for {self.dimension} '{key}'")
        return average_with_max_std_dev(records)

    def _aggregate_history(self, key: str) -> VmLoadHistoryRecord:
        if self.dimension == TAG:
            return self.database.average_utilisation_for_tag(key)
        return self.database.average_utilisation_for_disk(key)

    @abstractmethod
    def _history_for(self, vm: VM, key: str) -> VmLoadHistoryRecord:
        """Historical utilisation of one key, as it applies to the VM right now."""

    @abstractmethod
    def _from_cache(self, vm: VM) -> Optional[VmLoadHistoryRecord]:
        """Cached utilisation for the VM, or None on a miss."""
