"""
Interfaces of the external collaborators used by the workload estimators.

DatabaseConnector answers aggregate utilisation queries against the
historical store; HostDataSource supplies live measurements. Concrete
backends live outside this package. Connectors raise MissingHistoryError for
keys they hold no history for.
"""

from abc import ABC, abstractmethod
from typing import List

from ..types.energyuser import DeployedVM, Host
from ..types.measurement import HostMeasurement, VmMeasurement
from ..types.usage import (
    VmLoadHistoryBootRecord,
    VmLoadHistoryRecord,
    VmLoadHistoryWeekRecord,
)


class DatabaseConnector(ABC):
    """Read-only, query-by-key access to historical CPU utilisation."""

    @abstractmethod
    def average_utilisation_for_tag(self, tag: str) -> VmLoadHistoryRecord:
        """Mean utilisation and stddev of VMs carrying the application tag."""

    @abstractmethod
    def average_utilisation_for_disk(self, disk_ref: str) -> VmLoadHistoryRecord:
        """Mean utilisation and stddev of VMs booted from the disk image."""

    @abstractmethod
    def boot_trace_for_tag(self, tag: str, bucket_size: int) -> List[VmLoadHistoryBootRecord]:
        """Utilisation per post-boot bucket of bucket_size seconds, by tag."""

    @abstractmethod
    def boot_trace_for_disk(self, disk_ref: str, bucket_size: int) -> List[VmLoadHistoryBootRecord]:
        """Utilisation per post-boot bucket of bucket_size seconds, by disk image."""

    @abstractmethod
    def week_trace_for_tag(self, tag: str) -> List[VmLoadHistoryWeekRecord]:
        """Utilisation per (day of week, hour of day), by tag."""

    @abstractmethod
    def week_trace_for_disk(self, disk_ref: str) -> List[VmLoadHistoryWeekRecord]:
        """Utilisation per (day of week, hour of day), by disk image."""


class HostDataSource(ABC):
    """Live measurement source for hosts and VMs."""

    @abstractmethod
    def get_host_data(self, host: Host) -> HostMeasurement:
        """Latest measurement of the host."""

    @abstractmethod
    def get_vm_data(self, vm: DeployedVM) -> VmMeasurement:
        """Latest measurement of the VM."""

    @abstractmethod
    def get_cpu_utilisation(self, host: Host, duration_seconds: int) -> float:
        """Average CPU utilisation (0-1) of the host over the last duration_seconds."""
