"""
Load fractions of the energy users on a host.

A HostEnergyUserLoadFraction is a timestamped snapshot of how a host's
measured CPU load splits across its tenants. The static derivations here are
shared by the load-based energy share rules.
"""

import logging
from functools import total_ordering
from typing import Collection, Dict, Iterable, List, Sequence, Set

from .energyuser import (
    ApplicationOnHost,
    DeployedVM,
    EnergyUsageSource,
    EnergyUserKind,
    Host,
    filter_kind,
)
from .measurement import ApplicationMeasurement, VmMeasurement
from .usage import UsageRecord

logger = logging.getLogger(__name__)


def _fraction_ladder(users, loads, core_counts=None) -> Dict[EnergyUsageSource, float]:
    """
    Turn per-user CPU loads into weights.

    Fallbacks, in order:
    1. any load missing -> every user gets weight 1.0
    2. total load is zero -> every user gets 1 / count
    3. otherwise load / total, times max(cores, 1) when core counts are given
    """
    if any(load is None for load in loads):
        logger.warning("Using fallback due to no CPU load information.")
        return {user: 1.0 for user in users}
    total_load = sum(loads)
    if total_load == 0:
        logger.warning("Using fallback due to CPU total load being equal to zero.")
        count = len(users)
        return {user: 1.0 / count for user in users}
    answer = {}
    for index, user in enumerate(users):
        fraction = loads[index] / total_load
        if core_counts is not None:
            fraction = max(core_counts[index], 1) * fraction
        answer[user] = fraction
    return answer


@total_ordering
class HostEnergyUserLoadFraction:
    """
    Load fraction snapshot for one host at one time.

    Snapshots order by time. The host power offset (e.g. a share of
    datacenter cooling) is the only value meant to change after the
    fractions are assigned.
    """

    def __init__(self, host: Host, time: int):
        self.host = host
        self.time = time
        self.fraction: Dict[EnergyUsageSource, float] = {}
        self.host_power_offset = 0.0

    def __eq__(self, other):
        if not isinstance(other, HostEnergyUserLoadFraction):
            return NotImplemented
        return self.time == other.time and self.host == other.host

    def __hash__(self):
        return hash((self.host, self.time))

    def __lt__(self, other: "HostEnergyUserLoadFraction") -> bool:
        return self.time < other.time

    def __repr__(self):
        return f"HostEnergyUserLoadFraction(host={self.host.host_name!r}, time={self.time}, users={len(self.fraction)})"

    @property
    def energy_usage_sources(self) -> List[EnergyUsageSource]:
        return list(self.fraction.keys())

    def energy_users_as_vms(self) -> List[DeployedVM]:
        return filter_kind(self.fraction, EnergyUserKind.DEPLOYED_VM)

    def energy_users_as_apps(self) -> List[ApplicationOnHost]:
        return filter_kind(self.fraction, EnergyUserKind.APPLICATION)

    def add_fraction(self, usage_source: EnergyUsageSource, fraction: float):
        self.fraction[usage_source] = fraction

    def set_fraction_from_measurements(self, load: Sequence[VmMeasurement]):
        self.fraction = self.get_fraction(load)

    def set_fraction_from_usage_records(self, load: Collection[UsageRecord]):
        self.fraction = self.get_fraction_from_usage_records(load)

    def get_fraction_for(self, user: EnergyUsageSource) -> float:
        """Fraction of the given user, 0 when it is not part of this snapshot."""
        return self.fraction.get(user, 0.0)

    @property
    def vm_idle_power(self) -> float:
        """Host idle power split evenly across the users in this snapshot, 0 when empty."""
        if not self.fraction:
            return 0.0
        return self.host.idle_power_consumption / len(self.fraction)

    @staticmethod
    def get_fraction(
        load: Sequence[VmMeasurement],
        consider_core_count: bool = False,
    ) -> Dict[EnergyUsageSource, float]:
        """
        Fraction of the total measured CPU load attributable to each VM.

        Args:
            load: One measurement per VM on the host
            consider_core_count: Multiply each fraction by the VM's core count

        Returns:
            Mapping of VM to weight (see _fraction_ladder for fallbacks)
        """
        for measurement in load:
            logger.debug(f"VM: {measurement.vm.name} CPU: {measurement.cpu_utilisation}")
        vms = [measurement.vm for measurement in load]
        loads = [measurement.cpu_utilisation for measurement in load]
        cores = [vm.cpus for vm in vms] if consider_core_count else None
        return _fraction_ladder(vms, loads, cores)

    @staticmethod
    def get_application_fraction(load: Sequence[ApplicationMeasurement]) -> Dict[EnergyUsageSource, float]:
        """Fraction of the total measured CPU load attributable to each application."""
        for measurement in load:
            logger.debug(f"APP: {measurement.application.name} CPU: {measurement.cpu_utilisation}")
        apps = [measurement.application for measurement in load]
        loads = [measurement.cpu_utilisation for measurement in load]
        return _fraction_ladder(apps, loads)

    @staticmethod
    def get_fraction_from_usage_records(load: Collection[UsageRecord]) -> Dict[EnergyUsageSource, float]:
        records = list(load)
        return _fraction_ladder([r.energy_user for r in records], [r.load for r in records])

    @staticmethod
    def collect_energy_users(fraction_data: Iterable["HostEnergyUserLoadFraction"]) -> Set[EnergyUsageSource]:
        answer = set()
        for snapshot in fraction_data:
            answer.update(snapshot.energy_usage_sources)
        return answer

    @staticmethod
    def collect_vms(fraction_data: Iterable["HostEnergyUserLoadFraction"]) -> Set[DeployedVM]:
        answer = set()
        for snapshot in fraction_data:
            answer.update(snapshot.energy_users_as_vms())
        return answer

    @staticmethod
    def collect_apps(fraction_data: Iterable["HostEnergyUserLoadFraction"]) -> Set[ApplicationOnHost]:
        answer = set()
        for snapshot in fraction_data:
            answer.update(snapshot.energy_users_as_apps())
        return answer
