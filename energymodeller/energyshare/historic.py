"""
Historic load-based division - attributes energy over a time series.

Host power samples and load fraction snapshots are paired by timestamp. For
each consecutive pair of samples in which a user is present in both
snapshots, the interval's energy (trapezoid rule, Wh) is multiplied by the
user's average load fraction over the interval.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple

from ..types.energyuser import EnergyUsageSource, Host
from ..types.load_fraction import HostEnergyUserLoadFraction
from ..types.usage import HostEnergyRecord

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0


def clean_data(
    load_fraction: List[HostEnergyUserLoadFraction],
    energy_usage: List[HostEnergyRecord],
) -> List[Tuple[HostEnergyRecord, HostEnergyUserLoadFraction]]:
    """
    Pair host energy records and load snapshots that share a timestamp.

    Both lists must be sorted by time. On a mismatch the older head is
    dropped, so unpaired samples from either side are discarded.
    """
    answer = []
    i = j = 0
    while i < len(load_fraction) and j < len(energy_usage):
        load, energy = load_fraction[i], energy_usage[j]
        if load.time == energy.time:
            answer.append((energy, load))
            i += 1
            j += 1
        elif load.time < energy.time:
            i += 1
        else:
            j += 1
    return answer


def _interval_energy(
    energy1: HostEnergyRecord,
    energy2: HostEnergyRecord,
    load1: HostEnergyUserLoadFraction,
    load2: HostEnergyUserLoadFraction,
) -> Tuple[float, float]:
    """Interval length in hours and host energy (Wh) over it, offsets included."""
    hours = (energy2.time - energy1.time) / SECONDS_PER_HOUR
    power1 = energy1.power + load1.host_power_offset
    power2 = energy2.power + load2.host_power_offset
    return hours, abs(hours * (power1 + power2) * 0.5)


class HistoricLoadBasedDivision(ABC):
    """Base class of divisions that work over host power and load history."""

    def __init__(self, host: Optional[Host] = None):
        self.host = host
        self._energy_users: Set[EnergyUsageSource] = set()
        self._energy_usage: List[HostEnergyRecord] = []
        self._load_fraction: List[HostEnergyUserLoadFraction] = []

    def add_energy_user(self, user: EnergyUsageSource):
        self._energy_users.add(user)

    def add_energy_users(self, users: Iterable[EnergyUsageSource]):
        self._energy_users.update(users)

    def remove_energy_user(self, user: EnergyUsageSource):
        self._energy_users.discard(user)

    @property
    def energy_users(self) -> List[EnergyUsageSource]:
        return list(self._energy_users)

    @property
    def energy_user_count(self) -> int:
        return len(self._energy_users)

    def set_energy_usage(self, energy_usage: Iterable[HostEnergyRecord]):
        self._energy_usage = sorted(energy_usage)

    def set_load_fraction(self, load_fraction: Iterable[HostEnergyUserLoadFraction]):
        self._load_fraction = sorted(load_fraction)

    def duration(self) -> int:
        """Seconds covered by the host energy records."""
        if not self._energy_usage:
            return 0
        return self._energy_usage[-1].time - self._energy_usage[0].time

    def duration_for(self, user: EnergyUsageSource) -> int:
        """Seconds between the first and last snapshot that contain the user."""
        times = [snapshot.time for snapshot in self._load_fraction if user in snapshot.fraction]
        if not times:
            return 0
        return times[-1] - times[0]

    @property
    def start(self) -> Optional[datetime]:
        if not self._energy_usage:
            return None
        return datetime.fromtimestamp(self._energy_usage[0].time)

    @property
    def end(self) -> Optional[datetime]:
        if not self._energy_usage:
            return None
        return datetime.fromtimestamp(self._energy_usage[-1].time)

    def _paired_intervals(self, user: EnergyUsageSource):
        pairs = clean_data(self._load_fraction, self._energy_usage)
        for (energy1, load1), (energy2, load2) in zip(pairs, pairs[1:]):
            if user in load1.fraction and user in load2.fraction:
                yield energy1, energy2, load1, load2

    @abstractmethod
    def get_energy_usage(self, user: EnergyUsageSource) -> float:
        """Energy (Wh) attributed to the user across the recorded history."""


class LoadBasedDivision(HistoricLoadBasedDivision):
    """Splits all host energy, idle included, by load fraction."""

    def get_energy_usage(self, user: EnergyUsageSource) -> float:
        user_energy = 0.0
        for energy1, energy2, load1, load2 in self._paired_intervals(user):
            _, delta_energy = _interval_energy(energy1, energy2, load1, load2)
            avg_load_fraction = (load1.get_fraction_for(user) + load2.get_fraction_for(user)) / 2
            user_energy += delta_energy * avg_load_fraction
        return user_energy


class LoadBasedDivisionWithIdleEnergy(HistoricLoadBasedDivision):
    """Splits idle energy evenly and only the active remainder by load fraction."""

    def get_energy_usage(self, user: EnergyUsageSource) -> float:
        idle_power = self.host.idle_power_consumption
        user_energy = 0.0
        for energy1, energy2, load1, load2 in self._paired_intervals(user):
            hours, delta_energy = _interval_energy(energy1, energy2, load1, load2)
            user_count = (len(load1.fraction) + len(load2.fraction)) / 2
            idle_energy = idle_power * hours
            active_energy = delta_energy - idle_energy
            avg_load_fraction = (load1.get_fraction_for(user) + load2.get_fraction_for(user)) / 2
            user_energy += idle_energy / user_count + active_energy * avg_load_fraction
        return user_energy
