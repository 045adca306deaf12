"""
Usage and load history records.

UsageRecord and HostEnergyRecord are produced from live measurements; the
VmLoadHistory* family is what the historical store returns for per-tag and
per-disk utilisation queries.
"""

from dataclasses import dataclass, field
from datetime import datetime
from functools import total_ordering
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field

from .energyuser import EnergyUsageSource


@total_ordering
@dataclass(frozen=True, eq=False)
class UsageRecord:
    """
    Load induced by one energy user at one instant.

    Equality is (energy user, time); records order by time.
    """
    energy_user: EnergyUsageSource
    time: int
    load: float

    def __eq__(self, other):
        if not isinstance(other, UsageRecord):
            return NotImplemented
        return self.time == other.time and self.energy_user == other.energy_user

    def __hash__(self):
        return hash((self.energy_user, self.time))

    def __lt__(self, other: "UsageRecord") -> bool:
        return self.time < other.time


@dataclass(frozen=True)
class TimePeriod:
    start_time: datetime
    end_time: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()


@dataclass(frozen=True)
class HistoricUsageRecord:
    """Aggregate power statistics for a set of energy users over a time window."""
    energy_users: FrozenSet[EnergyUsageSource]
    avg_power_used: float = 0.0  # watts
    avg_current_used: float = 0.0  # amps
    avg_voltage_used: float = 0.0  # volts
    total_energy_used: float = 0.0  # kWh
    duration: Optional[TimePeriod] = None

    @property
    def record_start_time(self) -> Optional[datetime]:
        return self.duration.start_time if self.duration else None

    @property
    def record_end_time(self) -> Optional[datetime]:
        return self.duration.end_time if self.duration else None


@total_ordering
@dataclass(frozen=True)
class HostEnergyRecord:
    """One host power sample (time in epoch seconds, power in watts)."""
    time: int
    power: float
    energy: float = field(default=0.0, compare=False)

    def __lt__(self, other: "HostEnergyRecord") -> bool:
        return self.time < other.time


class VmLoadHistoryRecord(BaseModel):
    """Historical CPU utilisation (0-1) and its standard deviation."""
    model_config = ConfigDict(frozen=True)

    utilisation: float = Field(..., description="Mean CPU utilisation fraction")
    std_dev: float = Field(0.0, description="Standard deviation of the utilisation")


class VmLoadHistoryBootRecord(VmLoadHistoryRecord):
    """Utilisation for one post-boot time bucket."""
    index: int = Field(..., ge=-1, description="Boot bucket index, -1 when not bucketed")


class VmLoadHistoryWeekRecord(VmLoadHistoryRecord):
    """Utilisation for one (day of week, hour of day) bucket."""
    day_of_week: int = Field(..., ge=1, le=7, description="ISO day of week, 1 = Monday")
    hour_of_day: int = Field(..., ge=0, le=23, description="Hour of day")
