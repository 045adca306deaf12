"""
Domain types: hosts, energy users, measurements and usage records.
"""

from .energyuser import (
    ApplicationOnHost,
    DeployedVM,
    EnergyUsageSource,
    EnergyUserKind,
    GeneralPowerConsumer,
    Host,
    HostEnergyCalibrationData,
    HostProfileData,
    JobStatus,
    PlannedVM,
    VM,
    WorkloadSource,
    describe_energy_user,
)
from .load_fraction import HostEnergyUserLoadFraction
from .measurement import ApplicationMeasurement, HostMeasurement, VmMeasurement
from .usage import (
    HistoricUsageRecord,
    HostEnergyRecord,
    TimePeriod,
    UsageRecord,
    VmLoadHistoryBootRecord,
    VmLoadHistoryRecord,
    VmLoadHistoryWeekRecord,
)

__all__ = [
    "ApplicationOnHost",
    "DeployedVM",
    "EnergyUsageSource",
    "EnergyUserKind",
    "GeneralPowerConsumer",
    "Host",
    "HostEnergyCalibrationData",
    "HostProfileData",
    "JobStatus",
    "PlannedVM",
    "VM",
    "WorkloadSource",
    "describe_energy_user",
    "HostEnergyUserLoadFraction",
    "ApplicationMeasurement",
    "HostMeasurement",
    "VmMeasurement",
    "HistoricUsageRecord",
    "HostEnergyRecord",
    "TimePeriod",
    "UsageRecord",
    "VmLoadHistoryBootRecord",
    "VmLoadHistoryRecord",
    "VmLoadHistoryWeekRecord",
]
