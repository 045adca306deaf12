"""
Energy user data models - hosts and the tenants that draw power from them.

An energy user is one of a closed set of variants, identified by
EnergyUserKind. Code that needs per-variant behaviour dispatches on ``kind``
and raises on an unrecognised value rather than relying on isinstance chains.
All energy users are used as dictionary keys in weight and fraction maps, so
each variant defines a stable equality/hash.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Iterable, List, Optional


class EnergyUserKind(str, Enum):
    """Variant tag of an energy user."""
    DEPLOYED_VM = "deployed_vm"
    PLANNED_VM = "planned_vm"
    APPLICATION = "application"
    GENERAL_POWER_CONSUMER = "general_power_consumer"


VM_KINDS = frozenset({EnergyUserKind.DEPLOYED_VM, EnergyUserKind.PLANNED_VM})


class JobStatus(str, Enum):
    """Scheduler state of an application running on a host."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUSPENDED = "SUSPENDED"
    STOPPED = "STOPPED"
    COMPLETING = "COMPLETING"
    COMPLETED = "COMPLETED"
    CONFIGURING = "CONFIGURING"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"
    PREEMPTED = "PREEMPTED"
    BOOT_FAIL = "BOOT_FAIL"
    NODE_FAIL = "NODE_FAIL"
    REVOKED = "REVOKED"
    SPECIAL_EXIT = "SPECIAL_EXIT"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["JobStatus"]:
        """
        Parse a scheduler status string.

        Accepts an exact status name or an unambiguous prefix of one
        (schedulers often truncate, e.g. "COMPLETI"). Returns None when the
        value is empty or unknown.
        """
        if not value:
            return None
        value = value.strip().upper()
        try:
            return cls(value)
        except ValueError:
            pass
        for status in cls:
            if status.value.startswith(value):
                return status
        return None


# ============================================================================
# Hosts
# ============================================================================

@dataclass(frozen=True)
class HostEnergyCalibrationData:
    """One calibration point: utilisation fractions and the watts drawn at them."""
    cpu_usage: float
    memory_usage: float
    watts_used: float


@dataclass(frozen=True)
class HostProfileData:
    """A benchmarked host property, e.g. ("flop", 1.2e9)."""
    type: str
    value: float


@dataclass(eq=False)
class Host:
    """
    A physical host whose power is divided among its tenants.

    Identity is the host name.
    """
    id: int
    host_name: str
    core_count: int = 0
    ram_mb: int = 0
    disk_gb: float = 0.0
    available: bool = True
    state: str = ""
    default_idle_power_consumption: float = 0.0
    calibration_data: List[HostEnergyCalibrationData] = field(default_factory=list)
    profile_data: List[HostProfileData] = field(default_factory=list)

    def __post_init__(self):
        if self.core_count < 0:
            raise ValueError("The amount of cores must not be less than zero.")
        if self.ram_mb < 0:
            raise ValueError("The amount of memory must not be less than zero.")
        if self.disk_gb < 0:
            raise ValueError("The amount of disk size must not be less than zero.")

    def __eq__(self, other):
        if not isinstance(other, Host):
            return NotImplemented
        return self.host_name == other.host_name

    def __hash__(self):
        return hash(self.host_name)

    def __lt__(self, other: "Host") -> bool:
        return self.host_name < other.host_name

    @property
    def is_calibrated(self) -> bool:
        return bool(self.calibration_data)

    @property
    def idle_power_consumption(self) -> float:
        """Lowest calibrated wattage, or the default idle power when uncalibrated."""
        if not self.calibration_data:
            return self.default_idle_power_consumption
        return min(point.watts_used for point in self.calibration_data)

    @property
    def maximum_power_consumption(self) -> float:
        if not self.calibration_data:
            return math.nan
        return max(point.watts_used for point in self.calibration_data)

    def average_of_profile_data(self, data_type: str) -> float:
        values = [p.value for p in self.profile_data if p.type == data_type]
        if not values:
            return 0.0
        return sum(values) / len(values)

    @property
    def flops_per_watt(self) -> float:
        flops = self.average_of_profile_data("flop")
        if flops == 0:
            return math.nan
        return flops / self.maximum_power_consumption

    def add_calibration_data(self, data: HostEnergyCalibrationData):
        self.calibration_data.append(data)

    def add_profile_data(self, data: HostProfileData):
        self.profile_data.append(data)


# ============================================================================
# Energy users
# ============================================================================

class EnergyUsageSource:
    """Anything that can be allocated a share of a host's energy."""
    kind: ClassVar[EnergyUserKind]


class WorkloadSource(EnergyUsageSource):
    """An energy user that induces CPU workload (VMs and applications)."""


class VM(WorkloadSource):
    """Shared behaviour of deployed and planned virtual machines."""
    cpus: int
    application_tags: List[str]
    disk_images: List[str]

    def has_application_tags(self) -> bool:
        return bool(self.application_tags)

    def has_disk_images(self) -> bool:
        return bool(self.disk_images)

    def add_application_tag(self, tag: str):
        if tag not in self.application_tags:
            self.application_tags.append(tag)

    def add_disk_image(self, disk_image: str):
        if disk_image not in self.disk_images:
            self.disk_images.append(disk_image)


@dataclass(eq=False)
class DeployedVM(VM):
    """A VM already running on a host. Identity is (id, name)."""
    id: int
    name: str
    cpus: int = 1
    ram_mb: int = 0
    disk_gb: float = 0.0
    application_tags: List[str] = field(default_factory=list)
    disk_images: List[str] = field(default_factory=list)
    ip_address: Optional[str] = None
    state: Optional[str] = None
    created: Optional[datetime] = None
    allocated_to: Optional[Host] = None

    kind: ClassVar[EnergyUserKind] = EnergyUserKind.DEPLOYED_VM

    def __eq__(self, other):
        if not isinstance(other, DeployedVM):
            return NotImplemented
        return self.id == other.id and self.name == other.name

    def __hash__(self):
        return hash((self.id, self.name))

    def time_from_boot(self, now: Optional[datetime] = None) -> int:
        """Seconds since the VM was created, or -1 when its boot time is unknown."""
        if self.created is None:
            return -1
        created = self.created
        now = now or datetime.now(created.tzinfo)
        # Naive datetimes are local time.
        if now.tzinfo is None and created.tzinfo is not None:
            now = now.astimezone(created.tzinfo)
        elif now.tzinfo is not None and created.tzinfo is None:
            created = created.astimezone(now.tzinfo)
        return int((now - created).total_seconds())

    def idle_power_consumption(self, vm_count: int) -> float:
        if self.allocated_to is None:
            return 0.0
        return self.allocated_to.idle_power_consumption / vm_count


@dataclass(eq=False)
class PlannedVM(VM):
    """A VM that is being considered for placement. Identity is the object itself."""
    name: str = ""
    cpus: int = 1
    ram_mb: int = 0
    disk_gb: float = 0.0
    application_tags: List[str] = field(default_factory=list)
    disk_images: List[str] = field(default_factory=list)

    kind: ClassVar[EnergyUserKind] = EnergyUserKind.PLANNED_VM


@dataclass(eq=False)
class ApplicationOnHost(WorkloadSource):
    """An application (job) running directly on a host. Identity is (id, name, host)."""
    id: int
    name: str
    allocated_to: Optional[Host] = None
    created: datetime = field(default_factory=datetime.now)
    deadline: Optional[datetime] = None
    status: Optional[JobStatus] = None

    kind: ClassVar[EnergyUserKind] = EnergyUserKind.APPLICATION

    def __eq__(self, other):
        if not isinstance(other, ApplicationOnHost):
            return NotImplemented
        return (self.id, self.name, self.allocated_to) == (other.id, other.name, other.allocated_to)

    def __hash__(self):
        return hash((self.id, self.name, self.allocated_to))

    def __lt__(self, other: "ApplicationOnHost") -> bool:
        if self.name != other.name:
            return self.name < other.name
        if self.id != other.id:
            return self.id < other.id
        return self.allocated_to < other.allocated_to

    def set_status(self, status: Optional[str]):
        self.status = JobStatus.parse(status)

    @property
    def has_deadline(self) -> bool:
        return self.deadline is not None

    def time_from_start(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(self.created.tzinfo)
        return int((now - self.created).total_seconds())

    def duration(self, now: Optional[datetime] = None) -> int:
        """Seconds the application has run so far, or -1 without a deadline."""
        if not self.has_deadline:
            return -1
        return self.time_from_start(now)

    def max_duration(self) -> int:
        if not self.has_deadline:
            return -1
        return int((self.deadline - self.created).total_seconds())

    def progress(self, now: Optional[datetime] = None) -> float:
        """Percentage of the time to deadline already used, or -1 when not computable."""
        max_duration = self.max_duration()
        if max_duration <= 0:
            return -1
        elapsed = self.time_from_start(now)
        if elapsed <= 0:
            return -1
        return (elapsed / max_duration) * 100.0

    def idle_power_consumption(self, app_count: int) -> float:
        if self.allocated_to is None:
            return 0.0
        return self.allocated_to.idle_power_consumption / app_count


@dataclass(eq=False)
class GeneralPowerConsumer(EnergyUsageSource):
    """A non-compute consumer (e.g. cooling) attributed a share of host power."""
    name: str

    kind: ClassVar[EnergyUserKind] = EnergyUserKind.GENERAL_POWER_CONSUMER

    def __eq__(self, other):
        if not isinstance(other, GeneralPowerConsumer):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(("general", self.name))


def describe_energy_user(user: EnergyUsageSource) -> str:
    """Short log label for an energy user."""
    kind = user.kind
    if kind is EnergyUserKind.DEPLOYED_VM:
        return f"VM: {user.name}"
    if kind is EnergyUserKind.PLANNED_VM:
        return f"Planned VM: {user.name}"
    if kind is EnergyUserKind.APPLICATION:
        return f"APP: {user.name}"
    if kind is EnergyUserKind.GENERAL_POWER_CONSUMER:
        return f"Consumer: {user.name}"
    raise ValueError(f"Unknown energy user kind: {kind}")


def is_vm(user: EnergyUsageSource) -> bool:
    return user.kind in VM_KINDS


def filter_kind(users: Iterable[EnergyUsageSource], kind: EnergyUserKind) -> list:
    """Users of exactly the given kind, in input order."""
    return [user for user in users if user.kind is kind]
