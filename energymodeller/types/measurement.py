"""
Measurement snapshots supplied by the live data source.

Only the CPU utilisation (a 0-1 fraction), the measured entity and the
timestamp are read by the attribution and prediction code; any further
backend metrics travel in ``metrics``.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .energyuser import ApplicationOnHost, DeployedVM, Host


@dataclass
class VmMeasurement:
    """CPU load of one deployed VM at one instant (clock in epoch seconds)."""
    vm: DeployedVM
    clock: int
    cpu_utilisation: Optional[float] = None
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def has_cpu_data(self) -> bool:
        return self.cpu_utilisation is not None


@dataclass
class ApplicationMeasurement:
    """CPU load of one application at one instant."""
    application: ApplicationOnHost
    clock: int
    cpu_utilisation: Optional[float] = None
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def has_cpu_data(self) -> bool:
        return self.cpu_utilisation is not None

    @property
    def host(self) -> Optional[Host]:
        return self.application.allocated_to


@dataclass
class HostMeasurement:
    """Power draw and CPU load of a host at one instant."""
    host: Host
    clock: int
    power: Optional[float] = None
    cpu_utilisation: Optional[float] = None
    metrics: Dict[str, float] = field(default_factory=dict)
