"""
Energy share rules - strategies that weight a host's tenants.

Each rule turns a host and its current (or planned) energy users into an
EnergyDivision without mutating its inputs:

- DefaultEnergyShareRule: weight 1 per user
- LoadFractionShareRule: measured CPU load fraction per VM
- LoadFractionAndCoreCountShareRule: load fraction multiplied by core count
- VmCpuCountEnergyShareRule: declared core count, deployed VMs only
"""

import logging
from abc import ABC, abstractmethod
from typing import Collection, Dict, Optional, Sequence

from ..exceptions import MissingLoadFractionError
from ..types.energyuser import (
    EnergyUsageSource,
    EnergyUserKind,
    Host,
    describe_energy_user,
    filter_kind,
)
from ..types.load_fraction import HostEnergyUserLoadFraction
from ..types.measurement import ApplicationMeasurement, VmMeasurement
from .division import EnergyDivision

logger = logging.getLogger(__name__)


class EnergyShareRule(ABC):
    """Translates a host's energy usage into per-user weights."""

    @abstractmethod
    def get_energy_usage(self, host: Host, energy_users: Collection[EnergyUsageSource]) -> EnergyDivision:
        """
        Generate the fractions by which to allocate the host's energy.

        Args:
            host: The host to analyse
            energy_users: The VMs or applications on (or to be placed on) the host

        Returns:
            EnergyDivision holding one weight per accepted user
        """


class DefaultEnergyShareRule(EnergyShareRule):
    """Divides energy evenly, regardless of load or size."""

    def get_energy_usage(self, host: Host, energy_users: Collection[EnergyUsageSource]) -> EnergyDivision:
        answer = EnergyDivision(host)
        for user in energy_users:
            answer.add_weight(user, 1.0)
        return answer


class LoadFractionShareRule(EnergyShareRule):
    """
    Divides energy by each user's share of the measured CPU load.

    The fractions must be set (from measurements or directly) before the rule
    is applied.
    """

    def __init__(self, fractions: Optional[Dict[EnergyUsageSource, float]] = None):
        self.fractions: Dict[EnergyUsageSource, float] = dict(fractions or {})

    def set_vm_measurements(self, vm_measurements: Sequence[VmMeasurement]):
        self.fractions = HostEnergyUserLoadFraction.get_fraction(vm_measurements)

    def set_fractions(self, fractions: Dict[EnergyUsageSource, float]):
        self.fractions = dict(fractions)

    def get_energy_usage(self, host: Host, energy_users: Collection[EnergyUsageSource]) -> EnergyDivision:
        answer = EnergyDivision(host)
        for user in energy_users:
            try:
                fraction = self.fractions[user]
            except KeyError as e:
                raise MissingLoadFractionError(
                    f"No load fraction measured for {describe_energy_user(user)}"
                ) from e
            answer.add_weight(user, fraction)
            logger.debug(f"{describe_energy_user(user)} Ratio: {fraction}")
        return answer


class LoadFractionAndCoreCountShareRule(LoadFractionShareRule):
    """Load fraction rule where each VM's fraction is scaled by its core count."""

    def set_vm_measurements(self, vm_measurements: Sequence[VmMeasurement]):
        self.fractions = HostEnergyUserLoadFraction.get_fraction(vm_measurements, consider_core_count=True)

    def set_application_measurements(self, app_measurements: Sequence[ApplicationMeasurement]):
        self.fractions = HostEnergyUserLoadFraction.get_application_fraction(app_measurements)


class VmCpuCountEnergyShareRule(EnergyShareRule):
    """
    Divides energy by the number of CPU cores each VM declares.

    Only deployed VMs take part: applications, planned VMs and general power
    consumers are excluded from the division.
    """

    def get_energy_usage(self, host: Host, energy_users: Collection[EnergyUsageSource]) -> EnergyDivision:
        answer = EnergyDivision(host)
        for vm in filter_kind(energy_users, EnergyUserKind.DEPLOYED_VM):
            answer.add_weight(vm, float(vm.cpus))
        return answer


ENERGY_SHARE_RULES = {
    cls.__name__: cls
    for cls in (
        DefaultEnergyShareRule,
        LoadFractionShareRule,
        LoadFractionAndCoreCountShareRule,
        VmCpuCountEnergyShareRule,
    )
}


def get_energy_share_rule(name: str) -> EnergyShareRule:
    """Instantiate a share rule by class name, defaulting to an even split."""
    rule_class = ENERGY_SHARE_RULES.get(name)
    if rule_class is None:
        logger.warning(f"Unknown energy share rule '{name}', using DefaultEnergyShareRule")
        rule_class = DefaultEnergyShareRule
    return rule_class()
