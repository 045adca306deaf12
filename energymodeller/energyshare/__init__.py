"""
Energy share - dividing a host's power among its energy users.
"""

from .division import EnergyDivision
from .historic import (
    HistoricLoadBasedDivision,
    LoadBasedDivision,
    LoadBasedDivisionWithIdleEnergy,
)
from .rules import (
    DefaultEnergyShareRule,
    EnergyShareRule,
    LoadFractionAndCoreCountShareRule,
    LoadFractionShareRule,
    VmCpuCountEnergyShareRule,
    get_energy_share_rule,
)

__all__ = [
    "EnergyDivision",
    "HistoricLoadBasedDivision",
    "LoadBasedDivision",
    "LoadBasedDivisionWithIdleEnergy",
    "DefaultEnergyShareRule",
    "EnergyShareRule",
    "LoadFractionAndCoreCountShareRule",
    "LoadFractionShareRule",
    "VmCpuCountEnergyShareRule",
    "get_energy_share_rule",
]
