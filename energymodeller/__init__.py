"""
kcloud energy modeller - host energy attribution and workload prediction.
"""

from .energyshare import EnergyDivision, get_energy_share_rule
from .predictor import get_workload_estimator
from .service import EnergyModellerService

__version__ = "1.0.0"

__all__ = [
    "EnergyDivision",
    "EnergyModellerService",
    "get_energy_share_rule",
    "get_workload_estimator",
]
