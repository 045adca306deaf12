"""
Energy division - the weighting ledger that splits one host's power.

Power distribution (with idle energy considered):
- Idle power: split evenly across all users, independent of weight
- Active power (host total - idle, floored at 0): split by weight / sum of weights

Without idle energy the whole host figure is split by weight.
"""

import logging
from typing import Dict, List

from ..exceptions import MissingWeightError, ZeroWeightSumError
from ..types.energyuser import EnergyUsageSource, Host, describe_energy_user

logger = logging.getLogger(__name__)


class EnergyDivision:
    """
    Ratios by which a host's energy is divided among its energy users.

    A running sum of the weights is kept in step with the weight map on every
    insert, overwrite and removal.
    """

    def __init__(self, host: Host, consider_idle_energy: bool = False):
        self.host = host
        self.consider_idle_energy = consider_idle_energy
        self._user_weight: Dict[EnergyUsageSource, float] = {}
        self._sum_of_weights = 0.0

    @property
    def weights(self) -> Dict[EnergyUsageSource, float]:
        """Copy of the users held in this division and their weights."""
        return dict(self._user_weight)

    @property
    def energy_users(self) -> List[EnergyUsageSource]:
        return list(self._user_weight)

    @property
    def sum_of_weights(self) -> float:
        return self._sum_of_weights

    def __len__(self) -> int:
        return len(self._user_weight)

    def __contains__(self, user: EnergyUsageSource) -> bool:
        return user in self._user_weight

    def add_weight(self, user: EnergyUsageSource, weight: float):
        """
        Add an energy user with its weight, replacing any previous weight.

        Negative and NaN weights are ignored.
        """
        if not weight >= 0.0:
            logger.debug(f"Ignoring invalid weight {weight} for {describe_energy_user(user)}")
            return
        previous = self._user_weight.get(user)
        self._user_weight[user] = weight
        self._sum_of_weights += weight
        if previous is not None:
            self._sum_of_weights -= previous

    def remove_energy_user(self, user: EnergyUsageSource):
        """Remove an energy user; its weight leaves the running sum."""
        previous = self._user_weight.pop(user, None)
        if previous is not None:
            self._sum_of_weights -= previous

    def get_weight(self, user: EnergyUsageSource) -> float:
        try:
            return self._user_weight[user]
        except KeyError as e:
            raise MissingWeightError(f"No weight registered for {describe_energy_user(user)}") from e

    def get_energy_usage(self, host_energy_usage: float, user: EnergyUsageSource) -> float:
        """
        Share of the host's energy (or power) attributed to one user.

        Args:
            host_energy_usage: Energy or power used by the whole host
            user: A user registered in this division

        Returns:
            The user's share, in the same unit as host_energy_usage

        Raises:
            MissingWeightError: If the user has no weight in this division
            ZeroWeightSumError: If all weights sum to zero
        """
        user_weight = self.get_weight(user)
        if self._sum_of_weights == 0:
            raise ZeroWeightSumError(
                f"Weights of the division for host {self.host.host_name} sum to zero"
            )
        ratio = user_weight / self._sum_of_weights
        if not self.consider_idle_energy:
            return ratio * host_energy_usage

        idle_power = self.host.idle_power_consumption
        active_energy = max(0.0, host_energy_usage - idle_power)
        return ratio * active_energy + idle_power / len(self._user_weight)

    def get_energy_usage_for_all(self, host_energy_usage: float) -> Dict[EnergyUsageSource, float]:
        """Share of every registered user."""
        return {user: self.get_energy_usage(host_energy_usage, user) for user in self._user_weight}
