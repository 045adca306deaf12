"""Unit tests for EnergyDivision"""

import pytest

from energymodeller.energyshare import EnergyDivision
from energymodeller.exceptions import MissingWeightError, ZeroWeightSumError


class TestEnergyDivision:
    """Test weight bookkeeping and energy shares"""

    @pytest.fixture
    def vms(self, vm_factory):
        return [vm_factory(1), vm_factory(2), vm_factory(3)]

    def test_sum_tracks_inserts_and_overwrites(self, host, vms):
        """Test sum of weights after inserts and overwrites"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 1.0)
        division.add_weight(vms[1], 2.5)
        division.add_weight(vms[0], 4.0)
        division.add_weight(vms[2], 0.0)

        assert division.sum_of_weights == pytest.approx(sum(division.weights.values()))
        assert division.sum_of_weights == pytest.approx(6.5)
        assert len(division) == 3

    def test_negative_weight_is_ignored(self, host, vms):
        """Test negative weights are ignored"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 1.0)
        division.add_weight(vms[0], -3.0)
        division.add_weight(vms[1], -1.0)

        assert division.get_weight(vms[0]) == 1.0
        assert vms[1] not in division
        assert division.sum_of_weights == 1.0

    def test_nan_weight_is_ignored(self, host, vms):
        """Test NaN weights are ignored"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 1.0)
        division.add_weight(vms[1], float("nan"))

        assert vms[1] not in division
        assert division.sum_of_weights == 1.0
        assert division.get_energy_usage(400.0, vms[0]) == pytest.approx(400.0)

    def test_remove_energy_user_corrects_sum(self, host, vms):
        """Test removing a user updates the sum"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 1.0)
        division.add_weight(vms[1], 3.0)
        division.remove_energy_user(vms[1])
        division.remove_energy_user(vms[2])

        assert division.energy_users == [vms[0]]
        assert division.sum_of_weights == pytest.approx(1.0)
        assert division.get_energy_usage(400.0, vms[0]) == pytest.approx(400.0)

    def test_weights_returns_copy(self, host, vms):
        """Test weights returns a copy"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 1.0)
        division.weights[vms[1]] = 5.0
        assert vms[1] not in division

    def test_split_without_idle_energy(self, host, vms):
        """Test split without idle energy"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 1.0)
        division.add_weight(vms[1], 3.0)

        assert division.get_energy_usage(400.0, vms[0]) == pytest.approx(100.0)
        assert division.get_energy_usage(400.0, vms[1]) == pytest.approx(300.0)

    def test_split_with_idle_energy(self, host, vms):
        """Test split with idle energy"""
        division = EnergyDivision(host, consider_idle_energy=True)
        division.add_weight(vms[0], 1.0)
        division.add_weight(vms[1], 3.0)

        assert division.get_energy_usage(400.0, vms[0]) == pytest.approx(112.5)
        assert division.get_energy_usage(400.0, vms[1]) == pytest.approx(287.5)

    @pytest.mark.parametrize("consider_idle", [False, True])
    @pytest.mark.parametrize("host_total", [0.0, 30.0, 400.0, 1234.5])
    def test_shares_account_for_whole_host(self, host, vms, consider_idle, host_total):
        """Test shares add up to the host total"""
        division = EnergyDivision(host, consider_idle_energy=consider_idle)
        for vm, weight in zip(vms, [0.2, 1.7, 3.1]):
            division.add_weight(vm, weight)

        shares = division.get_energy_usage_for_all(host_total)

        if consider_idle:
            idle = host.idle_power_consumption
            expected = max(0.0, host_total - idle) + idle
        else:
            expected = host_total
        assert sum(shares.values()) == pytest.approx(expected)

    def test_idle_component_is_even(self, host, vms):
        """Test the idle component is the same for every user"""
        division = EnergyDivision(host, consider_idle_energy=True)
        for vm, weight in zip(vms, [0.2, 1.7, 3.1]):
            division.add_weight(vm, weight)

        # At exactly idle power only the even idle share remains.
        shares = division.get_energy_usage_for_all(host.idle_power_consumption)
        assert all(share == pytest.approx(50.0 / 3) for share in shares.values())

    def test_unknown_user_raises(self, host, vms):
        """Test an unknown user raises"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 1.0)
        with pytest.raises(MissingWeightError):
            division.get_energy_usage(400.0, vms[1])

    def test_zero_weight_sum_raises(self, host, vms):
        """Test a zero weight sum raises"""
        division = EnergyDivision(host)
        division.add_weight(vms[0], 0.0)
        division.add_weight(vms[1], 0.0)
        with pytest.raises(ZeroWeightSumError):
            division.get_energy_usage(400.0, vms[0])
