"""Unit tests for the energy modeller service"""

import logging
import math
import pytest
from datetime import timedelta

from energymodeller import EnergyModellerService
from energymodeller.energyshare import DefaultEnergyShareRule, LoadFractionShareRule
from energymodeller.predictor import BasicAverageCpuWorkloadPredictor, CpuRecentHistoryWorkloadPredictor
from energymodeller.types import HostEnergyUserLoadFraction, HostMeasurement, VmMeasurement


class TestEnergyModellerService:
    """Test lifecycle, ingestion and power division"""

    @pytest.fixture
    def service(self, test_settings, database, data_source):
        service = EnergyModellerService(settings=test_settings, database=database, data_source=data_source)
        service.start()
        yield service
        service.stop()

    @pytest.fixture
    def snapshot(self, host, vm_factory):
        snapshot = HostEnergyUserLoadFraction(host, time=100)
        snapshot.add_fraction(vm_factory(1), 0.25)
        snapshot.add_fraction(vm_factory(2), 0.75)
        return snapshot

    def test_start_builds_components(self, service):
        """Test start wires estimator, share rule and cache"""
        assert service.is_running
        assert isinstance(service.estimator, CpuRecentHistoryWorkloadPredictor)
        assert isinstance(service.share_rule, LoadFractionShareRule)
        assert not service.cache.is_in_use()

    def test_stop_clears_cache(self, test_settings):
        """Test stop disables the cache"""
        service = EnergyModellerService(settings=test_settings)
        service.start()
        cache = service.cache
        service.stop()

        assert not service.is_running
        assert not cache.is_in_use()

    def test_calls_before_start_raise(self, test_settings, host):
        """Test calls before start are rejected"""
        with pytest.raises(RuntimeError):
            EnergyModellerService(settings=test_settings).predict_cpu_utilisation(host, [])

    def test_predict_with_recent_history(self, service, host):
        """Test prediction with the default estimator"""
        assert service.predict_cpu_utilisation(host, []) == pytest.approx(0.35)

    def test_prediction_is_clamped(self, service, host, data_source):
        """Test predictions are clamped to [0, 1]"""
        data_source.utilisation = 1.7
        assert service.predict_cpu_utilisation(host, []) == 1.0
        data_source.utilisation = -0.2
        assert service.predict_cpu_utilisation(host, []) == 0.0

    def test_ingested_measurements_feed_estimator(self, test_settings, database, host, vm_factory, now):
        """Test ingested measurements reach the estimator through the cache"""
        settings = test_settings.model_copy(update={
            "WORKLOAD_PREDICTOR": "Average Workload App Tag Predictor",
            "WORKLOAD_CACHE_ENABLED": True,
        })
        service = EnergyModellerService(settings=settings, database=database)
        service.start()
        vm = vm_factory(1, tags=["web"], created=now - timedelta(seconds=60))

        assert isinstance(service.estimator, BasicAverageCpuWorkloadPredictor)
        assert service.predict_cpu_utilisation(host, [vm]) == pytest.approx(0.4)

        service.ingest([VmMeasurement(vm=vm, clock=int(now.timestamp()), cpu_utilisation=0.9)])
        assert service.predict_cpu_utilisation(host, [vm]) == pytest.approx(0.9)
        service.stop()

    def test_divide_host_power_with_idle_energy(self, service, host, snapshot):
        """Test host power division with idle energy"""
        shares = service.divide_host_power(HostMeasurement(host=host, clock=100, power=400.0), snapshot)

        vm1, vm2 = snapshot.energy_usage_sources
        assert shares[vm1] == pytest.approx(112.5)
        assert shares[vm2] == pytest.approx(287.5)

    def test_divide_host_power_without_idle_energy(self, test_settings, host, snapshot):
        """Test host power division with a power offset and no idle energy"""
        settings = test_settings.model_copy(update={"CONSIDER_IDLE_ENERGY": False})
        service = EnergyModellerService(settings=settings)
        service.start()
        snapshot.host_power_offset = 5.0

        shares = service.divide_host_power(HostMeasurement(host=host, clock=100, power=400.0), snapshot)

        vm1, vm2 = snapshot.energy_usage_sources
        assert shares[vm1] == pytest.approx(105.0)
        assert shares[vm2] == pytest.approx(305.0)
        service.stop()

    def test_shared_rule_is_not_mutated(self, service, host, snapshot, vm_factory):
        """Test each division uses its own snapshot fractions"""
        other = HostEnergyUserLoadFraction(host, time=200)
        other.add_fraction(vm_factory(3), 1.0)

        first = service.divide_host_power(HostMeasurement(host=host, clock=100, power=400.0), snapshot)
        second = service.divide_host_power(HostMeasurement(host=host, clock=200, power=400.0), other)

        assert service.share_rule.fractions == {}
        assert len(first) == 2
        assert second == {vm_factory(3): pytest.approx(400.0)}

    def test_non_positive_shares_are_dropped(self, test_settings, host, snapshot, vm_factory):
        """Test zero shares are left out of the result"""
        settings = test_settings.model_copy(update={"CONSIDER_IDLE_ENERGY": False})
        service = EnergyModellerService(settings=settings)
        service.start()
        snapshot.add_fraction(vm_factory(3), 0.0)

        shares = service.divide_host_power(HostMeasurement(host=host, clock=100, power=400.0), snapshot)

        assert vm_factory(3) not in shares
        assert len(shares) == 2
        service.stop()

    def test_zero_weight_sum_gives_empty_division(self, service, host, vm_factory, caplog):
        """Test zero weights give an empty division"""
        snapshot = HostEnergyUserLoadFraction(host, time=100)
        snapshot.add_fraction(vm_factory(1), 0.0)
        snapshot.add_fraction(vm_factory(2), 0.0)

        with caplog.at_level(logging.WARNING):
            shares = service.divide_host_power(HostMeasurement(host=host, clock=100, power=400.0), snapshot)

        assert shares == {}
        assert "sum to zero" in caplog.text

    def test_missing_power_reading(self, service, host, snapshot):
        """Test a host without a power reading"""
        assert service.divide_host_power(HostMeasurement(host=host, clock=100), snapshot) == {}

    def test_unknown_share_rule_falls_back(self, test_settings, host, snapshot):
        """Test an unknown share rule falls back to an even split"""
        settings = test_settings.model_copy(update={"ENERGY_SHARE_RULE": "Nope", "CONSIDER_IDLE_ENERGY": False})
        service = EnergyModellerService(settings=settings)
        service.start()

        assert type(service.share_rule) is DefaultEnergyShareRule
        shares = service.divide_host_power(HostMeasurement(host=host, clock=100, power=400.0), snapshot)
        assert all(not math.isnan(share) and share == pytest.approx(200.0) for share in shares.values())
        service.stop()
