"""
Energy modeller service - owns the shared components and runs attribution.

The service constructs the workload statistics cache, the configured
workload estimator and energy share rule, and injects the cache into both
the ingestion path and the estimator. The cache lives from start() to stop().
"""

import logging
import math
from typing import Collection, Dict, Iterable, Optional

import numpy as np

from .config.settings import Settings, get_settings
from .datastore.cache import WorkloadStatisticsCache
from .datastore.connector import DatabaseConnector, HostDataSource
from .energyshare.rules import EnergyShareRule, LoadFractionShareRule, get_energy_share_rule
from .exceptions import ZeroWeightSumError
from .predictor.base import WorkloadEstimator
from .predictor.registry import get_workload_estimator
from .types.energyuser import EnergyUsageSource, Host, WorkloadSource, describe_energy_user
from .types.load_fraction import HostEnergyUserLoadFraction
from .types.measurement import HostMeasurement, VmMeasurement

logger = logging.getLogger(__name__)


class EnergyModellerService:
    """Attribution pipeline and workload prediction entry point."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        database: Optional[DatabaseConnector] = None,
        data_source: Optional[HostDataSource] = None,
    ):
        self.settings = settings or get_settings()
        self.database = database
        self.data_source = data_source
        self.cache: Optional[WorkloadStatisticsCache] = None
        self.estimator: Optional[WorkloadEstimator] = None
        self.share_rule: Optional[EnergyShareRule] = None

    @property
    def is_running(self) -> bool:
        return self.cache is not None

    def start(self):
        """Configure logging and build the cache, estimator and share rule."""
        logging.basicConfig(level=logging.INFO)
        logging.getLogger("energymodeller").setLevel(
            getattr(logging, self.settings.LOG_LEVEL.upper(), logging.INFO)
        )

        self.cache = WorkloadStatisticsCache(
            in_use=self.settings.WORKLOAD_CACHE_ENABLED,
            boot_bucket_size=self.settings.BOOT_HISTORY_BUCKET_SIZE,
        )
        self.estimator = get_workload_estimator(
            self.settings.WORKLOAD_PREDICTOR,
            database=self.database,
            data_source=self.data_source,
            cache=self.cache,
            boot_history_bucket_size=self.settings.BOOT_HISTORY_BUCKET_SIZE,
            recent_history_window_seconds=self.settings.RECENT_HISTORY_WINDOW_SECONDS,
            rules_file=self.settings.WORKLOAD_PREDICTION_MAPPING_FILE,
        )
        self.share_rule = get_energy_share_rule(self.settings.ENERGY_SHARE_RULE)

        logger.info(
            f"Energy modeller started: estimator={self.estimator.name}, "
            f"share rule={type(self.share_rule).__name__}, "
            f"cache in use={self.cache.is_in_use()}"
        )

    def stop(self):
        """Disable and clear the statistics cache."""
        if self.cache is not None:
            self.cache.close()
            self.cache = None
        logger.info("Energy modeller stopped")

    def _require_started(self):
        if not self.is_running:
            raise RuntimeError("EnergyModellerService is not started")

    def ingest(self, vm_measurements: Iterable[VmMeasurement]):
        """Push fresh VM measurements into the statistics cache."""
        self._require_started()
        self.cache.add_vm_to_statistics(vm_measurements)

    def predict_cpu_utilisation(self, host: Host, workload: Collection[WorkloadSource]) -> float:
        """Predicted CPU utilisation of the host, clamped to [0, 1]."""
        self._require_started()
        utilisation = self.estimator.get_cpu_utilisation(host, workload)
        return float(np.clip(utilisation, 0.0, 1.0))

    def divide_host_power(
        self,
        host_measurement: HostMeasurement,
        load_fraction: HostEnergyUserLoadFraction,
    ) -> Dict[EnergyUsageSource, float]:
        """
        Divide a host's measured power among the users of a load snapshot.

        The snapshot's host power offset is added to every positive share.
        NaN and non-positive shares are dropped. Returns an empty mapping when
        the host has no power reading or the weights sum to zero.
        """
        self._require_started()
        host = host_measurement.host
        if host_measurement.power is None:
            logger.warning(f"No power reading for host {host.host_name}, nothing to divide")
            return {}

        rule = self.share_rule
        if isinstance(rule, LoadFractionShareRule):
            rule = type(rule)(load_fraction.fraction)
        division = rule.get_energy_usage(host, load_fraction.energy_usage_sources)
        division.consider_idle_energy = self.settings.CONSIDER_IDLE_ENERGY

        try:
            shares = division.get_energy_usage_for_all(host_measurement.power)
        except ZeroWeightSumError:
            logger.warning(f"Energy user weights for host {host.host_name} sum to zero, no power divided")
            return {}

        answer = {}
        for user, share in shares.items():
            if math.isnan(share) or share <= 0:
                continue
            answer[user] = share + load_fraction.host_power_offset
            logger.debug(f"{describe_energy_user(user)} Power: {answer[user]}")
        return answer
