"""
User defined predictor mapper - picks an estimator per VM property.

A rule table maps an application tag or disk image to the name of the
estimator that should predict VMs carrying it. The table is a CSV file with
four columns:

    PropertyValue,IsRefToVMAppUsed,IsRefToBaseImage,FilterToUse
    web,true,false,Day of Week Workload App Tag Predictor

Rows with any other field count, the header row and rows that fail
validation are skipped. A header-only table is written when the file does
not exist.
"""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Collection, List, Optional, Set, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config.settings import get_settings
from ..datastore.cache import WorkloadStatisticsCache
from ..datastore.connector import DatabaseConnector, HostDataSource
from ..exceptions import RuleTableError
from ..types.energyuser import VM, Host, WorkloadSource, is_vm
from .average import BasicAverageCpuWorkloadPredictor, BasicAverageCpuWorkloadPredictorDisk
from .base import VmHistoryWorkloadEstimator, WorkloadEstimator
from .boot import DEFAULT_BOOT_BUCKET_SIZE, BootAverageCpuWorkloadPredictor, BootAverageCpuWorkloadPredictorDisk
from .day_of_week import DoWAverageCpuWorkloadPredictor, DoWAverageCpuWorkloadPredictorDisk
from .recent_history import DEFAULT_WINDOW_SECONDS, CpuRecentHistoryWorkloadPredictor

logger = logging.getLogger(__name__)

RULE_TABLE_HEADER = ["PropertyValue", "IsRefToVMAppUsed", "IsRefToBaseImage", "FilterToUse"]

_TRUE_VALUES = {"true", "yes", "1"}
_FALSE_VALUES = {"false", "no", "0"}


class PredictorUsageRule(BaseModel):
    """One row of the rule table."""
    model_config = ConfigDict(frozen=True)

    property_value: str = Field(..., min_length=1, description="Application tag or disk image to match")
    is_app_tag: bool = Field(..., description="Property is an application tag")
    is_disk: bool = Field(..., description="Property is a disk image reference")
    predictor_name: str = Field(..., min_length=1, description="Display name of the estimator to use")

    @field_validator('is_app_tag', 'is_disk', mode='before')
    @classmethod
    def parse_flag(cls, v):
        """Parse a literal true/false, yes/no or 1/0 flag."""
        if isinstance(v, bool):
            return v
        text = str(v).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ValueError(f"Invalid flag '{v}'. Expected true/false, yes/no or 1/0")


def write_default_rules(path: Path):
    """Write a header-only rule table."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="") as f:
            csv.writer(f).writerow(RULE_TABLE_HEADER)
    except OSError as e:
        raise RuleTableError(f"Cannot write default rule table {path}: {e}") from e
    logger.info(f"Wrote default predictor rule table to {path}")


def load_rules(path: Union[str, Path]) -> List[PredictorUsageRule]:
    """
    Read the rule table, writing a default one when the file is absent.

    Raises:
        RuleTableError: If the file exists but cannot be read
    """
    path = Path(path)
    if not path.exists():
        write_default_rules(path)
        return []

    rules = []
    try:
        with path.open(newline="") as f:
            for line_number, row in enumerate(csv.reader(f), start=1):
                if len(row) != len(RULE_TABLE_HEADER):
                    if row:
                        logger.warning(f"{path}:{line_number}: expected 4 fields, got {len(row)}; row skipped")
                    continue
                row = [value.strip() for value in row]
                if row[0] == RULE_TABLE_HEADER[0]:
                    continue
                try:
                    rules.append(PredictorUsageRule(
                        property_value=row[0],
                        is_app_tag=row[1],
                        is_disk=row[2],
                        predictor_name=row[3],
                    ))
                except ValidationError as e:
                    logger.warning(f"{path}:{line_number}: invalid rule skipped: {e.errors()[0]['msg']}")
    except OSError as e:
        raise RuleTableError(f"Cannot read rule table {path}: {e}") from e

    logger.info(f"Loaded {len(rules)} predictor rules from {path}")
    return rules


class UserDefinedWorkloadPredictorMapper(WorkloadEstimator):
    """
    Delegates each VM to the estimator its tags (or disk images) are mapped to.

    Application tags are tried first, then disk images. When no VM carries a
    mapped property the host's recent utilisation is used instead.
    """

    name = "User Defined VM Property Workload Predictor"

    def __init__(
        self,
        rules_file: Optional[Union[str, Path]] = None,
        database: Optional[DatabaseConnector] = None,
        data_source: Optional[HostDataSource] = None,
        cache: Optional[WorkloadStatisticsCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
        boot_history_bucket_size: int = DEFAULT_BOOT_BUCKET_SIZE,
        recent_history_window_seconds: int = DEFAULT_WINDOW_SECONDS,
        rules: Optional[List[PredictorUsageRule]] = None,
    ):
        super().__init__(database, data_source)
        if rules is None:
            if rules_file is None:
                rules_file = get_settings().WORKLOAD_PREDICTION_MAPPING_FILE
            rules = load_rules(rules_file)
        self.rules: List[PredictorUsageRule] = list(rules)

        self.predictors: List[VmHistoryWorkloadEstimator] = [
            BasicAverageCpuWorkloadPredictor(database, data_source, cache, clock),
            BasicAverageCpuWorkloadPredictorDisk(database, data_source, cache, clock),
            BootAverageCpuWorkloadPredictor(database, data_source, cache, clock, boot_history_bucket_size),
            BootAverageCpuWorkloadPredictorDisk(database, data_source, cache, clock, boot_history_bucket_size),
            DoWAverageCpuWorkloadPredictor(database, data_source, cache, clock),
            DoWAverageCpuWorkloadPredictorDisk(database, data_source, cache, clock),
        ]
        self.default_predictor = self.predictors[0]
        self.recent_history = CpuRecentHistoryWorkloadPredictor(data_source, recent_history_window_seconds)

    def set_data_source(self, data_source: HostDataSource):
        super().set_data_source(data_source)
        for predictor in self.predictors:
            predictor.set_data_source(data_source)
        self.recent_history.set_data_source(data_source)

    def set_database_connector(self, database: DatabaseConnector):
        super().set_database_connector(database)
        for predictor in self.predictors:
            predictor.set_database_connector(database)

    @property
    def valid_app_tags(self) -> Set[str]:
        return {rule.property_value for rule in self.rules if rule.is_app_tag}

    @property
    def valid_disk_refs(self) -> Set[str]:
        return {rule.property_value for rule in self.rules if rule.is_disk}

    def get_estimator(self, lookup_property: str) -> VmHistoryWorkloadEstimator:
        """
        Estimator mapped to an application tag or disk image.

        The first rule for the property naming a known estimator wins. When
        there is none, the basic average-by-tag estimator is returned.
        """
        for rule in self.rules:
            if rule.property_value != lookup_property:
                continue
            for predictor in self.predictors:
                if predictor.name == rule.predictor_name:
                    return predictor
        logger.warning(
            f"No predictor rule matched '{lookup_property}', "
            f"using {self.default_predictor.name}"
        )
        return self.default_predictor

    def get_cpu_utilisation(self, host: Host, workload: Collection[WorkloadSource]) -> float:
        vms = [user for user in workload if is_vm(user)]

        valid_tags = self.valid_app_tags
        tagged = [vm for vm in vms if any(tag in valid_tags for tag in vm.application_tags)]
        if tagged:
            return self.get_average_cpu_utilisation(tagged)

        valid_disks = self.valid_disk_refs
        with_disks = [vm for vm in vms if any(disk in valid_disks for disk in vm.disk_images)]
        if with_disks:
            return self.get_average_cpu_utilisation_disk(with_disks)

        return self.recent_history.get_cpu_utilisation(host, workload)

    def get_average_cpu_utilisation(self, vms: Collection[VM]) -> float:
        """Mean over the VMs of each VM's mean prediction across its mapped tags."""
        valid_tags = self.valid_app_tags
        per_vm = []
        for vm in vms:
            values = [
                self.get_estimator(tag).get_average_cpu_utilisation(vm).utilisation
                for tag in vm.application_tags
                if tag in valid_tags
            ]
            if values:
                per_vm.append(np.mean(values))
        if not per_vm:
            return 0.0
        return float(np.mean(per_vm))

    def get_average_cpu_utilisation_disk(self, vms: Collection[VM]) -> float:
        """Mean over the VMs of each VM's mean prediction across its mapped disk images."""
        valid_disks = self.valid_disk_refs
        per_vm = []
        for vm in vms:
            values = [
                self.get_estimator(disk).get_average_cpu_utilisation(vm).utilisation
                for disk in vm.disk_images
                if disk in valid_disks
            ]
            if values:
                per_vm.append(np.mean(values))
        if not per_vm:
            return 0.0
        return float(np.mean(per_vm))
