"""
Workload estimators - predicting the CPU utilisation a workload induces.
"""

from .average import BasicAverageCpuWorkloadPredictor, BasicAverageCpuWorkloadPredictorDisk
from .base import VmHistoryWorkloadEstimator, WorkloadEstimator
from .boot import BootAverageCpuWorkloadPredictor, BootAverageCpuWorkloadPredictorDisk
from .day_of_week import DoWAverageCpuWorkloadPredictor, DoWAverageCpuWorkloadPredictorDisk
from .mapper import PredictorUsageRule, UserDefinedWorkloadPredictorMapper, load_rules
from .recent_history import CpuRecentHistoryWorkloadPredictor
from .registry import WORKLOAD_ESTIMATORS, get_workload_estimator

__all__ = [
    "BasicAverageCpuWorkloadPredictor",
    "BasicAverageCpuWorkloadPredictorDisk",
    "BootAverageCpuWorkloadPredictor",
    "BootAverageCpuWorkloadPredictorDisk",
    "CpuRecentHistoryWorkloadPredictor",
    "DoWAverageCpuWorkloadPredictor",
    "DoWAverageCpuWorkloadPredictorDisk",
    "PredictorUsageRule",
    "UserDefinedWorkloadPredictorMapper",
    "VmHistoryWorkloadEstimator",
    "WorkloadEstimator",
    "WORKLOAD_ESTIMATORS",
    "get_workload_estimator",
    "load_rules",
]
