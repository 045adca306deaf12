from .cache import UtilisationStatistics, WorkloadStatisticsCache
from .connector import DatabaseConnector, HostDataSource

__all__ = [
    "UtilisationStatistics",
    "WorkloadStatisticsCache",
    "DatabaseConnector",
    "HostDataSource",
]
