"""
Pytest configuration and fixtures for all tests
"""
import pytest
from datetime import datetime

from energymodeller.config import Settings
from energymodeller.datastore import DatabaseConnector, HostDataSource
from energymodeller.exceptions import MissingHistoryError
from energymodeller.types import DeployedVM, Host, VmLoadHistoryRecord


class FakeDatabaseConnector(DatabaseConnector):
    """In-memory historical store keyed by tag and disk image"""

    def __init__(self):
        self.tag_averages = {}
        self.disk_averages = {}
        self.tag_boot_traces = {}
        self.disk_boot_traces = {}
        self.tag_week_traces = {}
        self.disk_week_traces = {}
        self.boot_bucket_sizes = []

    def average_utilisation_for_tag(self, tag):
        if tag not in self.tag_averages:
            raise MissingHistoryError(tag)
        return self.tag_averages[tag]

    def average_utilisation_for_disk(self, disk_ref):
        if disk_ref not in self.disk_averages:
            raise MissingHistoryError(disk_ref)
        return self.disk_averages[disk_ref]

    def boot_trace_for_tag(self, tag, bucket_size):
        self.boot_bucket_sizes.append(bucket_size)
        return self.tag_boot_traces.get(tag, [])

    def boot_trace_for_disk(self, disk_ref, bucket_size):
        self.boot_bucket_sizes.append(bucket_size)
        return self.disk_boot_traces.get(disk_ref, [])

    def week_trace_for_tag(self, tag):
        return self.tag_week_traces.get(tag, [])

    def week_trace_for_disk(self, disk_ref):
        return self.disk_week_traces.get(disk_ref, [])


class FakeHostDataSource(HostDataSource):
    """Live data source returning fixed host utilisation"""

    def __init__(self, utilisation=0.0):
        self.utilisation = utilisation
        self.requested_windows = []

    def get_host_data(self, host):
        raise NotImplementedError

    def get_vm_data(self, vm):
        raise NotImplementedError

    def get_cpu_utilisation(self, host, duration_seconds):
        self.requested_windows.append(duration_seconds)
        return self.utilisation


# Wednesday 3 January 2024, 14:30
NOW = datetime(2024, 1, 3, 14, 30)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Fixed clock for day-of-week and boot age selection"""
    return lambda: NOW


@pytest.fixture
def host():
    """Uncalibrated host drawing 50W at idle"""
    return Host(id=1, host_name="node-01", core_count=8, default_idle_power_consumption=50.0)


@pytest.fixture
def vm_factory(host):
    """Create deployed VMs on the test host"""
    def _create(vm_id, name=None, cpus=1, tags=(), disks=(), created=None):
        return DeployedVM(
            id=vm_id,
            name=name or f"vm-{vm_id}",
            cpus=cpus,
            application_tags=list(tags),
            disk_images=list(disks),
            created=created,
            allocated_to=host,
        )
    return _create


@pytest.fixture
def database():
    db = FakeDatabaseConnector()
    db.tag_averages["web"] = VmLoadHistoryRecord(utilisation=0.4, std_dev=0.1)
    db.tag_averages["batch"] = VmLoadHistoryRecord(utilisation=0.8, std_dev=0.3)
    db.disk_averages["ubuntu.img"] = VmLoadHistoryRecord(utilisation=0.2, std_dev=0.05)
    db.disk_averages["centos.img"] = VmLoadHistoryRecord(utilisation=0.6, std_dev=0.2)
    return db


@pytest.fixture
def data_source():
    return FakeHostDataSource(utilisation=0.35)


@pytest.fixture
def test_settings(tmp_path):
    """Settings isolated from any .env file and the working directory"""
    return Settings(
        _env_file=None,
        WORKLOAD_PREDICTION_MAPPING_FILE=str(tmp_path / "WorkloadPredictionMapping.csv"),
        LOG_LEVEL="DEBUG",
    )
