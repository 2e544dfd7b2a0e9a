"""Shared fakes and fixtures for poller tests."""

from datetime import datetime, timedelta, timezone

import pytest

from config.loader import PollConfiguration
from provider.interfaces import ComputeDiscovery, LoadBalancerDiscovery, MetricsSource

NOW = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeMetricsSource(MetricsSource):
    """In-memory CloudWatch stand-in that records every call."""

    def __init__(self, catalog=None, datapoints=None, failures=None):
        self.catalog = catalog or {}
        # (metric, dimension value) -> datapoints; None key matches any dimension
        self.datapoints = datapoints or {}
        # set of (metric, dimension value) that raise
        self.failures = set(failures or ())
        self.list_calls = []
        self.queries = []

    def list_metrics(self, namespace):
        self.list_calls.append(namespace)
        return list(self.catalog.get(namespace, []))

    def get_metric_statistics(self, namespace, metric_name, dimensions, start_time,
                              end_time, period, statistics):
        self.queries.append({
            'namespace': namespace,
            'metric_name': metric_name,
            'dimensions': dimensions,
            'start_time': start_time,
            'end_time': end_time,
            'period': period,
            'statistics': statistics,
        })
        value = dimensions[0]['Value'] if dimensions else None
        if (metric_name, value) in self.failures:
            raise TimeoutError(f"timed out querying {metric_name} {value}")
        if (metric_name, value) in self.datapoints:
            return list(self.datapoints[(metric_name, value)])
        return list(self.datapoints.get((metric_name, None), []))


class FakeDiscovery(ComputeDiscovery, LoadBalancerDiscovery):
    """Describe API stand-in for EC2/EBS/ELB resolution."""

    def __init__(self, instances=None, volumes=None, load_balancers=None, error=None):
        self.instances = instances or []
        self.volumes = volumes or []
        self.load_balancers = load_balancers or []
        self.error = error
        self.calls = []

    def describe_instances(self, filters=None):
        self.calls.append(('describe_instances', filters))
        if self.error:
            raise self.error
        return list(self.instances)

    def describe_volumes(self, filters=None):
        self.calls.append(('describe_volumes', filters))
        if self.error:
            raise self.error
        return list(self.volumes)

    def describe_load_balancers(self, names=None):
        self.calls.append(('describe_load_balancers', names))
        if self.error:
            raise self.error
        return list(self.load_balancers)


def datapoint(minutes_ago=5, **stats):
    """Build a CloudWatch-shaped datapoint."""
    point = {'Timestamp': NOW - timedelta(minutes=minutes_ago), 'Unit': 'Percent'}
    point.update(stats or {'Average': 1.0})
    return point


def make_config(**overrides):
    values = {
        'name': 'test-input',
        'namespace': 'AWS/EC2',
        'metric_names': ('CPUUtilization',),
        'statistics': ('Average', 'Maximum'),
        'interval': 900,
        'period': 300,
        'filters': {},
        'combined': False,
    }
    values.update(overrides)
    return PollConfiguration(**values)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def events() -> list:
    return []
