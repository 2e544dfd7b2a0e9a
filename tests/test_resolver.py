"""Tests for namespace classification and resource resolution."""

import pytest

from provider.interfaces import ComputeDiscovery, LoadBalancerDiscovery
from provider.namespaces import NamespaceKind, namespace_spec
from provider.resolver import ResourceResolver, ResourceSet, to_aws_filters
from conftest import FakeDiscovery


class TestNamespaceSpec:
    """Tests for namespace_spec()."""

    @pytest.mark.core
    @pytest.mark.parametrize("namespace,kind,dimension", [
        ('AWS/EC2', NamespaceKind.COMPUTE, 'InstanceId'),
        ('AWS/EBS', NamespaceKind.BLOCK_STORAGE, 'VolumeId'),
        ('AWS/ELB', NamespaceKind.LOAD_BALANCER, 'LoadBalancerName'),
        ('AWS/RDS', NamespaceKind.GENERIC, None),
    ])
    def test_kind_and_dimension(self, namespace, kind, dimension) -> None:
        spec = namespace_spec(namespace)
        assert spec.kind == kind
        assert spec.dimension_name == dimension

    @pytest.mark.core
    def test_only_compute_allows_empty_filters(self) -> None:
        assert namespace_spec('AWS/EC2').requires_filters is False
        for namespace in ('AWS/EBS', 'AWS/ELB', 'AWS/RDS', 'AWS/S3'):
            assert namespace_spec(namespace).requires_filters is True


class TestResolve:
    """Tests for ResourceResolver.resolve."""

    @pytest.mark.core
    def test_filters_translate_to_wire_format(self) -> None:
        assert to_aws_filters({'tag:Monitoring': ['yes'], 'instance-type': ['t3.micro', 'm5.large']}) == [
            {'Name': 'tag:Monitoring', 'Values': ['yes']},
            {'Name': 'instance-type', 'Values': ['t3.micro', 'm5.large']},
        ]

    @pytest.mark.core
    def test_compute_flattens_instances(self) -> None:
        ec2 = FakeDiscovery(instances=[
            {'InstanceId': 'i-1', 'Tags': {'Name': 'web'}},
            {'InstanceId': 'i-2', 'Tags': {}},
            {'InstanceId': 'i-1', 'Tags': {'Name': 'web'}},
        ])
        resolver = ResourceResolver(ec2_client=ec2)

        resources = resolver.resolve('AWS/EC2', {'tag:Monitoring': ['yes']})

        assert resources.dimensions == {'InstanceId': ['i-1', 'i-2']}
        assert resources.tags_for('i-1') == {'Name': 'web'}
        assert ec2.calls == [('describe_instances', [{'Name': 'tag:Monitoring', 'Values': ['yes']}])]

    @pytest.mark.core
    def test_compute_without_filters_lists_running_instances(self) -> None:
        ec2 = FakeDiscovery(instances=[{'InstanceId': 'i-1'}])
        resolver = ResourceResolver(ec2_client=ec2)

        resolver.resolve('AWS/EC2', {})

        assert ec2.calls == [('describe_instances', [{'Name': 'instance-state-name', 'Values': ['running']}])]

    @pytest.mark.core
    def test_compute_user_filters_replace_state_default(self) -> None:
        ec2 = FakeDiscovery()
        resolver = ResourceResolver(ec2_client=ec2)

        resolver.resolve('AWS/EC2', {'instance-state-name': ['running', 'stopped']})

        assert ec2.calls == [
            ('describe_instances', [{'Name': 'instance-state-name', 'Values': ['running', 'stopped']}]),
        ]

    @pytest.mark.core
    def test_block_storage_routes_through_compute_client(self) -> None:
        ec2 = FakeDiscovery(volumes=[
            {'VolumeId': 'vol-1', 'Attachments': [{'VolumeId': 'vol-1', 'InstanceId': 'i-1'}], 'Tags': {'env': 'prod'}},
            {'VolumeId': 'vol-2', 'Attachments': [], 'Tags': {}},
        ])
        resolver = ResourceResolver(ec2_client=ec2)

        resources = resolver.resolve('AWS/EBS', {'tag:Monitoring': ['yes']})

        assert resources.dimensions == {'VolumeId': ['vol-1']}
        assert resources.tags_for('vol-1') == {'env': 'prod'}
        assert ec2.calls[0][0] == 'describe_volumes'

    @pytest.mark.core
    def test_load_balancer_uses_name_filter(self) -> None:
        elb = FakeDiscovery(load_balancers=[{'LoadBalancerName': 'web-lb'}, {'LoadBalancerName': 'api-lb'}])
        resolver = ResourceResolver(elb_client=elb)

        resources = resolver.resolve('AWS/ELB', {'LoadBalancerName': ['web-lb', 'api-lb'], 'other': ['x']})

        assert resources.dimensions == {'LoadBalancerName': ['web-lb', 'api-lb']}
        assert elb.calls == [('describe_load_balancers', ['web-lb', 'api-lb'])]

    @pytest.mark.core
    def test_generic_namespace_passes_filters_through(self) -> None:
        ec2 = FakeDiscovery()
        resolver = ResourceResolver(ec2_client=ec2)

        resources = resolver.resolve('AWS/RDS', {'EngineName': ['mysql'], 'DatabaseClass': ['db.t3.micro']})

        assert list(resources.pairs()) == [('EngineName', 'mysql'), ('DatabaseClass', 'db.t3.micro')]
        assert ec2.calls == []

    @pytest.mark.core
    def test_combined_skips_discovery(self) -> None:
        ec2 = FakeDiscovery(instances=[{'InstanceId': 'i-1'}])
        resolver = ResourceResolver(ec2_client=ec2)

        resources = resolver.resolve('AWS/EC2', {'AutoScalingGroupName': 'asg-1'}, combined=True)

        assert resources.dimension_list() == [{'Name': 'AutoScalingGroupName', 'Value': 'asg-1'}]
        assert ec2.calls == []

    @pytest.mark.core
    def test_empty_discovery_is_empty_set(self) -> None:
        resolver = ResourceResolver(ec2_client=FakeDiscovery())
        resources = resolver.resolve('AWS/EC2', {})
        assert resources.is_empty()
        assert list(resources.pairs()) == []

    @pytest.mark.core
    def test_resolves_fresh_every_call(self) -> None:
        ec2 = FakeDiscovery(instances=[{'InstanceId': 'i-1'}])
        resolver = ResourceResolver(ec2_client=ec2)
        resolver.resolve('AWS/EC2', {})
        ec2.instances.append({'InstanceId': 'i-2'})
        assert resolver.resolve('AWS/EC2', {}).dimensions == {'InstanceId': ['i-1', 'i-2']}

    @pytest.mark.core
    def test_missing_client_raises(self) -> None:
        resolver = ResourceResolver()
        with pytest.raises(RuntimeError):
            resolver.resolve('AWS/ELB', {'LoadBalancerName': ['web-lb']})

    @pytest.mark.core
    def test_discovery_errors_propagate(self) -> None:
        resolver = ResourceResolver(ec2_client=FakeDiscovery(error=ConnectionError("throttled")))
        with pytest.raises(ConnectionError):
            resolver.resolve('AWS/EC2', {})


class TestResourceSet:
    """Tests for ResourceSet helpers."""

    @pytest.mark.core
    def test_pairs_preserve_order(self) -> None:
        resources = ResourceSet(dimensions={'A': ['1', '2'], 'B': ['3']})
        assert list(resources.pairs()) == [('A', '1'), ('A', '2'), ('B', '3')]

    @pytest.mark.core
    def test_tags_default_empty(self) -> None:
        assert ResourceSet().tags_for('i-unknown') == {}


class TestDiscoveryInterfaces:
    """Tests for the discovery client interfaces."""

    @pytest.mark.core
    def test_incomplete_compute_client_cannot_be_built(self) -> None:
        class InstancesOnly(ComputeDiscovery):
            def describe_instances(self, filters=None):
                return []

        with pytest.raises(TypeError):
            InstancesOnly()

    @pytest.mark.core
    def test_load_balancer_client_must_describe(self) -> None:
        with pytest.raises(TypeError):
            type('Empty', (LoadBalancerDiscovery,), {})()
