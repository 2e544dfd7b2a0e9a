"""Tests for the boto3 wrappers, stubbed with botocore's Stubber."""

from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from api.aws.ec2 import EC2Client
from api.aws.elb import ELBClient
from cloudwatch.client import CloudWatchClient

CREDENTIALS = {'region': 'us-east-1', 'access_key': 'testing', 'secret_key': 'testing'}


@pytest.fixture
def cloudwatch():
    client = CloudWatchClient(**CREDENTIALS)
    with Stubber(client.client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def ec2():
    client = EC2Client(**CREDENTIALS)
    with Stubber(client.client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def elb():
    client = ELBClient(**CREDENTIALS)
    with Stubber(client.client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


class TestCloudWatchClient:
    """Tests for CloudWatchClient."""

    @pytest.mark.aws
    def test_list_metrics_dedupes_across_pages(self, cloudwatch) -> None:
        client, stubber = cloudwatch
        stubber.add_response('list_metrics', {
            'Metrics': [
                {'Namespace': 'AWS/EC2', 'MetricName': 'CPUUtilization',
                 'Dimensions': [{'Name': 'InstanceId', 'Value': 'i-1'}]},
                {'Namespace': 'AWS/EC2', 'MetricName': 'NetworkIn',
                 'Dimensions': [{'Name': 'InstanceId', 'Value': 'i-1'}]},
            ],
            'NextToken': 'page-2',
        }, {'Namespace': 'AWS/EC2'})
        stubber.add_response('list_metrics', {
            'Metrics': [
                {'Namespace': 'AWS/EC2', 'MetricName': 'CPUUtilization',
                 'Dimensions': [{'Name': 'InstanceId', 'Value': 'i-2'}]},
            ],
        }, {'Namespace': 'AWS/EC2', 'NextToken': 'page-2'})

        assert client.list_metrics('AWS/EC2') == ['CPUUtilization', 'NetworkIn']

    @pytest.mark.aws
    def test_get_metric_statistics_returns_datapoints_as_received(self, cloudwatch) -> None:
        client, stubber = cloudwatch
        later = datetime(2024, 3, 1, 11, 55, tzinfo=timezone.utc)
        earlier = datetime(2024, 3, 1, 11, 50, tzinfo=timezone.utc)
        request = {
            'Namespace': 'AWS/EC2',
            'MetricName': 'CPUUtilization',
            'Dimensions': [{'Name': 'InstanceId', 'Value': 'i-1'}],
            'StartTime': '2024-03-01T11:45:00+00:00',
            'EndTime': '2024-03-01T12:00:00+00:00',
            'Period': 300,
            'Statistics': ['Average'],
        }
        stubber.add_response('get_metric_statistics', {
            'Label': 'CPUUtilization',
            'Datapoints': [
                {'Timestamp': later, 'Average': 2.0, 'Unit': 'Percent'},
                {'Timestamp': earlier, 'Average': 1.0, 'Unit': 'Percent'},
            ],
        }, request)

        datapoints = client.get_metric_statistics(
            'AWS/EC2', 'CPUUtilization', [{'Name': 'InstanceId', 'Value': 'i-1'}],
            '2024-03-01T11:45:00+00:00', '2024-03-01T12:00:00+00:00', 300, ['Average'],
        )

        assert [dp['Average'] for dp in datapoints] == [2.0, 1.0]

    @pytest.mark.aws
    def test_get_metric_statistics_reraises_throttling(self, cloudwatch) -> None:
        client, stubber = cloudwatch
        stubber.add_client_error('get_metric_statistics', service_error_code='Throttling',
                                 service_message='Rate exceeded', http_status_code=400)

        with pytest.raises(ClientError):
            client.get_metric_statistics(
                'AWS/EC2', 'CPUUtilization', [], '2024-03-01T11:45:00+00:00',
                '2024-03-01T12:00:00+00:00', 300, ['Average'],
            )


class TestEC2Client:
    """Tests for EC2Client."""

    @pytest.mark.aws
    def test_describe_instances_flattens_reservations(self, ec2) -> None:
        client, stubber = ec2
        filters = [{'Name': 'tag:Monitoring', 'Values': ['yes']}]
        stubber.add_response('describe_instances', {
            'Reservations': [
                {'Instances': [
                    {'InstanceId': 'i-1', 'State': {'Code': 16, 'Name': 'running'},
                     'Tags': [{'Key': 'Name', 'Value': 'web'}]},
                    {'InstanceId': 'i-2', 'State': {'Code': 16, 'Name': 'running'}},
                ]},
                {'Instances': [{'InstanceId': 'i-3', 'State': {'Code': 80, 'Name': 'stopped'}}]},
            ],
        }, {'Filters': filters})

        instances = client.describe_instances(filters)

        assert [i['InstanceId'] for i in instances] == ['i-1', 'i-2', 'i-3']
        assert instances[0]['Tags'] == {'Name': 'web'}
        assert instances[1]['Tags'] == {}

    @pytest.mark.aws
    def test_describe_instances_without_filters(self, ec2) -> None:
        client, stubber = ec2
        stubber.add_response('describe_instances', {'Reservations': []}, {})
        assert client.describe_instances([]) == []

    @pytest.mark.aws
    def test_describe_volumes_keeps_attachments(self, ec2) -> None:
        client, stubber = ec2
        stubber.add_response('describe_volumes', {
            'Volumes': [{
                'VolumeId': 'vol-1', 'State': 'in-use',
                'Attachments': [{'VolumeId': 'vol-1', 'InstanceId': 'i-1', 'State': 'attached'}],
                'Tags': [{'Key': 'env', 'Value': 'prod'}],
            }],
        }, {'Filters': [{'Name': 'tag:Monitoring', 'Values': ['yes']}]})

        volumes = client.describe_volumes([{'Name': 'tag:Monitoring', 'Values': ['yes']}])

        assert volumes[0]['Attachments'][0]['VolumeId'] == 'vol-1'
        assert volumes[0]['Tags'] == {'env': 'prod'}

    @pytest.mark.aws
    def test_describe_instances_reraises_client_error(self, ec2) -> None:
        client, stubber = ec2
        stubber.add_client_error('describe_instances', service_error_code='RequestLimitExceeded')
        with pytest.raises(ClientError):
            client.describe_instances()


class TestELBClient:
    """Tests for ELBClient."""

    @pytest.mark.aws
    def test_describe_load_balancers_by_name(self, elb) -> None:
        client, stubber = elb
        stubber.add_response('describe_load_balancers', {
            'LoadBalancerDescriptions': [
                {'LoadBalancerName': 'web-lb', 'DNSName': 'web-lb.elb.amazonaws.com', 'Scheme': 'internet-facing'},
            ],
        }, {'LoadBalancerNames': ['web-lb']})

        load_balancers = client.describe_load_balancers(['web-lb'])

        assert [lb['LoadBalancerName'] for lb in load_balancers] == ['web-lb']
