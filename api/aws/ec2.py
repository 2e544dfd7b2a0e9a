# -*- coding: utf-8 -*-
"""
EC2/EBS API 客户端模块

功能：
- 封装 EC2 API 调用（DescribeInstances, DescribeVolumes）
- 返回资源数据供 AWS/EC2 和 AWS/EBS 的维度解析使用
"""

import boto3
import logging
from typing import List, Dict, Any, Optional
from botocore.exceptions import ClientError

from provider.interfaces import ComputeDiscovery

logger = logging.getLogger(__name__)


class EC2Client(ComputeDiscovery):
    """
    EC2 API 客户端

    功能：
    - 调用 EC2 Describe API 获取资源信息
    - 支持过滤和分页
    - 返回标准化的资源数据（含 Tags）

    AWS/EBS 的卷也通过 EC2 API 查询，所以两个 namespace 共用这个客户端。
    """

    def __init__(self, region: str = 'us-east-1', access_key: str = None, secret_key: str = None):
        """
        初始化 EC2 客户端

        Args:
            region: AWS 区域
            access_key: AWS Access Key（可选，如果提供则使用指定凭证）
            secret_key: AWS Secret Key（可选，如果提供则使用指定凭证）
        """
        self.region = region
        try:
            if access_key and secret_key:
                session = boto3.Session(
                    aws_access_key_id=access_key,
                    aws_secret_access_key=secret_key
                )
                self.client = session.client('ec2', region_name=region)
                logger.debug(f"EC2 客户端初始化成功（使用指定凭证），区域: {region}")
            else:
                self.client = boto3.client('ec2', region_name=region)
                logger.debug(f"EC2 客户端初始化成功（使用默认凭证链），区域: {region}")
        except Exception as e:
            logger.error(f"初始化 EC2 客户端失败: {e}")
            raise

    def describe_instances(self, filters: Optional[List[Dict]] = None) -> List[Dict[str, Any]]:
        """
        描述 EC2 实例

        Args:
            filters: 过滤条件列表（如 [{'Name': 'tag:Monitoring', 'Values': ['yes']}]）

        Returns:
            实例列表，每个包含 InstanceId, State, Tags 字段
        """
        try:
            instances = []

            paginate_params = {}
            if filters:
                paginate_params['Filters'] = filters

            paginator = self.client.get_paginator('describe_instances')

            for page in paginator.paginate(**paginate_params):
                for reservation in page.get('Reservations', []):
                    for instance in reservation.get('Instances', []):
                        instances.append({
                            'InstanceId': instance.get('InstanceId', ''),
                            'State': instance.get('State', {}).get('Name', ''),
                            'Tags': _tags_to_dict(instance.get('Tags'))
                        })

            logger.debug(f"获取到 {len(instances)} 个实例")
            return instances

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            error_message = e.response.get("Error", {}).get("Message")
            logger.error(f"DescribeInstances 失败: {error_code} - {error_message}")
            raise
        except Exception as e:
            logger.error(f"DescribeInstances 失败: {e}")
            raise

    def describe_volumes(self, filters: Optional[List[Dict]] = None) -> List[Dict[str, Any]]:
        """
        描述 EBS 卷

        Args:
            filters: 过滤条件列表

        Returns:
            卷列表，每个包含 VolumeId, State, Attachments, Tags 字段
        """
        try:
            volumes = []

            paginate_params = {}
            if filters:
                paginate_params['Filters'] = filters

            paginator = self.client.get_paginator('describe_volumes')

            for page in paginator.paginate(**paginate_params):
                for volume in page.get('Volumes', []):
                    volumes.append({
                        'VolumeId': volume.get('VolumeId', ''),
                        'State': volume.get('State', ''),
                        'Attachments': [
                            {
                                'VolumeId': attachment.get('VolumeId', ''),
                                'InstanceId': attachment.get('InstanceId', ''),
                                'State': attachment.get('State', '')
                            }
                            for attachment in volume.get('Attachments', [])
                        ],
                        'Tags': _tags_to_dict(volume.get('Tags'))
                    })

            logger.debug(f"获取到 {len(volumes)} 个卷")
            return volumes

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            error_message = e.response.get("Error", {}).get("Message")
            logger.error(f"DescribeVolumes 失败: {error_code} - {error_message}")
            raise
        except Exception as e:
            logger.error(f"DescribeVolumes 失败: {e}")
            raise


def _tags_to_dict(tags: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    """[{'Key': k, 'Value': v}] -> {k: v}"""
    return {tag['Key']: tag.get('Value', '') for tag in (tags or []) if 'Key' in tag}
