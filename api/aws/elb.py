# -*- coding: utf-8 -*-
"""
Elastic Load Balancing API 客户端模块

功能：
- 封装 Classic ELB 的 DescribeLoadBalancers 调用
- AWS/ELB namespace 的维度是 LoadBalancerName，所以这里用 elb 而不是 elbv2
"""

import boto3
import logging
from typing import List, Dict, Any, Optional
from botocore.exceptions import ClientError

from provider.interfaces import LoadBalancerDiscovery

logger = logging.getLogger(__name__)


class ELBClient(LoadBalancerDiscovery):
    """
    ELB API 客户端

    功能：
    - 调用 ELB Describe API 获取负载均衡器
    - 支持按名称过滤
    - 返回标准化的资源数据
    """

    def __init__(self, region: str = 'us-east-1', access_key: str = None, secret_key: str = None):
        """
        初始化 ELB 客户端

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
                self.client = session.client('elb', region_name=region)
                logger.debug(f"ELB 客户端初始化成功（使用指定凭证），区域: {region}")
            else:
                self.client = boto3.client('elb', region_name=region)
                logger.debug(f"ELB 客户端初始化成功（使用默认凭证链），区域: {region}")
        except Exception as e:
            logger.error(f"初始化 ELB 客户端失败: {e}")
            raise

    def describe_load_balancers(self, names: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """
        描述负载均衡器

        Args:
            names: 负载均衡器名称过滤（可选）

        Returns:
            负载均衡器列表，每个包含 LoadBalancerName, DNSName, Scheme 字段
        """
        try:
            load_balancers = []

            paginate_params = {}
            if names:
                paginate_params['LoadBalancerNames'] = list(names)

            paginator = self.client.get_paginator('describe_load_balancers')

            for page in paginator.paginate(**paginate_params):
                for lb in page.get('LoadBalancerDescriptions', []):
                    load_balancers.append({
                        'LoadBalancerName': lb.get('LoadBalancerName', ''),
                        'DNSName': lb.get('DNSName', ''),
                        'Scheme': lb.get('Scheme', '')
                    })

            logger.debug(f"获取到 {len(load_balancers)} 个负载均衡器")
            return load_balancers

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            error_message = e.response.get("Error", {}).get("Message")
            logger.error(f"DescribeLoadBalancers 失败: {error_code} - {error_message}")
            raise
        except Exception as e:
            logger.error(f"DescribeLoadBalancers 失败: {e}")
            raise
