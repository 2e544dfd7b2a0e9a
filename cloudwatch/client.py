# -*- coding: utf-8 -*-
"""
AWS CloudWatch 指标查询模块

功能：
- 列出某个 namespace 下可用的指标名称
- 按 metric + dimensions + 时间窗口获取统计数据
- 原样返回 Datapoints，不排序、不去重
"""

import boto3
import logging
from typing import List, Dict, Any, Optional
from botocore.exceptions import ClientError

from provider.interfaces import MetricsSource

logger = logging.getLogger(__name__)


class CloudWatchClient(MetricsSource):
    """
    CloudWatch 指标客户端

    功能：
    - ListMetrics：发现 namespace 下的指标目录
    - GetMetricStatistics：拉取单个 metric 的统计数据点
    """

    def __init__(self, region: str = 'us-east-1', access_key: str = None, secret_key: str = None):
        """
        初始化 CloudWatch 客户端

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
                self.client = session.client('cloudwatch', region_name=region)
                logger.debug(f"CloudWatch 客户端初始化成功（使用指定凭证），区域: {region}")
            else:
                self.client = boto3.client('cloudwatch', region_name=region)
                logger.debug(f"CloudWatch 客户端初始化成功（使用默认凭证链），区域: {region}")
        except Exception as e:
            logger.error(f"初始化 CloudWatch 客户端失败: {e}")
            raise

    def list_metrics(self, namespace: str) -> List[str]:
        """
        列出 namespace 下的所有指标名称

        同一个指标在不同 dimension 组合下会重复出现，这里按首次出现顺序去重。

        Args:
            namespace: 命名空间（如 'AWS/EC2'）

        Returns:
            指标名称列表
        """
        try:
            names = []
            seen = set()

            paginator = self.client.get_paginator('list_metrics')

            for page in paginator.paginate(Namespace=namespace):
                for metric in page.get('Metrics', []):
                    name = metric.get('MetricName')
                    if name and name not in seen:
                        seen.add(name)
                        names.append(name)

            logger.debug(f"ListMetrics {namespace}: 获取到 {len(names)} 个指标")
            return names

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            error_message = e.response.get("Error", {}).get("Message")
            logger.error(f"ListMetrics 失败 {namespace}: {error_code} - {error_message}")
            raise
        except Exception as e:
            logger.error(f"ListMetrics 失败 {namespace}: {e}")
            raise

    def get_metric_statistics(
        self,
        namespace: str,
        metric_name: str,
        dimensions: List[Dict[str, str]],
        start_time: str,
        end_time: str,
        period: int,
        statistics: List[str]
    ) -> List[Dict[str, Any]]:
        """
        获取 CloudWatch 指标统计数据

        Args:
            namespace: 命名空间
            metric_name: 指标名称
            dimensions: 维度列表（[{'Name': ..., 'Value': ...}]）
            start_time: 开始时间（ISO-8601）
            end_time: 结束时间（ISO-8601）
            period: 数据点粒度（秒）
            statistics: 统计方法列表

        Returns:
            Datapoints 列表，保持 API 返回顺序
        """
        try:
            response = self.client.get_metric_statistics(
                Namespace=namespace,
                MetricName=metric_name,
                Dimensions=dimensions,
                StartTime=start_time,
                EndTime=end_time,
                Period=period,
                Statistics=statistics
            )

            datapoints = response.get('Datapoints', [])
            if not datapoints:
                # 无数据是正常情况（资源刚创建或指标未上报）
                logger.debug(f"CloudWatch 指标无数据: {namespace}/{metric_name} (dimensions: {dimensions})")

            return datapoints

        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code")
            error_message = e.response.get("Error", {}).get("Message")
            logger.error(f"CloudWatch API 调用异常 {namespace}/{metric_name}: {error_code} - {error_message}")
            raise
        except Exception as e:
            logger.error(f"CloudWatch API 调用异常 {namespace}/{metric_name}: {e}")
            raise
