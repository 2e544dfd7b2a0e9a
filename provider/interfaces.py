# -*- coding: utf-8 -*-
"""
外部客户端接口定义

功能：
- 定义 MetricsSource（指标目录 + 统计数据）、ComputeDiscovery 和 LoadBalancerDiscovery（资源发现）接口
- 主流程只依赖接口，不关心具体实现（boto3 或测试用假客户端）
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional


class MetricsSource(ABC):
    """
    指标数据源接口

    功能：
    - 列出 namespace 下可用的指标
    - 获取单个 metric 在时间窗口内的统计数据
    """

    @abstractmethod
    def list_metrics(self, namespace: str) -> List[str]:
        """
        获取 namespace 下可用的指标名称

        Args:
            namespace: 命名空间

        Returns:
            指标名称列表
        """
        pass

    @abstractmethod
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
        获取统计数据点

        Returns:
            Datapoint 列表，每个包含 Timestamp 和部分统计值
        """
        pass


class ComputeDiscovery(ABC):
    """
    计算/块存储资源发现接口（EC2 API）

    AWS/EC2 和 AWS/EBS 共用同一个客户端。
    """

    @abstractmethod
    def describe_instances(self, filters: Optional[List[Dict]] = None) -> List[Dict[str, Any]]:
        """按过滤条件列出 EC2 实例（已展开 reservation）"""
        pass

    @abstractmethod
    def describe_volumes(self, filters: Optional[List[Dict]] = None) -> List[Dict[str, Any]]:
        """按过滤条件列出 EBS 卷"""
        pass


class LoadBalancerDiscovery(ABC):
    """负载均衡器发现接口（Classic ELB API）"""

    @abstractmethod
    def describe_load_balancers(self, names: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """列出负载均衡器，names 为空时列出全部"""
        pass
