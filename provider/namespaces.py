# -*- coding: utf-8 -*-
"""
Namespace 分类模块

功能：
- 把 CloudWatch namespace 映射到资源发现策略（EC2 / EBS / ELB / 通用）
- 记录每种策略对应的维度名称和是否必须配置 filters
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


EC2_NAMESPACE = 'AWS/EC2'
EBS_NAMESPACE = 'AWS/EBS'
ELB_NAMESPACE = 'AWS/ELB'


class NamespaceKind(Enum):
    """资源发现策略"""
    COMPUTE = "compute"                # DescribeInstances -> InstanceId
    BLOCK_STORAGE = "block_storage"    # DescribeVolumes（走 EC2 API）-> VolumeId
    LOAD_BALANCER = "load_balancer"    # DescribeLoadBalancers -> LoadBalancerName
    GENERIC = "generic"                # 不做发现，filters 直接作为维度


@dataclass(frozen=True)
class NamespaceSpec:
    """某个 namespace 的发现策略描述"""
    namespace: str
    kind: NamespaceKind
    dimension_name: Optional[str]   # GENERIC 没有固定维度名
    requires_filters: bool


_KNOWN = {
    EC2_NAMESPACE: (NamespaceKind.COMPUTE, 'InstanceId', False),
    EBS_NAMESPACE: (NamespaceKind.BLOCK_STORAGE, 'VolumeId', True),
    ELB_NAMESPACE: (NamespaceKind.LOAD_BALANCER, 'LoadBalancerName', True),
}


def namespace_spec(namespace: str) -> NamespaceSpec:
    """
    获取 namespace 的发现策略

    只有 AWS/EC2 允许不配置 filters（按整个实例集合查询），其余 namespace 都必须配置。

    Args:
        namespace: CloudWatch namespace，如 'AWS/EC2', 'AWS/RDS'

    Returns:
        NamespaceSpec 对象
    """
    if namespace in _KNOWN:
        kind, dimension_name, requires_filters = _KNOWN[namespace]
        return NamespaceSpec(namespace, kind, dimension_name, requires_filters)
    return NamespaceSpec(namespace, NamespaceKind.GENERIC, None, True)
