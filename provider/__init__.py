# -*- coding: utf-8 -*-
"""
Provider 模块

功能：
- 定义外部客户端接口
- 按 namespace 解析要查询的资源维度
"""

from .interfaces import MetricsSource, ComputeDiscovery, LoadBalancerDiscovery
from .namespaces import NamespaceKind, NamespaceSpec, namespace_spec
from .resolver import ResourceResolver, ResourceSet

__all__ = [
    'MetricsSource', 'ComputeDiscovery', 'LoadBalancerDiscovery',
    'NamespaceKind', 'NamespaceSpec', 'namespace_spec',
    'ResourceResolver', 'ResourceSet'
]
