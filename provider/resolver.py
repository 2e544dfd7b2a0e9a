# -*- coding: utf-8 -*-
"""
资源维度解析模块

功能：
- 根据 namespace 和 filters 得到要查询的维度集合
- EC2 / EBS / ELB 通过 Describe API 发现资源
- 其它 namespace 直接把 filters 当作维度
- 每次调用都重新解析，不跨周期缓存（资源可能因弹性伸缩变化）
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Iterator, Tuple, Optional

from provider.interfaces import ComputeDiscovery, LoadBalancerDiscovery
from provider.namespaces import NamespaceKind, NamespaceSpec, namespace_spec

logger = logging.getLogger(__name__)

# AWS/EC2 未配置 filters 时只查询运行中的实例，已停止或终止的实例没有新数据点
DEFAULT_INSTANCE_FILTERS = {'instance-state-name': ['running']}


@dataclass
class ResourceSet:
    """一次解析的结果：维度名 -> 资源 ID 列表（有序），以及资源标签"""
    dimensions: Dict[str, List[str]] = field(default_factory=dict)
    tags: Dict[str, Dict[str, str]] = field(default_factory=dict)  # resource_id -> {tag_key: tag_value}

    def pairs(self) -> Iterator[Tuple[str, str]]:
        """按顺序遍历 (维度名, 资源 ID)"""
        for name, values in self.dimensions.items():
            for value in values:
                yield name, value

    def dimension_list(self) -> List[Dict[str, str]]:
        """组合模式：所有维度一次性作为查询条件"""
        return [{'Name': name, 'Value': value} for name, value in self.pairs()]

    def tags_for(self, resource_id: str) -> Dict[str, str]:
        return self.tags.get(resource_id, {})

    def is_empty(self) -> bool:
        return not any(self.dimensions.values())


def to_aws_filters(filters: Dict[str, List[str]]) -> List[Dict]:
    """{'tag:Monitoring': ['yes']} -> [{'Name': 'tag:Monitoring', 'Values': ['yes']}]"""
    return [{'Name': key, 'Values': list(values)} for key, values in filters.items()]


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


class ResourceResolver:
    """
    资源维度解析器

    功能：
    - 按 NamespaceKind 选择发现策略
    - 调用外部 Describe API，把嵌套结构展开成 {维度名: [资源 ID]}

    EBS 卷通过 EC2 API 查询，但输出仍然标记为 AWS/EBS 维度（VolumeId）。
    """

    def __init__(
        self,
        ec2_client: Optional[ComputeDiscovery] = None,
        elb_client: Optional[LoadBalancerDiscovery] = None
    ):
        """
        初始化解析器

        Args:
            ec2_client: EC2 客户端（AWS/EC2 和 AWS/EBS 共用）
            elb_client: ELB 客户端
        """
        self.ec2_client = ec2_client
        self.elb_client = elb_client
        self._strategies = {
            NamespaceKind.COMPUTE: self._resolve_instances,
            NamespaceKind.BLOCK_STORAGE: self._resolve_volumes,
            NamespaceKind.LOAD_BALANCER: self._resolve_load_balancers,
            NamespaceKind.GENERIC: self._resolve_passthrough,
        }

    def resolve(self, namespace: str, filters: Dict[str, List[str]], combined: bool = False) -> ResourceSet:
        """
        解析维度

        Args:
            namespace: CloudWatch namespace
            filters: 有序的 {过滤键: [值]}
            combined: True 时不做发现，filters 直接作为维度

        Returns:
            ResourceSet 对象
        """
        if combined:
            return ResourceSet(dimensions={key: _as_list(values) for key, values in filters.items()})

        spec = namespace_spec(namespace)
        resources = self._strategies[spec.kind](spec, filters)

        if resources.is_empty():
            logger.info(f"{namespace} 没有匹配的资源 (filters: {filters})")
        else:
            logger.debug(f"{namespace} 解析到 {sum(len(v) for v in resources.dimensions.values())} 个资源")

        return resources

    def _resolve_instances(self, spec: NamespaceSpec, filters: Dict[str, List[str]]) -> ResourceSet:
        client = self._require(self.ec2_client, spec)
        instances = client.describe_instances(to_aws_filters(filters or DEFAULT_INSTANCE_FILTERS))

        ids = _unique([instance.get('InstanceId') for instance in instances])
        tags = {instance['InstanceId']: instance.get('Tags') or {} for instance in instances if instance.get('InstanceId')}
        return ResourceSet(dimensions={spec.dimension_name: ids}, tags=tags)

    def _resolve_volumes(self, spec: NamespaceSpec, filters: Dict[str, List[str]]) -> ResourceSet:
        client = self._require(self.ec2_client, spec)
        volumes = client.describe_volumes(to_aws_filters(filters))

        # 只取已挂载的卷，未挂载的卷没有 IO 指标
        ids = _unique([
            attachment.get('VolumeId')
            for volume in volumes
            for attachment in volume.get('Attachments', [])
        ])
        tags = {volume['VolumeId']: volume.get('Tags') or {} for volume in volumes if volume.get('VolumeId')}
        return ResourceSet(dimensions={spec.dimension_name: ids}, tags=tags)

    def _resolve_load_balancers(self, spec: NamespaceSpec, filters: Dict[str, List[str]]) -> ResourceSet:
        client = self._require(self.elb_client, spec)

        names = []
        for key, values in filters.items():
            if key == spec.dimension_name:
                names.extend(_as_list(values))
            else:
                logger.warning(f"{spec.namespace} 不支持过滤键 {key}，已忽略")

        load_balancers = client.describe_load_balancers(names or None)
        ids = _unique([lb.get('LoadBalancerName') for lb in load_balancers])
        return ResourceSet(dimensions={spec.dimension_name: ids})

    def _resolve_passthrough(self, spec: NamespaceSpec, filters: Dict[str, List[str]]) -> ResourceSet:
        return ResourceSet(dimensions={key: _as_list(values) for key, values in filters.items()})

    def _require(self, client, spec: NamespaceSpec):
        if client is None:
            raise RuntimeError(f"{spec.namespace} 需要 {spec.kind.value} 发现客户端，但未配置")
        return client


def _as_list(values) -> List[str]:
    if isinstance(values, (list, tuple)):
        return [str(v) for v in values]
    return [str(values)]
