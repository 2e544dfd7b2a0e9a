# -*- coding: utf-8 -*-
"""
事件标准化模块

功能：
- 把 CloudWatch Datapoint 和查询描述合并成统一的输出事件
- 去掉查询回显字段（statistics / dimensions）
- 时间统一为带时区的 UTC datetime，事件时间取数据点自身的 Timestamp
- 维度、资源标签、type / add_field 装饰作为顶层字段
"""

import re
import logging
from typing import Dict, Any, Optional

from query.builder import QueryDescriptor, parse_timestamp

logger = logging.getLogger(__name__)

STATISTICS = ['SampleCount', 'Average', 'Minimum', 'Maximum', 'Sum']

# 查询输入字段，不属于输出
ECHO_FIELDS = ('statistics', 'dimensions')

TAG_PREFIX = 'tag:'

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')


class MalformedDatapointError(ValueError):
    """数据点缺少必要字段"""
    pass


def snake_case(key: str) -> str:
    """SampleCount -> sample_count"""
    return _CAMEL_BOUNDARY.sub('_', str(key)).lower()


def dimension_context(query: QueryDescriptor) -> Dict[str, Any]:
    """
    从查询维度得到 {维度名: 值}

    同名维度出现多次（组合模式下的多值 filter）时值为列表。
    """
    context: Dict[str, Any] = {}
    for dim in query.dimensions:
        name, value = dim['Name'], dim['Value']
        if name not in context:
            context[name] = value
        elif isinstance(context[name], list):
            context[name].append(value)
        else:
            context[name] = [context[name], value]
    return context


class EventNormalizer:
    """
    事件标准化器

    功能：
    - 校验数据点（必须有 Timestamp 和至少一个统计值）
    - 合并查询字段、数据点字段、维度、标签
    - 附加 type 和 add_field 装饰
    """

    def __init__(self, event_type: Optional[str] = None, add_fields: Optional[Dict[str, Any]] = None):
        """
        初始化标准化器

        Args:
            event_type: 事件 type 字段（可选）
            add_fields: 每个事件都附加的字段（可选，不覆盖已有字段）
        """
        self.event_type = event_type
        self.add_fields = dict(add_fields or {})

    def normalize(
        self,
        datapoint: Dict[str, Any],
        query: QueryDescriptor,
        dimensions: Optional[Dict[str, Any]] = None,
        tags: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        标准化单个数据点

        Args:
            datapoint: CloudWatch 返回的 Datapoint
            query: 产生该数据点的查询
            dimensions: 维度上下文（默认从 query 推导）
            tags: 资源标签（可选）

        Returns:
            输出事件（字符串键的字典）

        Raises:
            MalformedDatapointError: 数据点缺少 Timestamp 或统计值，或时间无法解析
        """
        if not isinstance(datapoint, dict):
            raise MalformedDatapointError(f"数据点不是字典: {datapoint!r}")
        if datapoint.get('Timestamp') is None:
            raise MalformedDatapointError("数据点缺少 Timestamp")
        if not any(datapoint.get(stat) is not None for stat in STATISTICS):
            raise MalformedDatapointError(f"数据点没有任何统计值: {sorted(datapoint)}")

        merged = dict(query.to_request())
        for key, value in datapoint.items():
            merged[snake_case(key)] = value

        for key in ECHO_FIELDS:
            merged.pop(key, None)

        try:
            merged['start_time'] = parse_timestamp(merged['start_time'])
            merged['end_time'] = parse_timestamp(merged['end_time'])
            merged['timestamp'] = parse_timestamp(merged['timestamp'])
        except (TypeError, ValueError) as e:
            raise MalformedDatapointError(f"时间字段无法解析: {e}")

        merged['metric'] = query.metric_name

        context = dimension_context(query) if dimensions is None else dimensions
        for name, value in context.items():
            # 重复维度是列表，每个事件持有自己的副本
            merged[name] = list(value) if isinstance(value, list) else value

        for key, value in (tags or {}).items():
            merged[f"{TAG_PREFIX}{key}"] = value

        if self.event_type:
            merged.setdefault('type', self.event_type)
        for key, value in self.add_fields.items():
            merged.setdefault(key, value)

        # 维度或装饰字段也可能带回回显键
        for key in ECHO_FIELDS:
            merged.pop(key, None)

        return {str(key): value for key, value in merged.items()}

