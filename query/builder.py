# -*- coding: utf-8 -*-
"""
统计查询构建模块

功能：
- 构建单次 GetMetricStatistics 查询描述（纯函数，无 I/O）
- 时间窗口：[now - interval, now]
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Any, Tuple, Union


@dataclass(frozen=True)
class QueryDescriptor:
    """单次统计查询"""
    namespace: str
    metric_name: str
    dimensions: Tuple[Dict[str, str], ...]   # ({'Name': 'InstanceId', 'Value': 'i-1'},)
    start_time: str                          # ISO-8601（UTC）
    end_time: str                            # ISO-8601（UTC）
    period: int
    statistics: Tuple[str, ...]

    def to_request(self) -> Dict[str, Any]:
        """转换为 MetricsSource.get_metric_statistics 的参数"""
        return {
            'namespace': self.namespace,
            'metric_name': self.metric_name,
            'dimensions': [dict(d) for d in self.dimensions],
            'start_time': self.start_time,
            'end_time': self.end_time,
            'period': self.period,
            'statistics': list(self.statistics),
        }

    def describe_dimensions(self) -> str:
        """日志用的维度描述，如 InstanceId=i-1"""
        return ','.join(f"{d['Name']}={d['Value']}" for d in self.dimensions) or '-'


def format_timestamp(value: datetime) -> str:
    """datetime -> UTC ISO-8601 字符串（无时区的 datetime 视为 UTC）"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    ISO-8601 字符串或 datetime -> 带时区的 UTC datetime

    Raises:
        ValueError: 无法解析
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"无法解析时间: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def build_query(
    namespace: str,
    metric: str,
    dims: List[Dict[str, str]],
    period: int,
    interval: int,
    statistics: List[str],
    now: datetime
) -> QueryDescriptor:
    """
    构建查询描述

    Args:
        namespace: CloudWatch namespace
        metric: 指标名称
        dims: 维度列表
        period: 数据点粒度（秒）
        interval: 轮询间隔（秒），决定时间窗口长度
        statistics: 统计方法列表
        now: 当前时间

    Returns:
        QueryDescriptor 对象
    """
    return QueryDescriptor(
        namespace=namespace,
        metric_name=metric,
        dimensions=tuple(dict(d) for d in dims),
        start_time=format_timestamp(now - timedelta(seconds=interval)),
        end_time=format_timestamp(now),
        period=period,
        statistics=tuple(statistics),
    )
