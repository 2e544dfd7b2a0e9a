# -*- coding: utf-8 -*-
"""
轮询周期结果数据结构

功能：
- 定义周期内错误的类型和上下文
- 统计一个周期的查询数、事件数、丢弃数
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
from enum import Enum


class ErrorKind(Enum):
    """周期内错误类型（都可恢复，不中断轮询）"""
    CATALOG_EMPTY = "catalog_empty"              # 配置的指标与可用指标无交集
    DISCOVERY_FAILED = "discovery_failed"        # 资源发现调用失败
    QUERY_FAILED = "query_failed"                # 统计查询失败（超时、限流等）
    MALFORMED_DATAPOINT = "malformed_datapoint"  # 数据点缺少必要字段


@dataclass
class CycleError:
    """单个周期错误"""
    kind: ErrorKind
    namespace: str
    message: str
    metric: Optional[str] = None
    dimension: Optional[str] = None   # 如 InstanceId=i-1


@dataclass
class CycleResult:
    """单个轮询周期的结果"""
    input_name: str
    namespace: str
    started_at: datetime
    metrics: List[str] = field(default_factory=list)
    queries: int = 0
    events: int = 0
    errors: List[CycleError] = field(default_factory=list)
    duration: float = 0.0

    def add_error(self, error: CycleError):
        self.errors.append(error)

    def errors_of(self, kind: ErrorKind) -> List[CycleError]:
        """按类型筛选错误"""
        return [e for e in self.errors if e.kind == kind]

    def is_clean(self) -> bool:
        """判断周期是否无错误"""
        return not self.errors

    def summary(self) -> dict:
        """汇总信息（用于日志和 /health）"""
        return {
            'started_at': self.started_at.isoformat(),
            'metrics': len(self.metrics),
            'queries': self.queries,
            'events': self.events,
            'errors': len(self.errors),
            'duration_seconds': round(self.duration, 3)
        }
