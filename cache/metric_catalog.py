# -*- coding: utf-8 -*-
"""
指标目录缓存模块

功能：
- 按 namespace 缓存可用指标名称（首次访问时调用 ListMetrics）
- 计算"配置的指标 ∩ 可用指标"，保持配置顺序
- 默认整个进程生命周期内不刷新，可选按 refresh_interval 过期重新拉取
"""

import time
import threading
import logging
from typing import Dict, List, Optional, Tuple, Callable

from provider.interfaces import MetricsSource

logger = logging.getLogger(__name__)


class MetricCatalog:
    """
    指标目录缓存

    功能：
    - namespace -> 可用指标列表（cache-aside）
    - 线程安全，多个 input 共享时同一 namespace 只拉取一次
    """

    def __init__(self, source: MetricsSource, refresh_interval: Optional[int] = None,
                 clock: Callable[[], float] = time.time):
        """
        初始化指标目录

        Args:
            source: 指标数据源（提供 list_metrics）
            refresh_interval: 缓存刷新间隔（秒），None 或 0 表示永不刷新
            clock: 时间函数（测试时可替换）
        """
        self.source = source
        self.refresh_interval = refresh_interval or None
        self._clock = clock
        self._cache: Dict[str, Tuple[List[str], float]] = {}  # namespace -> (metric_names, loaded_at)
        self._lock = threading.RLock()

    def available(self, namespace: str) -> List[str]:
        """
        获取 namespace 下的可用指标（不存在则拉取并缓存）

        Args:
            namespace: CloudWatch namespace

        Returns:
            可用指标名称列表
        """
        with self._lock:
            entry = self._cache.get(namespace)
            if entry is not None and not self._expired(entry[1]):
                return list(entry[0])

            names = list(self.source.list_metrics(namespace))
            self._cache[namespace] = (names, self._clock())
            logger.info(f"指标目录已加载: {namespace}, 共 {len(names)} 个指标")
            return list(names)

    def metrics_for(self, namespace: str, requested: List[str]) -> List[str]:
        """
        计算本周期要查询的指标

        Args:
            namespace: CloudWatch namespace
            requested: 配置的指标列表，为空表示 namespace 下全部指标

        Returns:
            requested ∩ available，按 requested 的顺序；无交集时返回空列表
        """
        available = self.available(namespace)
        if not requested:
            return available

        available_set = set(available)
        result = []
        for name in requested:
            if name in available_set and name not in result:
                result.append(name)

        missing = [name for name in requested if name not in available_set]
        if missing:
            logger.debug(f"{namespace} 下不可用的指标: {missing}")

        return result

    def invalidate(self, namespace: Optional[str] = None):
        """清除缓存（namespace 为 None 时清空全部）"""
        with self._lock:
            if namespace is None:
                self._cache.clear()
            else:
                self._cache.pop(namespace, None)

    def _expired(self, loaded_at: float) -> bool:
        if self.refresh_interval is None:
            return False
        return self._clock() - loaded_at >= self.refresh_interval
