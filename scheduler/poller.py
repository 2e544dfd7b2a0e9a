# -*- coding: utf-8 -*-
"""
CloudWatch 轮询器模块

功能：
- 每 interval 秒执行一个轮询周期（按固定锚点调度，不随执行耗时漂移）
- 周期内：指标目录 -> 资源维度 -> 查询 -> 标准化 -> 输出
- 单个查询失败只跳过该查询，不中断周期，也不在周期内重试
- stop() 之后不再调度新周期，当前周期会执行完
"""

import math
import threading
import time
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Any, List, Optional, Tuple

from cache.metric_catalog import MetricCatalog
from collector.cycle_result import CycleResult, CycleError, ErrorKind
from collector.normalizer import EventNormalizer, MalformedDatapointError, dimension_context
from collector.stats import record_cycle
from config.validator import validate_poll_config
from provider.interfaces import MetricsSource
from provider.resolver import ResourceResolver
from query.builder import QueryDescriptor, build_query

logger = logging.getLogger(__name__)


def next_deadline(anchor: float, interval: int, now: float) -> float:
    """
    下一个调度时间点：anchor + k * interval 中第一个晚于 now 的

    执行超过 interval 时，错过的时间点直接跳过。
    """
    elapsed = max(now - anchor, 0.0)
    return anchor + (math.floor(elapsed / interval) + 1) * interval


class Poller:
    """
    CloudWatch 轮询器

    职责：
    1. 启动前校验配置（失败抛出 ConfigurationError）
    2. 按固定间隔执行轮询周期
    3. 每个数据点生成一个事件，按"指标 -> 资源 -> 数据点"的顺序交给 sink
    """

    def __init__(
        self,
        config,
        metrics_source: MetricsSource,
        resolver: ResourceResolver,
        sink: Callable[[Dict[str, Any]], None],
        catalog: Optional[MetricCatalog] = None,
        normalizer: Optional[EventNormalizer] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        初始化轮询器

        Args:
            config: PollConfiguration 对象
            metrics_source: 指标数据源（list_metrics / get_metric_statistics）
            resolver: 资源维度解析器
            sink: 输出函数，每个事件调用一次
            catalog: 指标目录（默认为该 input 单独创建一个）
            normalizer: 事件标准化器（默认按 config 的 type / add_field 创建）
            clock: 时间函数（测试时可替换）
        """
        validate_poll_config(config)

        self.config = config
        self.metrics_source = metrics_source
        self.resolver = resolver
        self.sink = sink
        self.catalog = catalog or MetricCatalog(metrics_source, refresh_interval=config.catalog_refresh, clock=clock)
        self.normalizer = normalizer or EventNormalizer(event_type=config.event_type, add_fields=config.add_fields)
        self._clock = clock

        # 控制标志
        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.cycle_count = 0
        self.last_result: Optional[CycleResult] = None

        logger.info(
            f"Poller 初始化完成: input={config.name}, namespace={config.namespace}, "
            f"interval={config.interval}s, period={config.period}s, combined={config.combined}"
        )

    def start(self):
        """
        启动轮询线程

        第一个周期立即执行，之后每 interval 秒执行一次。
        """
        if self._running or (self._thread and self._thread.is_alive()):
            logger.warning(f"[{self.config.name}] 轮询器已在运行（或上一个周期尚未结束）")
            return

        self._running = True
        # 每次启动使用新的停止标志，旧线程不会被重新唤醒
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run_loop,
            args=(self._stop_event,),
            name=f"Poller-{self.config.name}",
            daemon=True
        )
        self._thread.start()
        logger.info(f"[{self.config.name}] 轮询线程已启动")

    def stop(self, timeout: Optional[float] = 30):
        """
        停止轮询

        不再调度新的周期，正在执行的周期会执行完并输出已解析的事件。

        Args:
            timeout: 等待线程退出的最长时间（秒）
        """
        if not self._running and not (self._thread and self._thread.is_alive()):
            return

        logger.info(f"[{self.config.name}] 停止轮询器...")
        self._stop_event.set()

        if self._thread and self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

        if self._thread and self._thread.is_alive():
            logger.warning(f"[{self.config.name}] 当前周期仍在执行，完成后退出")
            return

        self._running = False
        logger.info(f"[{self.config.name}] 轮询器已停止")

    def is_running(self) -> bool:
        return self._running

    def _run_loop(self, stop_event: threading.Event):
        """
        轮询循环

        调度基于启动时的锚点，不受单个周期耗时影响。
        """
        interval = self.config.interval
        anchor = self._clock()
        scheduled = anchor
        logger.info(f"[{self.config.name}] 轮询循环启动，间隔: {interval} 秒")

        while not stop_event.is_set():
            try:
                self.run_cycle()
            except Exception as e:
                # 捕获异常，打印日志，不退出线程
                logger.error(f"[{self.config.name}] 轮询周期异常: {e}", exc_info=True)

            now = self._clock()
            deadline = next_deadline(anchor, interval, now)
            skipped = int(round((deadline - scheduled) / interval)) - 1
            if skipped > 0:
                logger.warning(f"[{self.config.name}] 周期执行超过 interval，跳过 {skipped} 个调度点")
            scheduled = deadline

            if stop_event.wait(max(deadline - now, 0.0)):
                break

        if self._thread is threading.current_thread():
            self._running = False
        logger.info(f"[{self.config.name}] 轮询循环已退出")

    def run_cycle(self, now: Optional[datetime] = None) -> CycleResult:
        """
        执行一个轮询周期

        Args:
            now: 周期时间（默认取当前时间），决定查询窗口 [now - interval, now]

        Returns:
            CycleResult 对象
        """
        config = self.config
        if now is None:
            now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)

        result = CycleResult(input_name=config.name, namespace=config.namespace, started_at=now)
        started = time.monotonic()

        try:
            self._poll(now, result)
        finally:
            result.duration = time.monotonic() - started
            self.cycle_count += 1
            self.last_result = result
            record_cycle(result)

        logger.info(
            f"[{config.name}] 周期完成: metrics={len(result.metrics)}, queries={result.queries}, "
            f"events={result.events}, errors={len(result.errors)}, 耗时={result.duration:.2f}s"
        )
        return result

    def _poll(self, now: datetime, result: CycleResult):
        config = self.config

        try:
            metrics = self.catalog.metrics_for(config.namespace, list(config.metric_names))
        except Exception as e:
            self._report(result, ErrorKind.DISCOVERY_FAILED, f"ListMetrics 失败: {e}")
            return

        if not metrics:
            self._report(
                result, ErrorKind.CATALOG_EMPTY,
                f"配置的指标 {list(config.metric_names)} 在 {config.namespace} 下都不可用"
            )
            return

        result.metrics = list(metrics)

        for metric in metrics:
            try:
                resources = self.resolver.resolve(config.namespace, config.filters, config.combined)
            except Exception as e:
                self._report(result, ErrorKind.DISCOVERY_FAILED, f"资源发现失败: {e}", metric=metric)
                continue

            for query, tags in self._queries_for(metric, resources, now):
                self._execute(query, tags, result)

    def _queries_for(self, metric: str, resources, now: datetime) -> List[Tuple[QueryDescriptor, Dict[str, str]]]:
        """
        组合模式：每个指标一个查询，携带全部维度
        普通模式：每个 (维度名, 资源 ID) 一个查询
        """
        config = self.config

        if config.combined:
            query = build_query(
                config.namespace, metric, resources.dimension_list(),
                config.period, config.interval, list(config.statistics), now
            )
            return [(query, {})]

        queries = []
        for name, resource_id in resources.pairs():
            query = build_query(
                config.namespace, metric, [{'Name': name, 'Value': resource_id}],
                config.period, config.interval, list(config.statistics), now
            )
            queries.append((query, resources.tags_for(resource_id)))
        return queries

    def _execute(self, query: QueryDescriptor, tags: Dict[str, str], result: CycleResult):
        """执行单个查询，把数据点标准化后交给 sink"""
        result.queries += 1
        dimensions = query.describe_dimensions()

        try:
            datapoints = self.metrics_source.get_metric_statistics(**query.to_request())
        except Exception as e:
            self._report(
                result, ErrorKind.QUERY_FAILED, f"GetMetricStatistics 失败: {e}",
                metric=query.metric_name, dimension=dimensions
            )
            return

        logger.debug(f"[{self.config.name}] {query.metric_name} ({dimensions}): {len(datapoints or [])} 个数据点")

        context = dimension_context(query)
        for datapoint in datapoints or []:
            try:
                event = self.normalizer.normalize(datapoint, query, context, tags)
            except MalformedDatapointError as e:
                self._report(
                    result, ErrorKind.MALFORMED_DATAPOINT, f"丢弃数据点: {e}",
                    metric=query.metric_name, dimension=dimensions
                )
                continue

            self.sink(event)
            result.events += 1

    def _report(self, result: CycleResult, kind: ErrorKind, message: str,
                metric: Optional[str] = None, dimension: Optional[str] = None):
        """记录周期错误（只记录，不中断周期）"""
        error = CycleError(
            kind=kind,
            namespace=self.config.namespace,
            message=message,
            metric=metric,
            dimension=dimension
        )
        result.add_error(error)

        context = f"namespace={error.namespace}, metric={metric or '-'}, dimension={dimension or '-'}"
        if kind == ErrorKind.MALFORMED_DATAPOINT:
            logger.warning(f"[{self.config.name}] {message} ({context})")
        else:
            logger.error(f"[{self.config.name}] [{kind.value}] {message} ({context})")

    def get_status(self) -> dict:
        """
        获取轮询器状态

        Returns:
            状态信息字典
        """
        return {
            'input': self.config.name,
            'namespace': self.config.namespace,
            'running': self._running,
            'interval': self.config.interval,
            'period': self.config.period,
            'cycles': self.cycle_count,
            'thread_alive': self._thread.is_alive() if self._thread else False,
            'last_cycle': self.last_result.summary() if self.last_result else None
        }
