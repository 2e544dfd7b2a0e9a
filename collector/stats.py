# -*- coding: utf-8 -*-
"""
Poller 自身指标模块

功能：
- 统计事件数、查询数、周期错误数
- 记录周期耗时
- 通过 /metrics 端点供 Prometheus 抓取
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from collector.cycle_result import CycleResult


EVENTS_TOTAL = Counter(
    'cloudwatch_poller_events_total',
    'Total number of events handed to the output sink',
    ['input']
)

QUERIES_TOTAL = Counter(
    'cloudwatch_poller_queries_total',
    'Total number of GetMetricStatistics queries issued',
    ['input']
)

CYCLE_ERRORS_TOTAL = Counter(
    'cloudwatch_poller_cycle_errors_total',
    'Total number of recoverable cycle errors',
    ['input', 'error_type']
)

CYCLE_DURATION_SECONDS = Histogram(
    'cloudwatch_poller_cycle_duration_seconds',
    'Duration of one polling cycle in seconds',
    ['input'],
    buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0]
)


def record_cycle(result: CycleResult):
    """
    把周期结果记录到 Prometheus 指标

    Args:
        result: 周期结果
    """
    EVENTS_TOTAL.labels(input=result.input_name).inc(result.events)
    QUERIES_TOTAL.labels(input=result.input_name).inc(result.queries)
    for error in result.errors:
        CYCLE_ERRORS_TOTAL.labels(input=result.input_name, error_type=error.kind.value).inc()
    CYCLE_DURATION_SECONDS.labels(input=result.input_name).observe(result.duration)


def get_metrics() -> bytes:
    """Prometheus 文本格式的指标"""
    return generate_latest()


__all__ = ['record_cycle', 'get_metrics', 'CONTENT_TYPE_LATEST']
