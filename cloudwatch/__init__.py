# -*- coding: utf-8 -*-
"""
CloudWatch 客户端模块

功能：
- 封装 CloudWatch ListMetrics / GetMetricStatistics 调用
"""

from cloudwatch.client import CloudWatchClient

__all__ = ['CloudWatchClient']
