# -*- coding: utf-8 -*-
"""
缓存模块

功能：
- namespace 指标目录缓存
"""

from cache.metric_catalog import MetricCatalog

__all__ = ['MetricCatalog']
