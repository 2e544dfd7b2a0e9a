# -*- coding: utf-8 -*-
"""
查询构建模块
"""

from query.builder import QueryDescriptor, build_query, format_timestamp, parse_timestamp

__all__ = ['QueryDescriptor', 'build_query', 'format_timestamp', 'parse_timestamp']
