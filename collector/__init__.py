# -*- coding: utf-8 -*-
"""
事件收集模块

功能：
- 把数据点标准化为输出事件
- 记录周期结果和自身指标
"""

from .cycle_result import CycleResult, CycleError, ErrorKind
from .normalizer import EventNormalizer, MalformedDatapointError, STATISTICS
