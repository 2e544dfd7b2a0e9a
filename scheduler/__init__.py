# -*- coding: utf-8 -*-
"""
轮询调度模块

功能：
- 按固定间隔轮询 CloudWatch 指标
- 在后台线程中运行，不阻塞主程序
"""

from scheduler.poller import Poller, next_deadline

__all__ = ['Poller', 'next_deadline']
