# -*- coding: utf-8 -*-
"""
配置模块

功能：
- 加载 YAML 轮询配置
- 启动时验证配置
"""
