# -*- coding: utf-8 -*-
"""
AWS API 客户端模块

功能：
- 封装资源发现用的 Describe API（EC2 / EBS / ELB）
"""
