# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 启动时验证轮询配置（只执行一次）
- interval / period 关系、统计方法、必填 filters
- 验证失败抛出 ConfigurationError，轮询器不会启动
"""

from provider.namespaces import namespace_spec

VALID_STATISTICS = ('SampleCount', 'Average', 'Minimum', 'Maximum', 'Sum')


class ConfigurationError(ValueError):
    """配置错误（启动阶段致命）"""
    pass


def validate_poll_config(config):
    """
    验证轮询配置

    Args:
        config: PollConfiguration 对象

    Raises:
        ConfigurationError: 配置无效
    """
    prefix = f"[{config.name}] " if getattr(config, 'name', None) else ""

    if not isinstance(config.namespace, str) or not config.namespace.strip():
        raise ConfigurationError(f"{prefix}namespace 必须是非空字符串")

    if config.period < 60 or config.period % 60 != 0:
        raise ConfigurationError(f"{prefix}period 必须 >= 60 且是 60 的整数倍，当前: {config.period}")

    if config.interval < config.period:
        raise ConfigurationError(
            f"{prefix}interval ({config.interval}) 不能小于 period ({config.period})"
        )

    if config.interval % config.period != 0:
        raise ConfigurationError(
            f"{prefix}interval ({config.interval}) 必须是 period ({config.period}) 的整数倍"
        )

    if not config.statistics:
        raise ConfigurationError(f"{prefix}statistics 不能为空")

    invalid = [s for s in config.statistics if s not in VALID_STATISTICS]
    if invalid:
        raise ConfigurationError(
            f"{prefix}不支持的 statistics: {invalid}，必须是以下值之一: {', '.join(VALID_STATISTICS)}"
        )

    if namespace_spec(config.namespace).requires_filters and not config.filters:
        raise ConfigurationError(f"{prefix}namespace {config.namespace} 必须配置 filters")

    if config.catalog_refresh is not None and config.catalog_refresh < 0:
        raise ConfigurationError(f"{prefix}catalog_refresh 不能为负数")
