# -*- coding: utf-8 -*-
"""
轮询配置加载模块

功能：
- 从 YAML 文件加载轮询配置
- 定义清晰的数据结构（AppConfig / PollConfiguration）
- 读取失败时给出明确错误
"""

import yaml
import os
from typing import Dict, List, Optional, Any, Tuple
from dataclasses import dataclass, field

from config.validator import ConfigurationError, validate_poll_config, VALID_STATISTICS
from provider.namespaces import EC2_NAMESPACE


DEFAULT_METRICS = ('CPUUtilization', 'DiskReadOps', 'DiskWriteOps', 'NetworkIn', 'NetworkOut')
DEFAULT_INTERVAL = 900    # 15 分钟
DEFAULT_PERIOD = 300      # 5 分钟
DEFAULT_REGION = 'us-east-1'
DEFAULT_HTTP_PORT = 8000


@dataclass(frozen=True)
class PollConfiguration:
    """单个 input 的轮询配置（启动后不可变）"""
    name: str
    namespace: str = EC2_NAMESPACE
    metric_names: Tuple[str, ...] = DEFAULT_METRICS     # 为空表示 namespace 下全部指标
    statistics: Tuple[str, ...] = VALID_STATISTICS
    interval: int = DEFAULT_INTERVAL                     # 轮询间隔（秒）
    period: int = DEFAULT_PERIOD                         # 数据点粒度（秒）
    filters: Dict[str, List[str]] = field(default_factory=dict)
    combined: bool = False
    region: str = DEFAULT_REGION
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    event_type: Optional[str] = None                     # 事件 type 字段
    add_fields: Dict[str, Any] = field(default_factory=dict)
    catalog_refresh: Optional[int] = None                # 指标目录刷新间隔（秒），None 表示不刷新


@dataclass
class AppConfig:
    """配置的根数据结构"""
    inputs: List[PollConfiguration]
    log_level: str = 'INFO'
    http_port: int = DEFAULT_HTTP_PORT


def load_config(config_path: str) -> AppConfig:
    """
    从 YAML 文件加载配置

    Args:
        config_path: 配置文件路径（如 'config/inputs.yaml'）

    Returns:
        AppConfig 对象

    Raises:
        FileNotFoundError: 文件不存在
        yaml.YAMLError: YAML 解析错误
        ConfigurationError: 配置格式错误或校验失败
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"配置文件不存在: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except IOError as e:
        raise IOError(f"无法读取配置文件 {config_path}: {e}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"YAML 解析失败: {e}")

    if data is None:
        raise ConfigurationError("配置文件为空")

    return parse_config(data)


def parse_config(data: Dict[str, Any]) -> AppConfig:
    """
    解析配置字典

    Args:
        data: yaml.safe_load 的结果

    Returns:
        AppConfig 对象
    """
    if not isinstance(data, dict):
        raise ConfigurationError("配置格式错误: 根节点必须是字典类型")

    inputs_data = data.get('inputs')
    if not isinstance(inputs_data, list) or not inputs_data:
        raise ConfigurationError("配置格式错误: 'inputs' 必须是非空列表")

    inputs = []
    names = set()
    for idx, input_dict in enumerate(inputs_data):
        if not isinstance(input_dict, dict):
            raise ConfigurationError(f"配置格式错误: 'inputs[{idx}]' 必须是字典类型")
        try:
            poll_config = parse_poll_config(input_dict, idx)
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"配置格式错误: 'inputs[{idx}]': {e}")

        if poll_config.name in names:
            raise ConfigurationError(f"配置格式错误: input 名称重复: {poll_config.name}")
        names.add(poll_config.name)
        inputs.append(poll_config)

    log_level = str(data.get('log_level', 'INFO')).upper()
    if log_level not in ('DEBUG', 'INFO', 'WARNING', 'WARN', 'ERROR'):
        raise ConfigurationError(f"log_level 无效: {log_level}")

    http_port = data.get('http_port', DEFAULT_HTTP_PORT)
    if not isinstance(http_port, int) or not (0 <= http_port <= 65535):
        raise ConfigurationError("http_port 必须是 0-65535 的整数（0 表示不启动 HTTP 服务）")

    return AppConfig(inputs=inputs, log_level=log_level, http_port=http_port)


def parse_poll_config(input_dict: Dict[str, Any], index: int = 0) -> PollConfiguration:
    """
    解析单个 input 配置并校验

    Args:
        input_dict: input 配置字典
        index: 索引（用于默认名称和错误提示）

    Returns:
        PollConfiguration 对象

    Raises:
        ConfigurationError: 字段类型错误或校验失败
    """
    namespace = input_dict.get('namespace', EC2_NAMESPACE)
    if not isinstance(namespace, str) or not namespace.strip():
        raise ConfigurationError(f"inputs[{index}].namespace 必须是非空字符串")
    namespace = namespace.strip()

    name = input_dict.get('name') or f"{namespace}-{index}"

    metrics = input_dict.get('metrics', list(DEFAULT_METRICS))
    if metrics is None:
        metrics = []
    if not isinstance(metrics, list) or not all(isinstance(m, str) for m in metrics):
        raise ConfigurationError(f"[{name}] metrics 必须是字符串列表")

    statistics = input_dict.get('statistics', list(VALID_STATISTICS))
    if not isinstance(statistics, list) or not all(isinstance(s, str) for s in statistics):
        raise ConfigurationError(f"[{name}] statistics 必须是字符串列表")

    interval = input_dict.get('interval', DEFAULT_INTERVAL)
    period = input_dict.get('period', DEFAULT_PERIOD)
    for key, value in (('interval', interval), ('period', period)):
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigurationError(f"[{name}] {key} 必须是正整数")

    combined = input_dict.get('combined', False)
    if not isinstance(combined, bool):
        raise ConfigurationError(f"[{name}] combined 必须是布尔值")

    add_fields = input_dict.get('add_field') or {}
    if not isinstance(add_fields, dict):
        raise ConfigurationError(f"[{name}] add_field 必须是字典类型")

    catalog_refresh = input_dict.get('catalog_refresh')
    if catalog_refresh is not None and (isinstance(catalog_refresh, bool) or not isinstance(catalog_refresh, int)):
        raise ConfigurationError(f"[{name}] catalog_refresh 必须是整数（秒）")

    poll_config = PollConfiguration(
        name=str(name),
        namespace=namespace,
        metric_names=tuple(dict.fromkeys(metrics)),
        statistics=tuple(dict.fromkeys(statistics)),
        interval=interval,
        period=period,
        filters=_parse_filters(input_dict.get('filters'), name),
        combined=combined,
        region=str(input_dict.get('region', DEFAULT_REGION)),
        access_key=input_dict.get('access_key'),
        secret_key=input_dict.get('secret_key'),
        event_type=input_dict.get('type'),
        add_fields=add_fields,
        catalog_refresh=catalog_refresh or None
    )

    validate_poll_config(poll_config)
    return poll_config


def _parse_filters(filters: Any, name: str) -> Dict[str, List[str]]:
    """
    解析 filters：标量值转成单元素列表，保持键顺序

    注意：YAML 中未加引号的 yes/no 会被解析为布尔值，这里统一转成字符串。
    """
    if filters is None:
        return {}
    if not isinstance(filters, dict):
        raise ConfigurationError(f"[{name}] filters 必须是字典类型")

    parsed = {}
    for key, value in filters.items():
        values = value if isinstance(value, list) else [value]
        if not values:
            raise ConfigurationError(f"[{name}] filters.{key} 不能为空")
        parsed[str(key)] = [_filter_value(v) for v in values]
    return parsed


def _filter_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)
