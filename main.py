#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
CloudWatch Metrics Poller 主程序入口

功能：
- 加载 YAML 轮询配置（启动时校验，失败直接退出）
- 为每个 input 启动一个轮询线程
- 事件以 JSON 行的形式写到 stdout
- 暴露 /metrics（Prometheus）和 /health 端点
"""

from flask import Flask, jsonify
import json
import logging
import os
import queue
import signal
import sys
import threading
from datetime import datetime
from typing import Dict, Any, List

from api.aws.ec2 import EC2Client
from api.aws.elb import ELBClient
from cloudwatch.client import CloudWatchClient
from collector.stats import get_metrics, CONTENT_TYPE_LATEST
from config.loader import load_config, AppConfig, PollConfiguration
from config.validator import ConfigurationError
from provider.namespaces import NamespaceKind, namespace_spec
from provider.resolver import ResourceResolver
from scheduler.poller import Poller

logger = logging.getLogger(__name__)


def create_app(pollers: List[Poller]) -> Flask:
    """
    创建 Flask 应用

    Args:
        pollers: 正在运行的轮询器列表

    Returns:
        Flask 应用
    """
    app = Flask(__name__)

    @app.route('/metrics')
    def metrics():
        """Prometheus metrics 端点"""
        return get_metrics(), 200, {'Content-Type': CONTENT_TYPE_LATEST}

    @app.route('/health')
    def health():
        """健康检查端点，返回每个轮询器的状态"""
        statuses = [poller.get_status() for poller in pollers]
        healthy = all(status['running'] for status in statuses)
        return jsonify({
            'status': 'healthy' if healthy else 'degraded',
            'pollers': statuses
        }), 200 if healthy else 503

    return app


def _json_default(value: Any):
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class StdoutSink:
    """
    输出 sink：事件先进入队列，由后台线程逐行写 JSON 到 stdout

    put() 不阻塞轮询线程，背压由队列承担。
    """

    def __init__(self, stream=None):
        self.queue: "queue.Queue[Dict[str, Any]]" = queue.Queue()
        self.stream = stream or sys.stdout
        self._thread = threading.Thread(target=self._drain, name="StdoutSink", daemon=True)
        self._thread.start()

    def __call__(self, event: Dict[str, Any]):
        self.queue.put(event)

    def _drain(self):
        while True:
            event = self.queue.get()
            try:
                self.stream.write(json.dumps(event, default=_json_default, ensure_ascii=False) + '\n')
                self.stream.flush()
            except Exception as e:
                logger.error(f"写出事件失败: {e}")
            finally:
                self.queue.task_done()

    def flush(self):
        """等待队列中的事件全部写出"""
        self.queue.join()


def build_poller(config: PollConfiguration, sink) -> Poller:
    """
    为单个 input 创建轮询器及其客户端

    AWS/EBS 的卷发现走 EC2 客户端，所以 EC2 和 EBS 都创建 EC2Client。
    """
    credentials = {
        'region': config.region,
        'access_key': config.access_key,
        'secret_key': config.secret_key
    }

    cloudwatch_client = CloudWatchClient(**credentials)

    kind = namespace_spec(config.namespace).kind
    ec2_client = None
    elb_client = None
    if not config.combined:
        if kind in (NamespaceKind.COMPUTE, NamespaceKind.BLOCK_STORAGE):
            ec2_client = EC2Client(**credentials)
        elif kind == NamespaceKind.LOAD_BALANCER:
            elb_client = ELBClient(**credentials)

    resolver = ResourceResolver(ec2_client=ec2_client, elb_client=elb_client)
    return Poller(config, cloudwatch_client, resolver, sink)


def configure_logging(level: str):
    """配置日志"""
    logging.basicConfig(
        level=getattr(logging, 'WARNING' if level == 'WARN' else level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )

    # 减少第三方库日志
    for name in ('botocore', 'boto3', 'urllib3', 'werkzeug'):
        logging.getLogger(name).setLevel(logging.WARNING)


def main():
    """
    主函数

    功能：
    1. 加载并校验配置
    2. 启动每个 input 的轮询线程
    3. 启动 HTTP 服务器（http_port 为 0 时只运行轮询）
    """
    config_path = os.getenv('CONFIG_PATH', 'config/inputs.yaml')

    try:
        app_config: AppConfig = load_config(config_path)
    except FileNotFoundError as e:
        configure_logging('INFO')
        logger.error(f"配置文件不存在: {e}")
        sys.exit(1)
    except ConfigurationError as e:
        configure_logging('INFO')
        logger.error(f"配置无效: {e}")
        sys.exit(1)
    except Exception as e:
        configure_logging('INFO')
        logger.error(f"加载配置失败: {e}")
        sys.exit(1)

    configure_logging(os.getenv('LOG_LEVEL', app_config.log_level).upper())
    logger.info("Starting CloudWatch Metrics Poller...")
    logger.info(f"配置文件: {config_path}, input 数量: {len(app_config.inputs)}")

    sink = StdoutSink()

    pollers = []
    try:
        for poll_config in app_config.inputs:
            pollers.append(build_poller(poll_config, sink))
    except ConfigurationError as e:
        logger.error(f"配置无效: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"初始化轮询器失败: {e}", exc_info=True)
        sys.exit(1)

    for poller in pollers:
        poller.start()

    stop_event = threading.Event()

    def shutdown(signum, frame):
        logger.info(f"收到信号 {signum}，正在停止...")
        stop_event.set()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    port = int(os.getenv('HTTP_PORT', app_config.http_port))
    if port:
        app = create_app(pollers)
        server_thread = threading.Thread(
            target=app.run,
            kwargs={'host': '0.0.0.0', 'port': port, 'debug': False, 'use_reloader': False},
            name="HTTPServer",
            daemon=True
        )
        server_thread.start()
        logger.info(f"HTTP 服务已启动: http://localhost:{port}/metrics, http://localhost:{port}/health")

    stop_event.wait()

    for poller in pollers:
        poller.stop()
    sink.flush()
    logger.info("已退出")


if __name__ == '__main__':
    main()
