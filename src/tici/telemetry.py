"""Telemetry - 统一日志和指标入口

提供统一的日志工厂和指标 facade。

日志格式: [module] msg
指标示例: gateway.call, gateway.error, persist.error, restore.window
"""

import logging

from .config import LOG_LEVEL, LOG_MAX_CMD_LEN

_LOG_FORMAT = "[%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """获取带模块前缀的 logger

    Args:
        name: 模块名（通常使用 __name__）
    """
    return logging.getLogger(name)


def setup_logging(level: str | int | None = None) -> None:
    """配置根 logger

    Args:
        level: 日志级别，默认使用 TICI_LOG_LEVEL
    """
    level = level if level is not None else LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=_LOG_FORMAT, force=True)


def truncate_cmd(text: str, limit: int = LOG_MAX_CMD_LEN) -> str:
    """截断过长的命令，用于日志输出"""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


class Metrics:
    """指标收集 facade

    提供简单的计数器接口，内存存储。
    """

    def __init__(self):
        self._counters: dict[str, int] = {}

    def inc(self, name: str, labels: dict[str, str] | None = None, value: int = 1) -> None:
        """递增计数器

        Args:
            name: 指标名（如 "gateway.error"）
            labels: 可选标签（如 {"op": "split-window"}）
            value: 递增值，默认 1
        """
        key = self._make_key(name, labels)
        self._counters[key] = self._counters.get(key, 0) + value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """获取计数器值（用于测试）"""
        return self._counters.get(self._make_key(name, labels), 0)

    def reset(self) -> None:
        """重置所有指标（用于测试）"""
        self._counters.clear()

    def _make_key(self, name: str, labels: dict[str, str] | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"


# 全局指标实例
metrics = Metrics()
