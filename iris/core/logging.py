"""
日志配置模块

提供结构化 JSON 格式日志和标准格式日志。

每个进入网关的请求都会绑定一份转发上下文（请求 ID、转发深度），
同一请求链路上的日志（包括嵌套的内部转发）会自动带上这些字段。
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# 当前请求的转发上下文
_forward_context: ContextVar[Dict[str, Any]] = ContextVar("iris_forward_context", default={})

# 转发上下文字段，由中间件绑定
FORWARD_CONTEXT_FIELDS = ("request_id", "forward_depth")

# 转发日志通过 extra 参数传入的字段
FORWARD_RECORD_FIELDS = (
    "method",
    "path",
    "rule_id",
    "forward_method",
    "forward_target",
    "status_code",
    "latency_ms",
)


def bind_forward_context(request_id: str, forward_depth: int) -> Token:
    """
    绑定当前请求的转发上下文

    Returns:
        用于 reset_forward_context 的令牌
    """
    return _forward_context.set(
        {"request_id": request_id, "forward_depth": forward_depth}
    )


def reset_forward_context(token: Token) -> None:
    """恢复绑定前的转发上下文（嵌套转发返回时回到外层请求）"""
    _forward_context.reset(token)


def get_forward_context() -> Dict[str, Any]:
    """获取当前请求的转发上下文"""
    return dict(_forward_context.get())


class ForwardContextFilter(logging.Filter):
    """把转发上下文写入日志记录，已通过 extra 显式传入的字段不覆盖"""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, value in _forward_context.get().items():
            if not hasattr(record, name):
                setattr(record, name, value)
        return True


class JSONFormatter(logging.Formatter):
    """
    JSON 格式日志格式器

    输出格式:
    {
        "timestamp": "2024-01-01T12:00:00.000Z",
        "level": "INFO",
        "logger": "iris.gateway.router",
        "message": "内部转发: GET /old/a -> GET /new/a",
        "request_id": "abc-123",
        "forward_depth": 0,
        "rule_id": 1,
        "forward_target": "/new/a",
        ...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).replace(tzinfo=None)
        log_data: Dict[str, Any] = {
            "timestamp": timestamp.isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in FORWARD_CONTEXT_FIELDS + FORWARD_RECORD_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_data.update(extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ForwardTextFormatter(logging.Formatter):
    """文本格式，在消息前标注请求 ID 和转发深度"""

    def __init__(self):
        super().__init__(
            "%(asctime)s - %(name)s - %(levelname)s - %(forward_tag)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None)
        if request_id:
            record.forward_tag = f"[{request_id} #{getattr(record, 'forward_depth', 0)}] "
        else:
            record.forward_tag = ""
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """
    配置日志系统

    Args:
        level: 日志级别（DEBUG, INFO, WARNING, ERROR, CRITICAL）
        json_format: 是否使用 JSON 格式
        logger_name: 日志器名称，None 表示配置根日志器

    Returns:
        配置好的日志器
    """
    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()

    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(ForwardContextFilter())
    handler.setFormatter(JSONFormatter() if json_format else ForwardTextFormatter())

    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """获取指定名称的日志器（建议使用模块名，如 iris.forward）"""
    return logging.getLogger(name)
