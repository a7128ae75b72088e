"""structlog 配置

dev 模式：控制台彩色输出；json 模式：每行一个 JSON 对象，异常栈结构化输出。
参数优先于 TASKHUB_LOG_FORMAT / TASKHUB_LOG_LEVEL 环境变量。
"""

import logging
import os

import structlog

SERVICE_NAME = "taskhub"

# 这些库的 INFO 日志与请求日志重复或过于琐碎
_NOISY_LOGGERS = ("aiosqlite", "uvicorn.access")


def add_service_name(
    logger: structlog.types.WrappedLogger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(log_format: str) -> list[structlog.types.Processor]:
    """structlog 与标准库 logging 共用的处理器链"""
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_name,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
    return processors


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 与标准库 logging

    Args:
        log_format: "json" 或 "dev"，缺省读取 TASKHUB_LOG_FORMAT（默认 dev）
        log_level: 日志级别名，缺省读取 TASKHUB_LOG_LEVEL（默认 INFO）
    """
    log_format = (log_format or os.environ.get("TASKHUB_LOG_FORMAT", "dev")).lower()
    log_level = (log_level or os.environ.get("TASKHUB_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, log_level, logging.INFO)

    shared_processors = build_processors(log_format)
    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
