"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出
所有模式都会经过 redact_sensitive，密码、令牌等字段不会落入日志。
"""

import logging
import os

import structlog

# 日志事件中一律脱敏的字段名（小写比较）
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "password_hash",
        "token",
        "authorization",
        "jwt_secret",
    }
)

REDACTED = "***"


def redact_sensitive(logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor：替换敏感字段的值"""
    for key in event_dict:
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "json"（生产环境）或 "dev"（默认），缺省读取 TESTFLOW_LOG_FORMAT
        log_level: 根 logger 级别，缺省读取 TESTFLOW_LOG_LEVEL（默认 INFO）
    """
    log_format = log_format or os.environ.get("TESTFLOW_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("TESTFLOW_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        redact_sensitive,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
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

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # 请求日志由 LoggingMiddleware 输出，关闭 uvicorn 的重复 access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
