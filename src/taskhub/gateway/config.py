"""DispatcherConfig -- 通知调度器配置加载

从环境变量加载配置；非法值记录告警并回退默认值，不阻塞启动。
"""

import os

import structlog
from pydantic import BaseModel, Field, ValidationError, model_validator

log = structlog.get_logger()


class DispatcherConfig(BaseModel):
    """通知调度器配置 -- 从环境变量加载

    环境变量:
        TASKHUB_NOTIFY_MIN_WORKERS: 常驻 worker 数（默认 5）
        TASKHUB_NOTIFY_MAX_WORKERS: worker 上限（默认 10）
        TASKHUB_NOTIFY_QUEUE_CAPACITY: 有界队列容量（默认 100）
        TASKHUB_NOTIFY_KEEP_ALIVE_S: 超出常驻数的 worker 空闲回收时间（秒，默认 60）
        TASKHUB_NOTIFY_SHUTDOWN_TIMEOUT_S: 关闭时等待排空的时间（秒，默认 60）
        TASKHUB_NOTIFY_SEND_DELAY_MS: 模拟投递延迟（毫秒，默认 0）
    """

    min_workers: int = Field(default=5, ge=1, description="常驻 worker 数")
    max_workers: int = Field(default=10, ge=1, description="worker 上限")
    queue_capacity: int = Field(default=100, ge=1, description="有界队列容量")
    keep_alive_s: float = Field(default=60.0, gt=0, description="额外 worker 空闲回收时间")
    shutdown_timeout_s: float = Field(default=60.0, ge=0, description="关闭排空等待时间")
    send_delay_ms: int = Field(default=0, ge=0, description="模拟投递延迟")

    @model_validator(mode="after")
    def _check_pool_bounds(self) -> "DispatcherConfig":
        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")
        return self


_ENV_FIELDS: dict[str, tuple[str, type]] = {
    "TASKHUB_NOTIFY_MIN_WORKERS": ("min_workers", int),
    "TASKHUB_NOTIFY_MAX_WORKERS": ("max_workers", int),
    "TASKHUB_NOTIFY_QUEUE_CAPACITY": ("queue_capacity", int),
    "TASKHUB_NOTIFY_KEEP_ALIVE_S": ("keep_alive_s", float),
    "TASKHUB_NOTIFY_SHUTDOWN_TIMEOUT_S": ("shutdown_timeout_s", float),
    "TASKHUB_NOTIFY_SEND_DELAY_MS": ("send_delay_ms", int),
}


def load_dispatcher_config() -> DispatcherConfig:
    """从环境变量加载调度器配置

    Returns:
        DispatcherConfig 实例
    """
    kwargs: dict = {}

    for env_var, (field_name, cast) in _ENV_FIELDS.items():
        val = os.environ.get(env_var)
        if not val:
            continue
        try:
            kwargs[field_name] = cast(val)
        except ValueError:
            log.warning(
                "invalid_dispatcher_config",
                env_var=env_var,
                value=val,
                fallback=DispatcherConfig.model_fields[field_name].default,
            )
            # 使用默认值，不阻塞启动

    try:
        return DispatcherConfig(**kwargs)
    except ValidationError as e:
        log.warning(
            "invalid_dispatcher_config",
            error=str(e),
            fallback="defaults",
        )
        return DispatcherConfig()
