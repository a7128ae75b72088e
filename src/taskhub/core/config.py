"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径等存储相关配置。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKHUB_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKHUB_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskhub.db"),
    )


# SQLite 写锁等待时间（毫秒）
SQLITE_BUSY_TIMEOUT_MS: int = int(
    os.environ.get("TASKHUB_SQLITE_BUSY_TIMEOUT_MS", "5000")
)

# Task 名称最大长度
TASK_NAME_MAX_LENGTH: int = 255

# Task 优先级约定范围
PRIORITY_MIN: int = 1
PRIORITY_MAX: int = 5

# Project 名称最大长度
PROJECT_NAME_MAX_LENGTH: int = 255

# Project 描述最大长度
PROJECT_DESCRIPTION_MAX_LENGTH: int = 1000
