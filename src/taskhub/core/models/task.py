"""Task Domain Model

version 是唯一的并发控制令牌：创建时为 0，每次成功提交严格 +1。
created_at / updated_at 由存储层在提交路径中显式赋值。
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from .enums import TaskStatus

# 变更描述与部分更新共用的字段顺序（固定、稳定）
MUTABLE_FIELDS: tuple[str, ...] = ("name", "priority", "due_date", "assignee", "status")


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式，创建后不可变")
    project_id: str = Field(description="所属 Project ID")
    name: str = Field(min_length=1, description="任务名称")
    priority: int = Field(description="优先级，约定范围 1-5（核心层不校验）")
    due_date: date = Field(description="截止日期")
    assignee: str = Field(description="负责人（通知接收地址）")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    version: int = Field(default=0, ge=0, description="乐观锁版本号")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="最近一次成功提交时间")


class TaskDraft(BaseModel):
    """创建 Task 所需字段，状态固定为 PENDING"""

    name: str = Field(min_length=1)
    priority: int
    due_date: date
    assignee: str


class TaskPatch(BaseModel):
    """Task 部分更新

    字段是否“提供”由 model_fields_set 显式标记，
    未提供的字段永远不会被误读为“改为空值”。
    已提供的字段不允许为 null。
    """

    name: str | None = Field(default=None, min_length=1)
    priority: int | None = None
    due_date: date | None = None
    assignee: str | None = None
    status: TaskStatus | None = None

    @model_validator(mode="after")
    def _reject_explicit_null(self) -> "TaskPatch":
        for field_name in self.model_fields_set:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} must not be null")
        return self

    def supplied(self) -> dict[str, Any]:
        """按固定字段顺序返回已提供且非空的字段"""
        return {
            name: getattr(self, name)
            for name in MUTABLE_FIELDS
            if name in self.model_fields_set and getattr(self, name) is not None
        }
