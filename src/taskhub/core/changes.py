"""变更描述构建

根据旧快照和部分更新计算有序、最小的字段变更描述。
纯函数：无副作用，相同输入产生相同输出。
"""

from typing import Any

from .models.task import Task, TaskPatch


def _describe(field: str, old_value: Any, new_value: Any) -> str:
    if field == "name":
        return f"name changed to '{new_value}'"
    if field == "priority":
        return f"priority changed to {new_value}"
    if field == "due_date":
        return f"due date changed to {new_value.isoformat()}"
    if field == "assignee":
        return f"assignee changed to {new_value}"
    # status
    return f"status changed from {old_value} to {new_value}"


def describe_changes(old: Task, patch: TaskPatch) -> list[str]:
    """计算变更描述列表

    字段按 name, priority, due_date, assignee, status 固定顺序遍历；
    仅当字段已提供、非空且与旧值不同时才产生一条描述。

    Args:
        old: 加载时的快照
        patch: 部分更新

    Returns:
        有序变更描述；无实际变更时为空列表
    """
    return [
        _describe(field, getattr(old, field), new_value)
        for field, new_value in patch.supplied().items()
        if new_value != getattr(old, field)
    ]
