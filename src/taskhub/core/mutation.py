"""MutationService -- 乐观并发控制下的部分更新

流程：load -> diff -> 覆盖已提供字段 -> commit_if_version。
Conflict 与 NotFound 作为返回值交给调用方处理，本层不做自动重试。
"""

import structlog

from .changes import describe_changes
from .models.results import Conflict, MutationResult, NotFound
from .models.task import TaskPatch
from .store.protocols import TaskStore

log = structlog.get_logger()


class MutationService:
    """Task 部分更新服务（OCC 核心）

    实例在进程内长期存活，累计冲突次数供指标接口读取。
    """

    def __init__(self, task_store: TaskStore) -> None:
        self._task_store = task_store
        self._conflict_count = 0

    @property
    def conflict_count(self) -> int:
        return self._conflict_count

    async def update(
        self,
        task_id: str,
        patch: TaskPatch,
        *,
        always_commit: bool = False,
    ) -> MutationResult | NotFound | Conflict:
        """对 task 执行一次部分更新尝试

        Args:
            task_id: 任务 ID
            patch: 部分更新
            always_commit: 无实际变更时是否仍然提交（版本号照常 +1）

        Returns:
            MutationResult；任务不存在返回 NotFound；版本冲突返回 Conflict
        """
        loaded = await self._task_store.load(task_id)
        if isinstance(loaded, NotFound):
            return loaded

        changes = describe_changes(loaded, patch)
        fields = patch.supplied()

        if not changes and not always_commit:
            log.debug("task_update_noop", task_id=task_id, version=loaded.version)
            return MutationResult(previous=loaded, task=loaded, changes=[], committed=False)

        outcome = await self._task_store.commit_if_version(
            task_id, loaded.version, fields
        )
        if isinstance(outcome, Conflict):
            self._conflict_count += 1
            log.warning(
                "task_mutation_conflict",
                task_id=task_id,
                expected_version=outcome.expected_version,
                current_version=outcome.current_version,
            )
            return outcome
        if isinstance(outcome, NotFound):
            # load 与提交之间记录被删除
            return outcome

        log.info(
            "task_mutation_committed",
            task_id=task_id,
            version=outcome.version,
            change_count=len(changes),
        )
        return MutationResult(
            previous=loaded,
            task=outcome,
            changes=changes,
            committed=True,
        )
