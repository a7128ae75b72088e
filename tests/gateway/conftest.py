"""gateway 测试配置 -- 通知任务构造 + 记录型处理器"""

import asyncio
from datetime import UTC, date, datetime

import pytest
import structlog
from taskhub.core.models import NotificationJob, Task


def make_job(
    name: str = "job",
    assignee: str = "ops@example.com",
    task_id: str = "01JTASK0000000000000000099",
) -> NotificationJob:
    now = datetime.now(UTC)
    task = Task(
        task_id=task_id,
        project_id="01JPROJ0000000000000000099",
        name=name,
        priority=3,
        due_date=date(2030, 1, 1),
        assignee=assignee,
        created_at=now,
        updated_at=now,
    )
    return NotificationJob.for_created(task)


class RecordingHandler:
    """记录处理过的通知任务；名称为 hold 的任务等待 gate 打开"""

    def __init__(self) -> None:
        self.handled: list[NotificationJob] = []
        # 每个任务执行时可见的日志上下文
        self.contexts: list[dict] = []
        self.gate = asyncio.Event()

    async def __call__(self, job: NotificationJob) -> None:
        self.contexts.append(structlog.contextvars.get_contextvars())
        name = job.snapshot.name
        if name == "hold":
            await self.gate.wait()
        elif name == "slow":
            await asyncio.sleep(0.05)
        elif name == "boom":
            raise RuntimeError("mail server unavailable")
        self.handled.append(job)


@pytest.fixture
def job_factory():
    return make_job


@pytest.fixture
def recording_handler() -> RecordingHandler:
    return RecordingHandler()
