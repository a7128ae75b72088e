"""NotificationSender -- 渲染并“发送”通知

当前为日志实现：渲染邮件正文后写入结构化日志，不真正发送邮件。
由 NotificationDispatcher 在 worker（或提交方）上调用。
"""

import asyncio

import structlog

from taskhub.core.exceptions import NotificationFailure
from taskhub.core.models import NotificationJob, NotificationKind

log = structlog.get_logger()

_SEPARATOR = "=" * 40


def render_notification(job: NotificationJob) -> tuple[str, str]:
    """渲染通知主题与正文

    Returns:
        (subject, body)
    """
    task = job.snapshot
    project = job.project_name or task.project_id

    if job.kind == NotificationKind.CREATED:
        subject = f"New Task Assigned - {task.name}"
        lines = [
            "You have been assigned a new task:",
            f"  Task Name    : {task.name}",
            f"  Priority     : {task.priority} (1=Low, 5=High)",
            f"  Due Date     : {task.due_date.isoformat()}",
            f"  Status       : {task.status}",
            f"  Project      : {project}",
        ]
    elif job.kind == NotificationKind.UPDATED:
        subject = f"Task Updated - {task.name}"
        lines = [
            "Your task has been updated:",
            f"  Task Name    : {task.name}",
            f"  Changes      : {', '.join(job.changes)}",
            f"  Current Status: {task.status}",
            f"  Priority     : {task.priority}",
            f"  Due Date     : {task.due_date.isoformat()}",
            f"  Project      : {project}",
        ]
    else:
        subject = f"Task Status Changed - {task.name}"
        lines = [
            "The status of your task has been changed:",
            f"  Task Name    : {task.name}",
            f"  Old Status   : {job.old_status}",
            f"  New Status   : {job.new_status}",
            f"  Priority     : {task.priority}",
            f"  Due Date     : {task.due_date.isoformat()}",
            f"  Project      : {project}",
        ]

    body = "\n".join(
        [
            _SEPARATOR,
            f"To: {job.recipient}",
            f"Subject: {subject}",
            "-" * 40,
            *lines,
            "",
            "Please log in to the system to view more details.",
            _SEPARATOR,
        ]
    )
    return subject, body


class NotificationSender:
    """通知发送器（日志实现）"""

    def __init__(self, send_delay_ms: int = 0) -> None:
        self._send_delay_s = send_delay_ms / 1000
        self.sent_count = 0

    async def send(self, job: NotificationJob) -> None:
        """发送一条通知

        Raises:
            NotificationFailure: 接收方为空，无法投递
        """
        if not job.recipient.strip():
            raise NotificationFailure(
                f"notification {job.job_id} has no recipient",
                job_id=job.job_id,
            )

        subject, body = render_notification(job)
        if self._send_delay_s:
            await asyncio.sleep(self._send_delay_s)

        log.info(
            "notification_sent",
            job_id=job.job_id,
            kind=job.kind.value,
            task_id=job.snapshot.task_id,
            recipient=job.recipient,
            subject=subject,
            body=body,
        )
        self.sent_count += 1
