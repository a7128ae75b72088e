"""NotificationDispatcher -- 有界队列 + 固定 worker 池的异步通知调度器

提交规则（按顺序判断）：
1. worker 数少于 min_workers：启动新 worker 直接执行该任务
2. 队列未满：入队，由空闲 worker 取走
3. worker 数少于 max_workers：启动额外 worker 直接执行该任务
4. 否则由提交方同步执行（caller-runs），任务执行完才返回

任务执行失败只记录日志与计数，不会传播给提交方，也不会终止 worker。
超出 min_workers 的 worker 空闲 keep_alive_s 后自动退出。
"""

import asyncio
import contextvars
from collections.abc import Awaitable, Callable

import structlog
from pydantic import BaseModel, Field

from taskhub.core.models import DispatchMode, NotificationJob

from ..config import DispatcherConfig

log = structlog.get_logger()

JobHandler = Callable[[NotificationJob], Awaitable[None]]


class DispatcherStats(BaseModel):
    """调度器运行指标"""

    queue_depth: int = Field(description="队列中等待的任务数")
    queue_capacity: int
    worker_count: int = Field(description="当前存活 worker 数")
    busy_workers: int = Field(description="正在执行任务的 worker 数")
    min_workers: int
    max_workers: int
    pending: int = Field(description="已接收但未完成的任务数（不含 caller-runs）")
    submitted: int = 0
    completed: int = 0
    failed: int = 0
    caller_runs: int = 0
    rejected: int = 0


class NotificationDispatcher:
    """通知调度器 -- 基于 asyncio.Queue 的有界 worker 池"""

    def __init__(
        self,
        handler: JobHandler,
        min_workers: int = 5,
        max_workers: int = 10,
        queue_capacity: int = 100,
        keep_alive_s: float = 60.0,
        shutdown_timeout_s: float = 60.0,
    ) -> None:
        if min_workers < 1 or max_workers < min_workers:
            raise ValueError("require 1 <= min_workers <= max_workers")
        if queue_capacity < 1:
            raise ValueError("queue_capacity must be >= 1")

        self._handler = handler
        self._min_workers = min_workers
        self._max_workers = max_workers
        self._keep_alive_s = keep_alive_s
        self._shutdown_timeout_s = shutdown_timeout_s

        self._queue: asyncio.Queue[NotificationJob] = asyncio.Queue(maxsize=queue_capacity)
        self._workers: set[asyncio.Task] = set()
        self._worker_seq = 0
        self._busy = 0
        self._pending = 0
        self._drained = asyncio.Event()
        self._drained.set()
        self._closed = False

        self._submitted = 0
        self._completed = 0
        self._failed = 0
        self._caller_runs = 0
        self._rejected = 0

    @classmethod
    def from_config(
        cls,
        handler: JobHandler,
        config: DispatcherConfig,
    ) -> "NotificationDispatcher":
        return cls(
            handler,
            min_workers=config.min_workers,
            max_workers=config.max_workers,
            queue_capacity=config.queue_capacity,
            keep_alive_s=config.keep_alive_s,
            shutdown_timeout_s=config.shutdown_timeout_s,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    async def submit(self, job: NotificationJob) -> DispatchMode:
        """提交通知任务

        通常立即返回；仅当队列已满且 worker 数已达上限时，
        在当前协程上同步执行该任务，执行完成后才返回。

        Returns:
            任务的执行方式
        """
        if self._closed:
            self._rejected += 1
            log.warning(
                "notification_job_rejected",
                job_id=job.job_id,
                kind=job.kind.value,
                task_id=job.snapshot.task_id,
                reason="dispatcher_shut_down",
            )
            return DispatchMode.REJECTED

        self._submitted += 1

        if len(self._workers) < self._min_workers:
            self._start_worker(job)
            return DispatchMode.WORKER

        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            pass
        else:
            self._mark_accepted()
            return DispatchMode.QUEUED

        if len(self._workers) < self._max_workers:
            self._start_worker(job)
            return DispatchMode.WORKER

        # 背压：由提交方自己执行
        self._caller_runs += 1
        log.warning(
            "notification_caller_runs",
            job_id=job.job_id,
            kind=job.kind.value,
            queue_depth=self._queue.qsize(),
            worker_count=len(self._workers),
        )
        await self._run_job(job)
        return DispatchMode.CALLER_RUNS

    async def shutdown(self, timeout: float | None = None) -> int:
        """停止接收新任务，等待排空后终止所有 worker

        Args:
            timeout: 排空等待时间（秒），默认使用配置值

        Returns:
            超时后被放弃的任务数
        """
        self._closed = True
        wait_s = self._shutdown_timeout_s if timeout is None else timeout

        try:
            async with asyncio.timeout(wait_s):
                await self._drained.wait()
        except TimeoutError:
            pass

        abandoned = self._pending
        workers = list(self._workers)
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        self._workers.clear()

        while not self._queue.empty():
            self._queue.get_nowait()
        # 未执行的任务已计入 abandoned
        self._pending = 0
        self._drained.set()

        if abandoned:
            log.warning(
                "notification_dispatcher_forced_shutdown",
                abandoned=abandoned,
                timeout_s=wait_s,
            )
        else:
            log.info(
                "notification_dispatcher_stopped",
                completed=self._completed,
                failed=self._failed,
            )
        return abandoned

    def stats(self) -> DispatcherStats:
        return DispatcherStats(
            queue_depth=self._queue.qsize(),
            queue_capacity=self._queue.maxsize,
            worker_count=len(self._workers),
            busy_workers=self._busy,
            min_workers=self._min_workers,
            max_workers=self._max_workers,
            pending=self._pending,
            submitted=self._submitted,
            completed=self._completed,
            failed=self._failed,
            caller_runs=self._caller_runs,
            rejected=self._rejected,
        )

    def _mark_accepted(self) -> None:
        self._pending += 1
        self._drained.clear()

    def _mark_finished(self) -> None:
        self._pending -= 1
        if self._pending == 0:
            self._drained.set()

    def _start_worker(self, first_job: NotificationJob) -> None:
        self._mark_accepted()
        self._worker_seq += 1
        # worker 比触发它的请求活得久，不能继承该请求的日志上下文
        worker = asyncio.create_task(
            self._worker_loop(first_job),
            name=f"notification-{self._worker_seq}",
            context=contextvars.Context(),
        )
        self._workers.add(worker)
        worker.add_done_callback(self._workers.discard)

    async def _worker_loop(self, first_job: NotificationJob) -> None:
        job: NotificationJob | None = first_job
        while True:
            if job is not None:
                self._busy += 1
                try:
                    await self._run_job(job)
                finally:
                    self._busy -= 1
                    self._mark_finished()

            job = await self._next_job()
            if job is None:
                # 空闲超时，且当前 worker 数仍高于常驻数
                self._workers.discard(asyncio.current_task())
                log.debug(
                    "notification_worker_retired",
                    worker_count=len(self._workers),
                )
                return

    async def _next_job(self) -> NotificationJob | None:
        """取下一个任务；额外 worker 空闲超时返回 None"""
        while True:
            if len(self._workers) <= self._min_workers:
                return await self._queue.get()
            try:
                async with asyncio.timeout(self._keep_alive_s):
                    return await self._queue.get()
            except TimeoutError:
                if len(self._workers) > self._min_workers:
                    return None

    async def _run_job(self, job: NotificationJob) -> None:
        """执行单个任务，吞掉并记录任何业务异常

        执行期间日志上下文绑定 job_id 与任务的 trace_id。
        """
        with structlog.contextvars.bound_contextvars(
            job_id=job.job_id,
            trace_id=f"trace-{job.snapshot.task_id}",
        ):
            try:
                await self._handler(job)
            except Exception as e:
                self._failed += 1
                log.error(
                    "notification_job_failed",
                    kind=job.kind.value,
                    task_id=job.snapshot.task_id,
                    error_type=type(e).__name__,
                    exc_info=True,
                )
            else:
                self._completed += 1
