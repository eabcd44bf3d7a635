"""Single-flight coordination of digest runs."""

import asyncio
import logging
import threading
from typing import Optional

from news_digest.core import (
    RunAction,
    RunOutcome,
    RunResult,
    RunState,
    RunStatus,
)
from news_digest.use_cases import DigestPipeline

logger = logging.getLogger(__name__)

QUEUE_FULL_MESSAGE = "Digest already has a queued run"


class RunCoordinator:
    """Gate access to the pipeline: one run in flight, one request queued.

    States are Idle, Running and Running+Queued. A request arriving while a
    run is in flight takes the single queue slot, or is rejected when the slot
    is taken. The queued request runs as soon as the current run completes.

    All state lives in one RunState guarded by a lock, so status snapshots
    taken from any thread are consistent. Runs execute in their own task, so
    cancelling the caller neither aborts a run nor skips its history record.
    """

    def __init__(self, pipeline: DigestPipeline) -> None:
        self.pipeline = pipeline
        self._state = RunState()
        self._lock = threading.Lock()
        self._background: set[asyncio.Task] = set()

    async def request_generate(self) -> RunResult:
        """Compute a digest without delivering it."""
        return await self.request(RunAction.GENERATE)

    async def request_send(self) -> RunResult:
        """Compute a digest and deliver it."""
        return await self.request(RunAction.SEND)

    async def request(self, action: RunAction) -> RunResult:
        with self._lock:
            if self._state.is_running:
                if self._state.queued_action is not None:
                    logger.info("Rejected %s request: a run is already queued", action.value)
                    return RunResult(RunOutcome.REJECTED, success=False, error=QUEUE_FULL_MESSAGE)
                self._state.queued_action = action
                logger.info("Queued %s request behind the active run", action.value)
                return RunResult(RunOutcome.QUEUED, success=True)
            self._begin_locked()

        return await asyncio.shield(self._start(action))

    def get_status(self) -> RunStatus:
        with self._lock:
            return RunStatus(
                is_running=self._state.is_running,
                queued=self._state.queued_action is not None,
                scheduler_running=self._state.scheduler_running,
                next_run_at=self._state.next_run_at,
                today_provider_calls=self._state.today_provider_calls,
                limit=self.pipeline.call_limit,
                last_error=self._state.last_error,
            )

    def set_scheduler_status(self, running: bool, next_run_at: Optional[str]) -> None:
        with self._lock:
            self._state.scheduler_running = running
            self._state.next_run_at = next_run_at

    def reset_daily_usage(self) -> None:
        with self._lock:
            self._state.today_provider_calls = 0

    async def join(self) -> None:
        """Wait until every started run, queued ones included, has finished."""
        while self._background:
            await asyncio.gather(*list(self._background))

    def _begin_locked(self) -> None:
        self._state.is_running = True
        self._state.last_error = None

    def _start(self, action: RunAction) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._execute(action))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _execute(self, action: RunAction) -> RunResult:
        try:
            return await self._run_and_record(action)
        finally:
            self._finish()

    async def _run_and_record(self, action: RunAction) -> RunResult:
        """Run the pipeline and write exactly one history record."""
        try:
            articles = await self.pipeline.run(action)
            await self.pipeline.store.create_history(
                articles,
                sent_successfully=action is RunAction.SEND,
                run_type=action,
            )
            logger.info("Digest history persisted: action=%s articles=%d", action.value, len(articles))
        except Exception as e:
            return await self._record_failure(action, e)
        finally:
            self._add_usage(self.pipeline.run_calls)

        return RunResult(RunOutcome.EXECUTED, success=True, articles=articles)

    async def _record_failure(self, action: RunAction, error: Exception) -> RunResult:
        message = str(error) or type(error).__name__
        with self._lock:
            self._state.last_error = message
        logger.error("Digest run failed: action=%s error=%s", action.value, message)

        try:
            await self.pipeline.store.create_history(
                [],
                sent_successfully=False,
                run_type=action,
                error_message=message,
            )
        except Exception:
            logger.exception("Could not persist failed digest history")

        return RunResult(RunOutcome.EXECUTED, success=False, error=message)

    def _add_usage(self, calls: int) -> None:
        with self._lock:
            self._state.today_provider_calls += calls
            total = self._state.today_provider_calls
        logger.info("Provider usage this run=%d totalToday=%d", calls, total)

    def _finish(self) -> None:
        """Release the running flag, or hand it straight to the queued request."""
        with self._lock:
            action = self._state.queued_action
            self._state.queued_action = None
            if action is None:
                self._state.is_running = False
                return
            self._begin_locked()

        logger.info("Starting queued %s run", action.value)
        self._start(action)

