from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from timegrid.core.config import Settings
from timegrid.core.exceptions import SolverUnavailableError
from timegrid.db.repository import ScheduleRepository
from timegrid.schemas.timetable import Room, Solution, Timetable
from timegrid.schemas.upload import PersistenceReport, SolveJobOut
from timegrid.services.greedy_scheduler import schedule_greedy
from timegrid.services.persistence import persist_solution
from timegrid.services.solver_client import TERMINAL_SOLVER_STATUS, SolverClient
from timegrid.services.timeslot_grid import prepare_for_solve

logger = logging.getLogger(__name__)

SUBMITTED = "SUBMITTED"
POLLING = "POLLING"
SOLVED = "SOLVED"
FAILED = "FAILED"

MAX_TRACKED_JOBS = 50

RepositoryScope = Callable[[], AbstractContextManager[ScheduleRepository]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SolveJob:
    job_id: str
    mode: Literal["remote", "greedy"]
    timetable: Timetable
    rooms: list[Room]
    state: str = SUBMITTED
    attempts: int = 0
    error: str | None = None
    report: PersistenceReport | None = None
    solution: Solution | None = field(default=None, repr=False)
    created_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def is_finished(self) -> bool:
        return self.state in {SOLVED, FAILED}

    def finish(self, state: str, *, error: str | None = None) -> None:
        self.state = state
        self.error = error
        self.finished_at = _utcnow()

    def to_schema(self) -> SolveJobOut:
        return SolveJobOut(
            jobId=self.job_id,
            state=self.state,
            mode=self.mode,
            attempts=self.attempts,
            error=self.error,
            report=self.report,
            createdAt=self.created_at,
            finishedAt=self.finished_at,
        )


class SolveJobManager:
    """Runs one solve cycle at a time: SUBMITTED -> POLLING -> SOLVED | FAILED.

    Remote jobs are polled by an asyncio task with backoff and an optional
    overall timeout. Greedy jobs run inline and finish before `start` returns.
    """

    def __init__(
        self,
        settings: Settings,
        repository_scope: RepositoryScope,
        client: SolverClient | None = None,
    ):
        self.settings = settings
        self.repository_scope = repository_scope
        self.client = client or SolverClient(
            settings.solver_api_url,
            timeout=settings.solver_request_timeout_seconds,
        )
        self.jobs: dict[str, SolveJob] = {}
        self._active_job_id: str | None = None

    def get(self, job_id: str) -> SolveJob | None:
        return self.jobs.get(job_id)

    def _track(self, job: SolveJob) -> None:
        self.jobs[job.job_id] = job
        self._active_job_id = job.job_id
        finished = [item for item in self.jobs.values() if item.is_finished]
        while len(self.jobs) > MAX_TRACKED_JOBS and finished:
            stale = finished.pop(0)
            self.jobs.pop(stale.job_id, None)

    async def start(self, timetable: Timetable, rooms: list[Room] | None = None) -> SolveJob:
        prepared = prepare_for_solve(timetable, default_grid_enabled=self.settings.solver_default_grid_enabled)
        rooms = list(rooms if rooms is not None else prepared.rooms)
        if self._active_job_id is not None:
            await self.cancel(self._active_job_id)

        if self.settings.solver_mode == "greedy":
            return self._run_greedy(prepared, rooms)

        try:
            remote_job_id = await self.client.submit(prepared)
        except SolverUnavailableError:
            if not self.settings.solver_fallback_to_greedy:
                raise
            logger.warning("SOLVER FALLBACK | solver_url=%s | mode=greedy", self.settings.solver_api_url)
            return self._run_greedy(prepared, rooms)

        job = SolveJob(job_id=remote_job_id, mode="remote", timetable=prepared, rooms=rooms)
        self._track(job)
        job.task = asyncio.create_task(self._poll(job), name=f"solve-poll-{remote_job_id}")
        logger.info(
            "SOLVE JOB START | job_id=%s | mode=remote | lessons=%s | timeslots=%s",
            job.job_id,
            len(prepared.lessons),
            len(prepared.timeslots),
        )
        return job

    def _run_greedy(self, timetable: Timetable, rooms: list[Room]) -> SolveJob:
        job = SolveJob(job_id=f"greedy-{uuid.uuid4().hex}", mode="greedy", timetable=timetable, rooms=rooms)
        self._track(job)
        logger.info("SOLVE JOB START | job_id=%s | mode=greedy | lessons=%s", job.job_id, len(timetable.lessons))
        result = schedule_greedy(timetable)
        job.attempts = 1
        job.solution = result.solution
        job.report = self._persist(result.solution, rooms)
        job.finish(SOLVED)
        return job

    def _persist(self, solution: Solution, rooms: list[Room]) -> PersistenceReport:
        with self.repository_scope() as repository:
            removed = repository.clear_classes()
            logger.info("CLASSES CLEARED | removed=%s", removed)
            return persist_solution(solution, rooms, repository)

    async def _poll(self, job: SolveJob) -> None:
        loop = asyncio.get_running_loop()
        timeout = self.settings.solver_poll_timeout_seconds
        deadline = loop.time() + timeout if timeout is not None else None
        interval = self.settings.solver_poll_interval_seconds
        job.state = POLLING
        try:
            while True:
                await asyncio.sleep(interval)
                job.attempts += 1
                status = await self.client.status(job.job_id)
                solver_status = str(status.get("solverStatus"))
                logger.debug("SOLVE POLL | job_id=%s | attempt=%s | status=%s", job.job_id, job.attempts, solver_status)
                if solver_status == TERMINAL_SOLVER_STATUS:
                    break
                if deadline is not None and loop.time() >= deadline:
                    job.finish(FAILED, error=f"Solver did not finish within {timeout:g} seconds")
                    logger.warning("SOLVE JOB TIMEOUT | job_id=%s | attempts=%s", job.job_id, job.attempts)
                    return
                interval = min(
                    interval * self.settings.solver_poll_backoff_factor,
                    self.settings.solver_poll_max_interval_seconds,
                )

            solution = await self.client.fetch_solution(job.job_id)
            job.report = await asyncio.to_thread(self._persist, solution, job.rooms)
            job.finish(SOLVED)
            logger.info(
                "SOLVE JOB DONE | job_id=%s | attempts=%s | created=%s | skipped=%s",
                job.job_id,
                job.attempts,
                job.report.created,
                job.report.skipped,
            )
        except asyncio.CancelledError:
            if not job.is_finished:
                job.finish(FAILED, error="Cancelled")
            logger.info("SOLVE JOB CANCELLED | job_id=%s", job.job_id)
            raise
        except Exception as exc:
            job.finish(FAILED, error=str(exc))
            logger.exception("SOLVE JOB FAILED | job_id=%s | attempts=%s", job.job_id, job.attempts)

    async def cancel(self, job_id: str) -> SolveJob | None:
        job = self.jobs.get(job_id)
        if job is None:
            return None
        if job.task is not None and not job.task.done():
            job.task.cancel()
            await asyncio.gather(job.task, return_exceptions=True)
        if not job.is_finished:
            job.finish(FAILED, error="Cancelled")
        if self._active_job_id == job_id:
            self._active_job_id = None
        return job

    async def wait(self, job_id: str) -> SolveJob | None:
        job = self.jobs.get(job_id)
        if job is not None and job.task is not None:
            await asyncio.gather(job.task, return_exceptions=True)
        return job

    async def shutdown(self) -> None:
        pending = [job for job in self.jobs.values() if job.task is not None and not job.task.done()]
        for job in pending:
            job.task.cancel()
        if pending:
            await asyncio.gather(*(job.task for job in pending), return_exceptions=True)
        for job in pending:
            if not job.is_finished:
                job.finish(FAILED, error="Cancelled")
        self._active_job_id = None
        logger.info("SOLVE JOBS SHUTDOWN | cancelled=%s", len(pending))
