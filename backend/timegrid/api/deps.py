from collections.abc import Generator, Iterator
from contextlib import contextmanager

from fastapi import Request

from timegrid.core.config import Settings
from timegrid.db.repository import InMemoryScheduleRepository, ScheduleRepository
from timegrid.db.session import SessionLocal
from timegrid.db.sql_repository import SqlAlchemyScheduleRepository
from timegrid.services.solve_jobs import RepositoryScope, SolveJobManager


def make_repository_scope(settings: Settings, memory_repository: InMemoryScheduleRepository) -> RepositoryScope:
    @contextmanager
    def repository_scope() -> Iterator[ScheduleRepository]:
        if settings.storage_backend != "database":
            yield memory_repository
            return
        db = SessionLocal()
        try:
            yield SqlAlchemyScheduleRepository(db)
        finally:
            db.close()

    return repository_scope


def get_repository(request: Request) -> Generator[ScheduleRepository, None, None]:
    with request.app.state.repository_scope() as repository:
        yield repository


def get_job_manager(request: Request) -> SolveJobManager:
    return request.app.state.job_manager
