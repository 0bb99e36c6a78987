from contextlib import nullcontext
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from timegrid.api.deps import get_job_manager, get_repository
from timegrid.core.config import Settings
from timegrid.db.repository import InMemoryScheduleRepository
from timegrid.main import app
from timegrid.services.solve_jobs import SolveJobManager


def build_workbook(sheets: dict[str, list[list]]) -> bytes:
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets.items():
        sheet = workbook.create_sheet(title)
        for row in rows:
            sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture()
def sample_sheets() -> dict[str, list[list]]:
    return {
        "Timeslots": [
            ["DayOfWeek", "StartTime", "EndTime"],
            ["Monday", "09:00", "10:00"],
            ["Monday", "10:00", "11:00"],
            ["Tuesday", "9 AM", "10 AM"],
        ],
        "Rooms": [
            ["Name", "Link"],
            ["Room A", "https://meet.example.com/room-a"],
            ["Room B", None],
        ],
        "Lessons": [
            ["Id", "Subject", "Teacher", "StudentGroup"],
            [1, "Math", "Alice", "Grade 9"],
            [2, "Physics", "Bob", "Grade 9"],
            [3, "Chemistry", "Bob", "Grade 10"],
        ],
        "TeacherAvailability": [
            ["Teacher", "DayOfWeek", "PreferredStart", "PreferredEnd"],
            ["Bob", "Monday", "09:00", "12:00"],
        ],
    }


@pytest.fixture()
def make_workbook():
    return build_workbook


@pytest.fixture()
def repository() -> InMemoryScheduleRepository:
    return InMemoryScheduleRepository()


@pytest.fixture()
def greedy_settings() -> Settings:
    return Settings(solver_mode="greedy", storage_backend="memory")


@pytest.fixture()
def client(repository, greedy_settings):
    manager = SolveJobManager(greedy_settings, lambda: nullcontext(repository))

    def override_get_repository():
        yield repository

    app.dependency_overrides[get_repository] = override_get_repository
    app.dependency_overrides[get_job_manager] = lambda: manager

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
