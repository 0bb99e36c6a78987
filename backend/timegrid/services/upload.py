from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from timegrid.db.repository import ScheduleRepository
from timegrid.schemas.timetable import day_key_to_name
from timegrid.schemas.upload import UploadResponse, UploadSummary, ValidationReport
from timegrid.services.solve_jobs import SolveJob, SolveJobManager
from timegrid.services.spreadsheet import NormalizedWorkbook, normalize_workbook
from timegrid.services.validation import build_validation

logger = logging.getLogger(__name__)


def course_code_for(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip()).upper()


@dataclass
class UploadResult:
    workbook: NormalizedWorkbook
    validation: ValidationReport
    job: SolveJob

    def to_response(self) -> UploadResponse:
        timetable = self.workbook.timetable
        return UploadResponse(
            message="Upload accepted; solving in background" if self.job.mode == "remote" else "Upload accepted; schedule generated",
            summary=UploadSummary(
                teachers=len(self.workbook.teachers),
                studentGroups=len(self.workbook.student_groups),
                courses=len(self.workbook.courses),
                lessons=len(timetable.lessons),
                timeslots=len(timetable.timeslots),
                rooms=len(timetable.rooms),
                teacherAvailabilities=len(timetable.teacherAvailabilities),
            ),
            data=timetable,
            jobId=self.job.job_id,
            jobState=self.job.state,
            warnings=[*self.workbook.warnings, *self.validation.warnings],
            conflicts=self.validation.conflicts,
            suggestions=self.validation.suggestions,
        )


def replace_entities(workbook: NormalizedWorkbook, repository: ScheduleRepository) -> None:
    """Latest upload wins: wipe everything and store the entities of this workbook."""
    repository.clear_all()
    for name in workbook.teachers:
        repository.create_teacher(name=name)
    for name in workbook.student_groups:
        repository.create_student_group(name=name)

    used_codes: set[str] = set()
    for name in workbook.courses:
        base_code = course_code_for(name)
        code = base_code
        suffix = 2
        while code in used_codes:
            code = f"{base_code}_{suffix}"
            suffix += 1
        used_codes.add(code)
        repository.create_course(name=name, code=code, duration=1)

    for window in workbook.timetable.teacherAvailabilities:
        repository.create_teacher_availability(
            teacher=window.teacher,
            day=day_key_to_name(window.dayOfWeek),
            start_time=window.startTime,
            end_time=window.endTime,
        )


async def process_upload(content: bytes, repository: ScheduleRepository, jobs: SolveJobManager) -> UploadResult:
    workbook = normalize_workbook(content)
    validation = build_validation(workbook.timetable)
    replace_entities(workbook, repository)
    logger.info(
        "UPLOAD STORED | teachers=%s | student_groups=%s | courses=%s | availabilities=%s",
        len(workbook.teachers),
        len(workbook.student_groups),
        len(workbook.courses),
        len(workbook.timetable.teacherAvailabilities),
    )
    job = await jobs.start(workbook.timetable)
    return UploadResult(workbook=workbook, validation=validation, job=job)
