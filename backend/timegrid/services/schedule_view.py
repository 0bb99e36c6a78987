import csv
import io
from typing import List

from timegrid.db.repository import ScheduleRepository
from timegrid.schemas.classes import EnrichedClassOut

EXPORT_HEADER = [
    "Course Name",
    "Course Code",
    "Teacher Name",
    "Student Group",
    "Day",
    "Start Time",
    "End Time",
    "Has Conflict",
]
EXPORT_FILENAME = "timetable-schedule.csv"


def enrich_classes(repository: ScheduleRepository) -> List[EnrichedClassOut]:
    teachers = {item.id: item for item in repository.list_teachers()}
    groups = {item.id: item for item in repository.list_student_groups()}
    courses = {item.id: item for item in repository.list_courses()}

    enriched: List[EnrichedClassOut] = []
    for item in repository.list_classes():
        course = courses.get(item.course_id)
        teacher = teachers.get(item.teacher_id)
        group = groups.get(item.student_group_id)
        enriched.append(
            EnrichedClassOut(
                id=item.id,
                courseName=course.name if course else "",
                courseCode=course.code if course else "",
                teacherName=teacher.name if teacher else "",
                studentGroup=group.name if group else "",
                day=item.day,
                startTime=item.start_time,
                endTime=item.end_time,
                hasConflict=bool(item.has_conflict),
                meetingLink=item.meeting_link or "",
                courseId=item.course_id,
                teacherId=item.teacher_id,
                studentGroupId=item.student_group_id,
            )
        )
    return enriched


def export_schedule_csv(repository: ScheduleRepository) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADER)
    for item in enrich_classes(repository):
        writer.writerow(
            [
                item.course_name or "Unknown",
                item.course_code or "Unknown",
                item.teacher_name or "Unknown",
                item.student_group or "Unknown",
                item.day,
                item.start_time,
                item.end_time,
                "Yes" if item.has_conflict else "No",
            ]
        )
    return buffer.getvalue()
