from timegrid.models.course import Course  # noqa: F401
from timegrid.models.scheduled_class import ScheduledClass  # noqa: F401
from timegrid.models.student_group import StudentGroup  # noqa: F401
from timegrid.models.teacher import Teacher  # noqa: F401
from timegrid.models.teacher_availability import TeacherAvailability  # noqa: F401
