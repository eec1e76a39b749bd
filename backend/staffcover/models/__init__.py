from staffcover.models.activity_log import ActivityLog  # noqa: F401
from staffcover.models.attendance import MEDICAL_LEAVE, AttendanceRecord  # noqa: F401
from staffcover.models.combined_block import CombinedBlock  # noqa: F401
from staffcover.models.notification import Notification, NotificationType  # noqa: F401
from staffcover.models.substitution_record import PENDING_SUBSTITUTE_NAME, SubstitutionRecord  # noqa: F401
from staffcover.models.teacher import Teacher, UserRole  # noqa: F401
from staffcover.models.teacher_assignment import TeacherAssignment  # noqa: F401
from staffcover.models.timetable_entry import SectionType, TimetableEntry  # noqa: F401
