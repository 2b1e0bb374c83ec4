"""Constants for the school report client."""

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 10  # seconds

# Environment variables read by ClientConfig.from_env
ENV_BASE_URL = "SCHOOLREPORT_BASE_URL"
ENV_TIMEOUT = "SCHOOLREPORT_TIMEOUT"
ENV_SESSION_FILE = "SCHOOLREPORT_SESSION_FILE"

DEFAULT_HEADERS = {
	"Content-Type": "application/json",
	"Accept": "application/json, */*;q=0.8",
}

# Downloads smaller than this are sniffed for a JSON error body
SMALL_DOWNLOAD_BYTES = 1024

# Attendance statuses
STATUS_PRESENT = "present"
STATUS_ABSENT = "absent"
STATUS_LATE = "late"
STATUS_EXCUSED = "excused"
ATTENDANCE_STATUSES = (STATUS_PRESENT, STATUS_ABSENT, STATUS_LATE, STATUS_EXCUSED)

# Marks
EXAM_TYPES = ("BEGINNING_TERM", "MIDTERM", "ENDTERM")
ACADEMIC_TERMS = ("FIRST_TERM", "SECOND_TERM", "THIRD_TERM")
ACADEMIC_YEARS = ("2023-2024", "2024-2025", "2025-2026")
DEFAULT_MAX_MARKS = 100

# Comments
ROLE_TEACHER = "teacher"
ROLE_MENTOR = "mentor"
COMMENTER_ROLES = (ROLE_TEACHER, ROLE_MENTOR)
ADMIN_ROLES = ("admin", "Admin")

# Display fallbacks
NOT_AVAILABLE = "N/A"

MARKS_PAGE_SIZE = 10
MIN_PASSWORD_LENGTH = 6
