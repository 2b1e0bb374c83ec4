"""Data models for school report entities."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .utils import Ref, normalize_date, record_id


def _to_float(value: Any) -> Optional[float]:
	if value is None or value == "":
		return None
	try:
		return float(value)
	except (TypeError, ValueError):
		return None


@dataclass
class Student:
	"""A student. classId and schoolId may arrive populated."""
	id: str
	student_name: Optional[str] = None
	class_ref: Ref = field(default_factory=lambda: Ref(None))
	school: Ref = field(default_factory=lambda: Ref(None))
	raw: Dict[str, Any] = field(default_factory=dict, repr=False)

	@classmethod
	def from_api(cls, data: Dict[str, Any]) -> "Student":
		name = data.get("studentName")
		if isinstance(name, dict):
			name = name.get("name")
		return cls(
			id=record_id(data) or "",
			student_name=name,
			class_ref=Ref.parse(data.get("classId")),
			school=Ref.parse(data.get("schoolId")),
			raw=dict(data),
		)

	@property
	def class_id(self) -> Optional[str]:
		return self.class_ref.id

	@property
	def school_id(self) -> Optional[str]:
		return self.school.id


@dataclass
class AttendanceRecord:
	"""An attendance record. Business key is (student, class, date)."""
	id: Optional[str]
	student: Ref
	class_ref: Ref
	date: Optional[str]
	status: Optional[str] = None  # "present", "absent", "late", "excused"
	remarks: Optional[str] = None
	school: Ref = field(default_factory=lambda: Ref(None))
	raw: Dict[str, Any] = field(default_factory=dict, repr=False)

	@classmethod
	def from_api(cls, data: Dict[str, Any]) -> "AttendanceRecord":
		status = data.get("status")
		return cls(
			id=record_id(data),
			student=Ref.parse(data.get("studentId")),
			class_ref=Ref.parse(data.get("classId")),
			date=normalize_date(data.get("date")),
			status=status.lower() if isinstance(status, str) else None,
			remarks=data.get("remarks"),
			school=Ref.parse(data.get("schoolId")),
			raw=dict(data),
		)

	@property
	def student_id(self) -> Optional[str]:
		return self.student.id

	@property
	def class_id(self) -> Optional[str]:
		return self.class_ref.id

	@property
	def context(self) -> "AttendanceContext":
		return AttendanceContext(class_id=self.class_id, date=self.date)


@dataclass
class Mark:
	"""A mark. Business key is (student, class, year, term, exam type)."""
	id: Optional[str]
	student: Ref
	class_ref: Ref
	academic_year: Optional[str] = None
	academic_term: Optional[str] = None
	exam_type: Optional[str] = None
	total_marks: Optional[float] = None
	exam_date: Optional[str] = None
	subject: Ref = field(default_factory=lambda: Ref(None))
	teacher: Ref = field(default_factory=lambda: Ref(None))
	school: Ref = field(default_factory=lambda: Ref(None))
	raw: Dict[str, Any] = field(default_factory=dict, repr=False)

	@classmethod
	def from_api(cls, data: Dict[str, Any]) -> "Mark":
		return cls(
			id=record_id(data),
			student=Ref.parse(data.get("studentId")),
			class_ref=Ref.parse(data.get("classId")),
			academic_year=data.get("academicYear"),
			academic_term=data.get("academicTerm"),
			exam_type=data.get("examType"),
			total_marks=_to_float(data.get("totalMarks")),
			exam_date=normalize_date(data.get("examDate")),
			subject=Ref.parse(data.get("subjectId")),
			teacher=Ref.parse(data.get("teacherId")),
			school=Ref.parse(data.get("schoolId")),
			raw=dict(data),
		)

	@property
	def student_id(self) -> Optional[str]:
		return self.student.id

	@property
	def class_id(self) -> Optional[str]:
		return self.class_ref.id

	@property
	def context(self) -> "MarkContext":
		return MarkContext(
			class_id=self.class_id,
			academic_year=self.academic_year,
			academic_term=self.academic_term,
			exam_type=self.exam_type,
		)


@dataclass(frozen=True)
class AttendanceContext:
	"""The class and day an attendance entry belongs to."""
	class_id: Optional[str]
	date: Optional[str]


@dataclass(frozen=True)
class MarkContext:
	"""The class and assessment period a mark belongs to."""
	class_id: Optional[str]
	academic_year: Optional[str]
	academic_term: Optional[str]
	exam_type: Optional[str]

	def __str__(self) -> str:
		return f"{self.academic_year} {self.academic_term} {self.exam_type}"
