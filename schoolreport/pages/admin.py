"""Admin dashboard: overview data, class/student creation and filtered views."""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..api import analytics, attendance, classes, comments, students
from ..const import STATUS_PRESENT
from ..exceptions import SchoolReportError, SchoolReportValidationError
from ..models import Student
from ..summary import ClassAttendanceSummary, filter_by_date_window, summarize_by_class
from ..utils import (
	class_name,
	display_class_name,
	display_school_id,
	display_student_name,
	display_teacher_name,
	ref_id,
	unwrap_list,
	unwrap_record,
)
from ..validation import validate_class, validate_student
from .base import Page

_LOGGER = logging.getLogger(__name__)


class AdminDashboard(Page):
	"""Everything the admin overview needs, fetched in one go."""

	def __init__(self, client) -> None:
		super().__init__(client)
		self.classes: List[Dict[str, Any]] = []
		self.students: List[Dict[str, Any]] = []
		self.comments: List[Dict[str, Any]] = []
		self.attendance: List[Dict[str, Any]] = []
		self.stats: Dict[str, Any] = {}
		self.class_performance: List[Dict[str, Any]] = []
		self.attendance_trends: List[Dict[str, Any]] = []

	async def load(self) -> bool:
		"""Fetch classes, students, comments, attendance and analytics in parallel."""
		self.loading = True
		self.error = None
		try:
			(
				classes_data,
				students_data,
				comments_data,
				attendance_data,
				stats_data,
				performance_data,
			) = await asyncio.gather(
				classes.get_classes(self.client),
				students.get_students(self.client),
				comments.get_comments(self.client),
				attendance.get_attendance_records(self.client),
				analytics.get_dashboard_stats(self.client),
				analytics.get_class_performance(self.client),
			)
		except SchoolReportError as e:
			self._fail(e, "Failed to load dashboard data")
			return False
		finally:
			self.loading = False

		self.classes = unwrap_list(classes_data, "classes")
		self.students = unwrap_list(students_data, "students")
		self.comments = unwrap_list(comments_data, "comments")
		self.attendance = unwrap_list(attendance_data, "attendance", "records")
		self.stats = stats_data if isinstance(stats_data, dict) else {}
		self.class_performance = unwrap_list(performance_data, "classPerformance", "performance")
		_LOGGER.info(
			f"Dashboard loaded: {len(self.classes)} classes, {len(self.students)} students, "
			f"{len(self.comments)} comments, {len(self.attendance)} attendance records"
		)
		return True

	async def load_attendance_trends(self, start_date: Optional[str], end_date: Optional[str]) -> List[Dict[str, Any]]:
		"""Trends for a date range; both ends are needed. Failures only get logged."""
		if not start_date or not end_date:
			return self.attendance_trends
		try:
			trends = await analytics.get_attendance_trends(self.client, start_date, end_date)
		except SchoolReportError as e:
			_LOGGER.error(f"Error loading attendance trends: {e}")
			return self.attendance_trends
		self.attendance_trends = unwrap_list(trends, "trends")
		return self.attendance_trends

	async def create_class(self, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
		try:
			payload = validate_class(data)
		except SchoolReportValidationError as e:
			self._fail(e, "Please fill in all required fields")
			return None
		self.loading = True
		try:
			created = await classes.create_class(self.client, payload)
		except SchoolReportError as e:
			self._fail(e, "Failed to create class")
			return None
		finally:
			self.loading = False
		record = unwrap_record(created, "class") or dict(payload)
		self.classes.append(record)
		self.error = None
		return record

	async def create_student(self, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
		try:
			payload = validate_student(data)
		except SchoolReportValidationError as e:
			self._fail(e, "Please fill in all required fields")
			return None
		self.loading = True
		try:
			created = await students.create_student(self.client, payload)
		except SchoolReportError as e:
			self._fail(e, "Failed to create student")
			return None
		finally:
			self.loading = False
		record = unwrap_record(created, "student") or dict(payload)
		self.students.append(record)
		self.error = None
		return record

	# Filtered views

	def filtered_comments(self, class_label: Optional[str] = None) -> List[Dict[str, Any]]:
		"""Comments for a class name; all comments when no class is selected."""
		if not class_label:
			return list(self.comments)
		return [c for c in self.comments if class_name(c, self.classes) == class_label]

	def filtered_attendance(
		self,
		class_id: Optional[str] = None,
		start_date: Optional[str] = None,
		end_date: Optional[str] = None,
	) -> List[Dict[str, Any]]:
		records = self.attendance
		if class_id:
			records = [r for r in records if ref_id(r.get("classId")) == class_id]
		return filter_by_date_window(records, start_date, end_date)

	def class_attendance_breakdown(self, target_date: Optional[str] = None) -> List[ClassAttendanceSummary]:
		return summarize_by_class(self.attendance, target_date, classes=self.classes)

	def students_in_class(self, class_id: str) -> List[Dict[str, Any]]:
		return [s for s in self.students if Student.from_api(s).class_id == class_id]

	def class_overview(self, class_id: str) -> Dict[str, int]:
		"""Counts shown on a class detail panel."""
		label = self.class_label(class_id)
		records = [r for r in self.attendance if ref_id(r.get("classId")) == class_id]
		return {
			"students": len(self.students_in_class(class_id)),
			"comments": len(self.filtered_comments(label)),
			"attendanceRecords": len(records),
			"presentDays": sum(1 for r in records if r.get("status") == STATUS_PRESENT),
		}

	# Display helpers

	def class_label(self, class_ref: Any) -> str:
		return display_class_name(class_ref, self.classes)

	@staticmethod
	def teacher_label(teacher_ref: Any) -> str:
		return display_teacher_name(teacher_ref)

	@staticmethod
	def school_label(school_ref: Any) -> Optional[str]:
		return display_school_id(school_ref)

	@staticmethod
	def student_label(student: Optional[Mapping[str, Any]]) -> str:
		return display_student_name(student)
