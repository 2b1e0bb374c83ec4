"""Marks pages: browsing with filters, grid entry per period, and the create/edit forms."""

import asyncio
import logging
import math
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ..api import classes, marks, students
from ..const import DEFAULT_MAX_MARKS, MARKS_PAGE_SIZE, NOT_AVAILABLE
from ..exceptions import SchoolReportError, SchoolReportValidationError
from ..export import Table, flatten_marks, write_csv
from ..models import MarkContext, Student
from ..reconcile import InFlightGuard, MarksBuffer, SaveResult, execute_plan
from ..utils import (
	display_student_name,
	extract_subject_name,
	index_by_id,
	normalize_date,
	record_id,
	ref_id,
	unwrap_list,
	unwrap_record,
)
from ..validation import validate_marks_form
from .base import Page

_LOGGER = logging.getLogger(__name__)

FILTER_FIELDS = (
	"academicYear",
	"academicTerm",
	"classId",
	"subjectName",
	"examType",
	"teacherName",
	"dateFrom",
	"dateTo",
)


def _whole(value: Any) -> Any:
	number = float(value)
	return int(number) if number.is_integer() else number


class MarksBrowser(Page):
	"""Filterable, paginated list of marks."""

	page_size = MARKS_PAGE_SIZE

	def __init__(self, client) -> None:
		super().__init__(client)
		self.classes: List[Dict[str, Any]] = []
		self.marks: List[Dict[str, Any]] = []
		self.filters: Dict[str, str] = dict.fromkeys(FILTER_FIELDS, "")
		self.page = 1

	async def load(self) -> bool:
		self.loading = True
		self.error = None
		try:
			classes_data, marks_data = await asyncio.gather(
				classes.get_classes(self.client),
				marks.get_marks(self.client, self.filters),
			)
		except SchoolReportError as e:
			self._fail(e, "Failed to load marks")
			return False
		finally:
			self.loading = False
		self.classes = unwrap_list(classes_data, "classes")
		self.marks = unwrap_list(marks_data, "marks")
		return True

	async def refresh(self) -> bool:
		"""Refetch marks with the current filters; empty filters are not sent."""
		try:
			marks_data = await marks.get_marks(self.client, self.filters)
		except SchoolReportError as e:
			self._fail(e, "Failed to load marks")
			return False
		self.marks = unwrap_list(marks_data, "marks")
		_LOGGER.debug(f"Loaded {len(self.marks)} marks with filters {self.filters}")
		return True

	async def set_filter(self, name: str, value: Any) -> bool:
		if name not in FILTER_FIELDS:
			raise ValueError(f"Unknown marks filter {name!r}")
		self.filters[name] = "" if value is None else value
		self.page = 1
		return await self.refresh()

	async def clear_filters(self) -> bool:
		self.filters = dict.fromkeys(FILTER_FIELDS, "")
		self.page = 1
		return await self.refresh()

	@property
	def total_pages(self) -> int:
		return max(1, math.ceil(len(self.marks) / self.page_size))

	def go_to_page(self, page: int) -> int:
		self.page = min(max(1, page), self.total_pages)
		return self.page

	@property
	def current_page_marks(self) -> List[Dict[str, Any]]:
		start = (self.page - 1) * self.page_size
		return self.marks[start:start + self.page_size]

	async def delete(self, mark_id: str) -> bool:
		try:
			await marks.delete_marks(self.client, mark_id)
		except SchoolReportError as e:
			self._fail(e, "Failed to delete marks. Please try again.")
			return False
		self.success = "Marks deleted successfully!"
		await self.refresh()
		self.go_to_page(self.page)
		return True

	def unique_subjects(self) -> List[str]:
		subjects = {extract_subject_name(m, self.classes) for m in self.marks}
		subjects.discard(NOT_AVAILABLE)
		return sorted(subjects)

	def table(self) -> Table:
		return flatten_marks(self.marks, classes=self.classes)

	def export_csv(self) -> str:
		return write_csv(self.table())


class MarksEntrySheet(Page):
	"""Grid entry of marks for one class, switching between assessment periods."""

	review_headers = ("Student", "Entered", "Saved", "State")

	def __init__(
		self,
		client,
		class_id: str,
		context: MarkContext,
		max_marks: float = DEFAULT_MAX_MARKS,
		subject_id: Optional[str] = None,
		teacher_id: Optional[str] = None,
		school_id: Optional[str] = None,
		exam_date: Optional[str] = None,
	) -> None:
		super().__init__(client)
		self.class_id = class_id
		self.students: List[Dict[str, Any]] = []
		self.buffer = MarksBuffer(
			context,
			max_marks=max_marks,
			subject_id=subject_id,
			teacher_id=teacher_id or self._current_user_id(),
			school_id=school_id,
			exam_date=normalize_date(exam_date),
		)
		self.saving = InFlightGuard()

	@property
	def context(self) -> MarkContext:
		return self.buffer.context

	@property
	def roster(self) -> List[str]:
		return [sid for sid in (record_id(s) for s in self.students) if sid]

	async def load(self) -> bool:
		"""Fetch the roster and every mark of the class so all periods are seeded."""
		self.loading = True
		self.error = None
		try:
			roster_data, marks_data = await asyncio.gather(
				students.get_students_by_class(self.client, self.class_id),
				marks.get_marks_by_class(self.client, self.class_id),
			)
		except SchoolReportError as e:
			self._fail(e, "Failed to load marks")
			return False
		finally:
			self.loading = False
		self.students = unwrap_list(roster_data, "students")
		for student in map(Student.from_api, self.students):
			self.buffer.student_schools[student.id] = student.school_id
		self.buffer.load(self.buffer.records_from_response(marks_data))
		return True

	async def _refresh_marks(self) -> None:
		try:
			marks_data = await marks.get_marks_by_class(self.client, self.class_id)
		except SchoolReportError as e:
			_LOGGER.warning(f"Could not refetch marks for class {self.class_id}: {e}")
			return
		self.buffer.merge(self.buffer.records_from_response(marks_data))

	def enter(self, student_id: str, raw: Any) -> Any:
		return self.buffer.stage(student_id, raw)

	def switch_context(self, context: MarkContext) -> None:
		self.buffer.switch_context(context)

	@property
	def is_dirty(self) -> bool:
		return self.buffer.is_dirty

	async def save(self) -> Optional[SaveResult]:
		"""Bulk-create new marks and update changed ones; nothing happens when clean.

		A second save for the same period is ignored while the first is in flight.
		"""
		if not self.is_dirty:
			return None
		key = ("save", self.context)
		if not self.saving.claim(key):
			_LOGGER.debug(f"Ignoring save for {self.context}, one is already in flight")
			return None
		self.loading = True
		try:
			plan = self.buffer.plan(self.roster)
			if plan.is_empty:
				return None
			result = await execute_plan(
				self.buffer,
				plan,
				lambda payloads: marks.create_bulk_marks(self.client, payloads),
				lambda rid, payload: marks.update_marks(self.client, rid, payload),
			)
			if len(result.created) < len(plan.creates):
				await self._refresh_marks()
		except SchoolReportError as e:
			self._fail(e, "Failed to save marks. Please try again.")
			return None
		finally:
			self.loading = False
			self.saving.release(key)
		self.error = None
		self.success = f"Saved marks for {len(plan.creates) + len(plan.updates)} students ({self.context})"
		_LOGGER.info(self.success)
		return result

	def _state(self, student_id: str) -> str:
		entry = self.buffer.entry(student_id)
		if entry is None or entry.entered is None:
			return ""
		if not entry.has_saved_record:
			return "new"
		return "changed" if entry.is_changed else "saved"

	def review_table(self) -> Table:
		table = Table(title=str(self.context), headers=self.review_headers)
		for student in self.students:
			sid = record_id(student)
			entered = self.buffer.entered(sid)
			saved = self.buffer.saved(sid)
			table.rows.append({
				"Student": display_student_name(student),
				"Entered": "" if entered is None else entered,
				"Saved": "" if saved is None else saved,
				"State": self._state(sid),
			})
		return table

	def export_csv(self) -> str:
		return write_csv(self.review_table())


class MarkEditor(Page):
	"""Create marks for a set of students, or edit a single existing mark."""

	def __init__(self, client, teacher_id: Optional[str] = None) -> None:
		super().__init__(client)
		self.teacher_id = teacher_id or self._current_user_id()
		self.classes: List[Dict[str, Any]] = []
		self.students: List[Dict[str, Any]] = []
		self.mark_id: Optional[str] = None
		self.mark: Optional[Dict[str, Any]] = None
		self.form: Dict[str, Any] = {}

	async def load_options(self) -> bool:
		try:
			classes_data, students_data = await asyncio.gather(
				classes.get_classes(self.client),
				students.get_students(self.client),
			)
		except SchoolReportError as e:
			self._fail(e, "Failed to load classes and students")
			return False
		self.classes = unwrap_list(classes_data, "classes")
		self.students = unwrap_list(students_data, "students")
		return True

	def class_students(self, class_id: str) -> List[Dict[str, Any]]:
		return [s for s in self.students if Student.from_api(s).class_id == class_id]

	async def create_for_students(self, form: Mapping[str, Any]) -> Optional[Any]:
		"""Validate the form and bulk-create one mark per selected student."""
		self.clear_messages()
		try:
			validated = validate_marks_form(form)
		except SchoolReportValidationError as e:
			self._fail(e, "Please check the form")
			return None

		class_id = validated["classId"]
		if self.classes and class_id not in index_by_id(self.classes):
			self.error = "Selected class not found"
			return None

		student_index = index_by_id(self.students)
		exam_date = normalize_date(form.get("examDate")) or date.today().isoformat()
		records = []
		for student_id in form["selectedStudents"]:
			student = student_index.get(student_id, {})
			records.append({
				"studentId": student_id,
				"subjectId": class_id,
				"teacherId": self.teacher_id,
				"classId": class_id,
				"examType": validated["examType"],
				"totalMarks": _whole(validated["totalMarks"]),
				"academicYear": validated["academicYear"],
				"academicTerm": validated["academicTerm"],
				"examDate": exam_date,
				"schoolId": Student.from_api(student).school_id,
			})

		self.loading = True
		try:
			response = await marks.create_bulk_marks(self.client, records)
		except SchoolReportError as e:
			self._fail(e, "Failed to create marks. Please try again.")
			return None
		finally:
			self.loading = False
		self.success = f"Marks created successfully for {len(records)} students!"
		_LOGGER.info(self.success)
		return response

	async def load(self, mark_id: str) -> bool:
		"""Fetch a mark (with classes and students) and fill the edit form from it."""
		self.mark_id = mark_id
		self.loading = True
		try:
			mark_data, classes_data, students_data = await asyncio.gather(
				marks.get_mark_by_id(self.client, mark_id),
				classes.get_classes(self.client),
				students.get_students(self.client),
			)
		except SchoolReportError as e:
			self._fail(e, "Failed to load mark data. Please try again.")
			return False
		finally:
			self.loading = False

		self.mark = unwrap_record(mark_data, "mark") or {}
		self.classes = unwrap_list(classes_data, "classes")
		self.students = unwrap_list(students_data, "students")
		total = self.mark.get("totalMarks")
		self.form = {
			"academicYear": self.mark.get("academicYear") or "",
			"academicTerm": self.mark.get("academicTerm") or "",
			"classId": ref_id(self.mark.get("classId")) or "",
			"subjectId": ref_id(self.mark.get("subjectId")) or "",
			"examType": self.mark.get("examType") or "",
			"totalMarks": "" if total is None else total,
			"examDate": normalize_date(self.mark.get("examDate")) or "",
			"studentId": ref_id(self.mark.get("studentId")) or "",
			"teacherId": ref_id(self.mark.get("teacherId")) or "",
			"schoolId": ref_id(self.mark.get("schoolId")) or "",
		}
		return True

	async def save(self, changes: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
		"""Apply changes on top of the loaded form and update the mark."""
		self.clear_messages()
		if not self.mark_id:
			self.error = "No mark loaded"
			return None
		form = dict(self.form)
		form.update(changes or {})
		try:
			validated = validate_marks_form(form, require_students=False)
		except SchoolReportValidationError as e:
			self._fail(e, "Please check the form")
			return None
		if not form.get("studentId"):
			self.error = "Please select a student"
			return None

		update = {
			"studentId": form["studentId"],
			"subjectId": form.get("subjectId") or validated["classId"],
			"teacherId": form.get("teacherId") or self.teacher_id,
			"classId": validated["classId"],
			"examType": validated["examType"],
			"totalMarks": _whole(validated["totalMarks"]),
			"academicYear": validated["academicYear"],
			"academicTerm": validated["academicTerm"],
			"examDate": normalize_date(form.get("examDate")),
			"schoolId": form.get("schoolId") or None,
		}
		self.loading = True
		try:
			response = await marks.update_marks(self.client, self.mark_id, update)
		except SchoolReportError as e:
			self._fail(e, "Failed to update mark. Please try again.")
			return None
		finally:
			self.loading = False
		self.form = form
		self.mark = unwrap_record(response, "mark") or self.mark
		self.success = "Mark updated successfully!"
		return response
