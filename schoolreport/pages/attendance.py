"""Attendance sheet for one class, one day at a time."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from ..api import attendance, students
from ..const import STATUS_ABSENT
from ..exceptions import SchoolReportError
from ..models import AttendanceContext, Student
from ..reconcile import CREATE, UPDATE, AttendanceBuffer, InFlightGuard, SaveResult, execute_plan
from ..summary import AttendanceSummary, summarize_attendance
from ..utils import normalize_date, record_id, unwrap_list, unwrap_record
from .base import Page

_LOGGER = logging.getLogger(__name__)

SAVE_ALL_KEY = "save_all"


class AttendanceSheet(Page):
	"""Roster plus staged statuses for a class.

	Switching the date keeps what was entered for other days; each day is
	its own context in the buffer.
	"""

	def __init__(self, client, class_id: str, date: Any, school_id: Optional[str] = None) -> None:
		super().__init__(client)
		self.class_id = class_id
		self.date = normalize_date(date)
		self.buffer = AttendanceBuffer(AttendanceContext(class_id, self.date), school_id=school_id)
		self.students: List[Dict[str, Any]] = []
		self.updating = InFlightGuard()

	@property
	def roster(self) -> List[str]:
		return [sid for sid in (record_id(s) for s in self.students) if sid]

	def status(self, student_id: str) -> Optional[str]:
		return self.buffer.entered(student_id)

	async def load(self) -> bool:
		"""Fetch the class roster and the day's records, then seed the buffer."""
		self.loading = True
		self.error = None
		try:
			roster_data, records_data = await asyncio.gather(
				students.get_students_by_class(self.client, self.class_id),
				attendance.get_attendance_by_class(self.client, self.class_id, self.date),
			)
		except SchoolReportError as e:
			self._fail(e, "Failed to load attendance")
			return False
		finally:
			self.loading = False

		self.students = unwrap_list(roster_data, "students")
		for student in map(Student.from_api, self.students):
			self.buffer.student_schools[student.id] = student.school_id
		loaded = self.buffer.load(self.buffer.records_from_response(records_data))
		_LOGGER.debug(f"Loaded {len(self.students)} students and {loaded} records for {self.buffer.context}")
		return True

	async def _refresh_records(self) -> None:
		try:
			records_data = await attendance.get_attendance_by_class(self.client, self.class_id, self.date)
		except SchoolReportError as e:
			_LOGGER.warning(f"Could not refetch attendance for {self.buffer.context}: {e}")
			return
		self.buffer.merge(self.buffer.records_from_response(records_data))

	async def set_date(self, date: Any, reload: bool = True) -> bool:
		self.date = normalize_date(date)
		self.buffer.switch_context(AttendanceContext(self.class_id, self.date))
		if reload:
			return await self.load()
		return True

	async def toggle(self, student_id: str, status: Any) -> bool:
		"""Submit one student's status straight away as a create or an update.

		A second toggle for the same student and day is ignored while the
		first is still in flight.
		"""
		value = self.buffer.normalize(status)
		if value is None:
			self.error = f"Invalid attendance status: {status!r}"
			return False

		key = self.buffer.key(student_id)
		if not self.updating.claim(key):
			_LOGGER.debug(f"Ignoring toggle for {student_id}, update already in flight")
			return False
		try:
			self.buffer.stage(student_id, value)
			action = self.buffer.classify(student_id)
			if action == CREATE:
				response = await attendance.create_attendance(
					self.client, self.buffer.create_payload(student_id, value)
				)
			elif action == UPDATE:
				response = await attendance.update_attendance(
					self.client,
					self.buffer.saved_record_id(student_id),
					self.buffer.update_payload(student_id, value),
				)
			else:
				return True

			record = unwrap_record(response, *self.buffer.record_keys)
			if record is None:
				_LOGGER.warning(f"No record in attendance response for {student_id}, refetching")
				await self._refresh_records()
			else:
				self.buffer.merge([record])
			self.error = None
			return True
		except SchoolReportError as e:
			self.buffer.discard(student_id)
			self._fail(e, "Failed to update attendance")
			return False
		finally:
			self.updating.release(key)

	async def save_all(self, default: str = STATUS_ABSENT) -> Optional[SaveResult]:
		"""Bulk-create missing records (students left unmarked get `default`) and update changed ones.

		Every student in the batch is claimed for the duration of the save, so
		toggles cannot submit the same record alongside it. Students with a
		toggle already in flight are left to that toggle.
		"""
		key = (SAVE_ALL_KEY, self.buffer.context)
		if not self.updating.claim(key):
			_LOGGER.debug("Ignoring save, one is already in flight")
			return None
		claimed = []
		try:
			roster = []
			for sid in self.roster:
				student_key = self.buffer.key(sid)
				if self.updating.claim(student_key):
					claimed.append(student_key)
					roster.append(sid)
				else:
					_LOGGER.debug(f"Leaving {sid} out of the save, a toggle is in flight")
			self.buffer.fill_missing(roster, default=default)
			plan = self.buffer.plan(roster)
			if plan.is_empty:
				return SaveResult()
			result = await execute_plan(
				self.buffer,
				plan,
				lambda payloads: attendance.create_bulk_attendance(self.client, payloads),
				lambda rid, payload: attendance.update_attendance(self.client, rid, payload),
			)
			if len(result.created) < len(plan.creates):
				await self._refresh_records()
			self.error = None
			self.success = f"Attendance saved for {len(plan.creates) + len(plan.updates)} students"
			_LOGGER.info(self.success)
			return result
		except SchoolReportError as e:
			self._fail(e, "Failed to save attendance")
			return None
		finally:
			for student_key in claimed:
				self.updating.release(student_key)
			self.updating.release(key)

	@property
	def is_dirty(self) -> bool:
		return self.buffer.is_dirty

	def summary(self) -> AttendanceSummary:
		"""Counts over the statuses currently shown for the active day."""
		shown = [
			{"status": entry.entered, "date": self.date}
			for entry in self.buffer.active_entries().values()
			if entry.entered is not None
		]
		return summarize_attendance(shown, self.date)
