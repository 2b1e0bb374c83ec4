"""Reconcile locally entered attendance/marks with what the server holds.

A buffer keeps one StagedEntry per (student, context) pair, so entries for
several dates or assessment periods can live side by side. Saving turns the
active context's entries into one bulk create plus individual updates, and
the records the server sends back are merged under their own context.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import (
	Any,
	Awaitable,
	Callable,
	Dict,
	Generic,
	Hashable,
	Iterable,
	List,
	Mapping,
	Optional,
	Set,
	Tuple,
	TypeVar,
)

from .const import ATTENDANCE_STATUSES, DEFAULT_MAX_MARKS, STATUS_ABSENT, STATUS_PRESENT
from .models import AttendanceContext, AttendanceRecord, Mark, MarkContext
from .utils import unwrap_list, unwrap_record

_LOGGER = logging.getLogger(__name__)

C = TypeVar("C", bound=Hashable)
EntryKey = Tuple[str, Hashable]

CREATE = "create"
UPDATE = "update"


@dataclass
class StagedEntry:
	"""What the user typed and what the server last confirmed for one student."""
	entered: Any = None
	saved: Any = None
	record_id: Optional[str] = None

	@property
	def has_saved_record(self) -> bool:
		return self.record_id is not None

	@property
	def is_changed(self) -> bool:
		return self.entered is not None and self.entered != self.saved


@dataclass
class SavePlan:
	"""Students to create in bulk and records to update one by one."""
	creates: List[str] = field(default_factory=list)
	updates: List[Tuple[str, str]] = field(default_factory=list)  # (student_id, record_id)
	skipped: List[str] = field(default_factory=list)

	@property
	def is_empty(self) -> bool:
		return not self.creates and not self.updates


@dataclass
class SaveResult:
	created: List[Dict[str, Any]] = field(default_factory=list)
	updated: List[Dict[str, Any]] = field(default_factory=list)
	failed: List[Tuple[str, BaseException]] = field(default_factory=list)

	@property
	def merged_count(self) -> int:
		return len(self.created) + len(self.updated)


class ReconcileBuffer(Generic[C]):
	"""Base buffer; subclasses define value normalisation and wire payloads."""

	#: envelope keys tried when unwrapping a bulk create response
	response_keys: Tuple[str, ...] = ()
	#: envelope keys tried when unwrapping a single-record update response
	record_keys: Tuple[str, ...] = ()

	def __init__(self, context: C) -> None:
		self.context: C = context
		self._entries: Dict[EntryKey, StagedEntry] = {}

	# Subclass hooks

	def normalize(self, raw: Any) -> Any:
		raise NotImplementedError

	def parse_record(self, record: Mapping[str, Any]) -> Tuple[Optional[str], C, Any, Optional[str]]:
		"""Return (student_id, context, value, record_id) taken from the record itself."""
		raise NotImplementedError

	def create_payload(self, student_id: str, value: Any) -> Dict[str, Any]:
		raise NotImplementedError

	def update_payload(self, student_id: str, value: Any) -> Dict[str, Any]:
		raise NotImplementedError

	# Entries

	def key(self, student_id: str, context: Optional[C] = None) -> EntryKey:
		return (student_id, self.context if context is None else context)

	def entry(self, student_id: str, context: Optional[C] = None) -> Optional[StagedEntry]:
		return self._entries.get(self.key(student_id, context))

	def entered(self, student_id: str) -> Any:
		entry = self.entry(student_id)
		return entry.entered if entry else None

	def saved(self, student_id: str) -> Any:
		entry = self.entry(student_id)
		return entry.saved if entry else None

	def saved_record_id(self, student_id: str) -> Optional[str]:
		entry = self.entry(student_id)
		return entry.record_id if entry else None

	def switch_context(self, context: C) -> None:
		"""Make another context active; entries of other contexts are kept."""
		_LOGGER.debug(f"Switching context from {self.context} to {context}")
		self.context = context

	def stage(self, student_id: str, raw: Any) -> Any:
		"""Store the user's input for the active context, normalised.

		Returns the staged value; None means "no entry" and is never submitted.
		"""
		value = self.normalize(raw)
		entry = self._entries.setdefault(self.key(student_id), StagedEntry())
		entry.entered = value
		return value

	def discard(self, student_id: str) -> None:
		"""Drop an unsaved edit, restoring the saved value."""
		entry = self.entry(student_id)
		if entry:
			entry.entered = entry.saved

	def active_entries(self) -> Dict[str, StagedEntry]:
		return {
			student_id: entry
			for (student_id, context), entry in self._entries.items()
			if context == self.context
		}

	@property
	def is_dirty(self) -> bool:
		"""True when any entry of the active context differs from its saved value."""
		return any(entry.is_changed for entry in self.active_entries().values())

	# Classification

	def classify(self, student_id: str) -> Optional[str]:
		entry = self.entry(student_id)
		if entry is None or entry.entered is None:
			return None
		if not entry.has_saved_record:
			return CREATE
		if entry.entered != entry.saved:
			return UPDATE
		return None

	def plan(self, roster: Iterable[str]) -> SavePlan:
		plan = SavePlan()
		for student_id in roster:
			action = self.classify(student_id)
			if action == CREATE:
				plan.creates.append(student_id)
			elif action == UPDATE:
				plan.updates.append((student_id, self.saved_record_id(student_id)))
			else:
				plan.skipped.append(student_id)
		return plan

	# Server state

	def merge(self, records: Iterable[Mapping[str, Any]]) -> List[EntryKey]:
		"""Fold server records in under their own (student, context) key."""
		merged = []
		for record in records:
			if not isinstance(record, Mapping):
				continue
			student_id, context, value, record_id = self.parse_record(record)
			if not student_id:
				_LOGGER.warning(f"Skipping record without student reference: {record}")
				continue
			key = (student_id, context)
			entry = self._entries.setdefault(key, StagedEntry())
			entry.saved = value
			entry.entered = value
			entry.record_id = record_id
			merged.append(key)
		return merged

	def load(self, records: Iterable[Mapping[str, Any]]) -> int:
		"""Seed the buffer from fetched records."""
		return len(self.merge(records))

	def records_from_response(self, response: Any) -> List[Dict[str, Any]]:
		return [r for r in unwrap_list(response, *self.response_keys) if isinstance(r, Mapping)]


class AttendanceBuffer(ReconcileBuffer[AttendanceContext]):
	"""Attendance statuses per student for a class and day."""

	response_keys = ("records", "attendance", "created")
	record_keys = ("attendance", "record")

	def __init__(self, context: AttendanceContext, school_id: Optional[str] = None) -> None:
		super().__init__(context)
		self.school_id = school_id
		self.student_schools: Dict[str, Optional[str]] = {}

	def normalize(self, raw: Any) -> Optional[str]:
		if isinstance(raw, bool):
			return STATUS_PRESENT if raw else STATUS_ABSENT
		if not isinstance(raw, str):
			return None
		status = raw.strip().lower()
		return status if status in ATTENDANCE_STATUSES else None

	def parse_record(self, record):
		parsed = AttendanceRecord.from_api(record)
		return parsed.student_id, parsed.context, self.normalize(parsed.status), parsed.id

	def fill_missing(self, roster: Iterable[str], default: str = STATUS_ABSENT) -> List[str]:
		"""Stage `default` for roster students with neither an entry nor a saved record."""
		filled = []
		for student_id in roster:
			entry = self.entry(student_id)
			if entry is not None and (entry.entered is not None or entry.has_saved_record):
				continue
			self.stage(student_id, default)
			filled.append(student_id)
		return filled

	def create_payload(self, student_id: str, value: str) -> Dict[str, Any]:
		return {
			"studentId": student_id,
			"classId": self.context.class_id,
			"schoolId": self.student_schools.get(student_id) or self.school_id,
			"date": self.context.date,
			"status": value,
		}

	def update_payload(self, student_id: str, value: str) -> Dict[str, Any]:
		return {"status": value}


class MarksBuffer(ReconcileBuffer[MarkContext]):
	"""Marks per student for a class and assessment period."""

	response_keys = ("marks", "created", "records")
	record_keys = ("mark", "marks")

	def __init__(
		self,
		context: MarkContext,
		max_marks: float = DEFAULT_MAX_MARKS,
		subject_id: Optional[str] = None,
		teacher_id: Optional[str] = None,
		school_id: Optional[str] = None,
		exam_date: Optional[str] = None,
	) -> None:
		super().__init__(context)
		self.max_marks = max_marks
		self.subject_id = subject_id
		self.teacher_id = teacher_id
		self.school_id = school_id
		self.exam_date = exam_date
		self.student_schools: Dict[str, Optional[str]] = {}

	@staticmethod
	def _number(raw: Any) -> Optional[float]:
		if raw is None or isinstance(raw, bool):
			return None
		try:
			number = float(str(raw).strip())
		except ValueError:
			return None
		if math.isnan(number) or math.isinf(number):
			return None
		return number

	@staticmethod
	def _tidy(number: float):
		return int(number) if number.is_integer() else number

	def normalize(self, raw: Any):
		"""Clamp to [0, max_marks]; anything non-numeric is no entry."""
		number = self._number(raw)
		if number is None:
			return None
		return self._tidy(min(max(number, 0.0), float(self.max_marks)))

	def parse_record(self, record):
		parsed = Mark.from_api(record)
		value = self._number(parsed.total_marks)
		return parsed.student_id, parsed.context, self._tidy(value) if value is not None else None, parsed.id

	def create_payload(self, student_id: str, value) -> Dict[str, Any]:
		payload = {
			"studentId": student_id,
			"classId": self.context.class_id,
			"subjectId": self.subject_id or self.context.class_id,
			"teacherId": self.teacher_id,
			"schoolId": self.student_schools.get(student_id) or self.school_id,
			"examType": self.context.exam_type,
			"academicYear": self.context.academic_year,
			"academicTerm": self.context.academic_term,
			"totalMarks": value,
		}
		if self.exam_date:
			payload["examDate"] = self.exam_date
		return payload

	def update_payload(self, student_id: str, value) -> Dict[str, Any]:
		return {"totalMarks": value}


BulkCreate = Callable[[List[Dict[str, Any]]], Awaitable[Any]]
UpdateOne = Callable[[str, Dict[str, Any]], Awaitable[Any]]


async def execute_plan(
	buffer: ReconcileBuffer,
	plan: SavePlan,
	bulk_create: BulkCreate,
	update_one: UpdateOne,
) -> SaveResult:
	"""Send one bulk create and the individual updates, merging each response.

	The create batch is awaited and merged first; updates run together and
	are merged once all have settled. A failed create propagates; failed
	updates are merged around and the first failure is raised afterwards.
	"""
	result = SaveResult()

	if plan.creates:
		payloads = [buffer.create_payload(sid, buffer.entered(sid)) for sid in plan.creates]
		_LOGGER.debug(f"Bulk creating {len(payloads)} records")
		response = await bulk_create(payloads)
		result.created = buffer.records_from_response(response)
		buffer.merge(result.created)
		if len(result.created) < len(payloads):
			_LOGGER.warning(
				f"Bulk create returned {len(result.created)} records for {len(payloads)} submitted"
			)

	if plan.updates:
		_LOGGER.debug(f"Updating {len(plan.updates)} records individually")
		outcomes = await asyncio.gather(
			*(
				update_one(record_id, buffer.update_payload(sid, buffer.entered(sid)))
				for sid, record_id in plan.updates
			),
			return_exceptions=True,
		)
		for (sid, record_id), outcome in zip(plan.updates, outcomes):
			if isinstance(outcome, BaseException):
				_LOGGER.error(f"Update of record {record_id} for student {sid} failed: {outcome}")
				result.failed.append((sid, outcome))
				continue
			record = unwrap_record(outcome, *buffer.record_keys)
			if record is None:
				_LOGGER.warning(f"Update of record {record_id} returned no record")
				continue
			result.updated.append(record)
		buffer.merge(result.updated)

	if result.failed:
		raise result.failed[0][1]
	return result


class InFlightGuard:
	"""Keys with a request in flight; a second claim on the same key is refused."""

	def __init__(self) -> None:
		self._keys: Set[Hashable] = set()

	def __contains__(self, key: Hashable) -> bool:
		return key in self._keys

	def __len__(self) -> int:
		return len(self._keys)

	def claim(self, key: Hashable) -> bool:
		if key in self._keys:
			return False
		self._keys.add(key)
		return True

	def release(self, key: Hashable) -> None:
		self._keys.discard(key)
