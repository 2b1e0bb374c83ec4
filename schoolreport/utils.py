"""Helpers for the inconsistently shaped payloads the backend returns."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .const import NOT_AVAILABLE, ROLE_MENTOR, ROLE_TEACHER

_LOGGER = logging.getLogger(__name__)

Lookup = Union[Mapping[str, Dict[str, Any]], Iterable[Dict[str, Any]], None]


def clean_filters(filters: Optional[Mapping[str, Any]], trim: bool = False) -> Dict[str, Any]:
	"""Drop empty-string, None and (with trim) whitespace-only filter values.

	With trim=True the surviving values are also stringified and stripped.
	"""
	cleaned: Dict[str, Any] = {}
	for key, value in (filters or {}).items():
		if value is None or value == "":
			continue
		if trim:
			text = str(value).strip()
			if not text:
				continue
			cleaned[key] = text
		else:
			cleaned[key] = value
	return cleaned


def record_id(record: Optional[Mapping[str, Any]]) -> Optional[str]:
	"""Return the record's own id, accepting Mongo `_id` or plain `id`."""
	if not record:
		return None
	value = record.get("_id") or record.get("id")
	return str(value) if value else None


@dataclass(frozen=True)
class Ref:
	"""A reference field that arrives either as a bare id or a populated object."""
	id: Optional[str]
	populated: Optional[Dict[str, Any]] = field(default=None, compare=False, hash=False)

	@classmethod
	def parse(cls, value: Any) -> "Ref":
		if isinstance(value, Ref):
			return value
		if isinstance(value, Mapping):
			return cls(id=record_id(value), populated=dict(value))
		if value is None or value == "":
			return cls(id=None)
		return cls(id=str(value))

	@property
	def is_populated(self) -> bool:
		return self.populated is not None

	def resolve(self, lookup: Lookup = None) -> Optional[Dict[str, Any]]:
		"""Populated object if present, else the lookup entry for the id."""
		if self.populated is not None:
			return self.populated
		if self.id is None or lookup is None:
			return None
		return index_by_id(lookup).get(self.id)


def ref_id(value: Any) -> Optional[str]:
	"""Id of a reference regardless of its shape."""
	return Ref.parse(value).id


def resolve_ref(value: Any, lookup: Lookup = None) -> Optional[Dict[str, Any]]:
	return Ref.parse(value).resolve(lookup)


def index_by_id(items: Lookup) -> Mapping[str, Dict[str, Any]]:
	"""Map records by id. Mappings are returned as they are."""
	if items is None:
		return {}
	if isinstance(items, Mapping):
		return items
	index: Dict[str, Dict[str, Any]] = {}
	for item in items:
		if isinstance(item, Mapping):
			key = record_id(item)
			if key:
				index[key] = item
	return index


def normalize_date(value: Any) -> Optional[str]:
	"""Calendar day as YYYY-MM-DD; ISO timestamps are truncated to the day."""
	if value is None or value == "":
		return None
	if isinstance(value, datetime):
		return value.date().isoformat()
	if isinstance(value, date):
		return value.isoformat()
	text = str(value).strip()
	try:
		return date.fromisoformat(text[:10]).isoformat()
	except ValueError:
		_LOGGER.debug(f"Unrecognised date value {value!r}")
		return None


def unwrap_list(payload: Any, *keys: str) -> List[Any]:
	"""Return the record list from a bare array or an envelope object.

	Envelope keys are tried in order, then the usual `data`.
	"""
	if isinstance(payload, list):
		return [item for item in payload if item]
	if isinstance(payload, Mapping):
		for key in keys + ("data",):
			value = payload.get(key)
			if isinstance(value, list):
				return [item for item in value if item]
			if isinstance(value, Mapping) and key == "data":
				return unwrap_list(value, *keys)
	return []


def unwrap_record(payload: Any, *keys: str) -> Optional[Dict[str, Any]]:
	"""Return a single record from a bare object or an envelope object."""
	if not isinstance(payload, Mapping):
		return None
	if record_id(payload):
		return dict(payload)
	for key in keys + ("data",):
		value = payload.get(key)
		if isinstance(value, Mapping):
			return dict(value)
	return None


def dig(obj: Any, path: str) -> Any:
	"""Follow a dotted path through nested mappings."""
	current = obj
	for part in path.split("."):
		if not isinstance(current, Mapping):
			return None
		current = current.get(part)
	return current


def pick(obj: Any, *paths: str, default: Any = NOT_AVAILABLE) -> Any:
	"""First non-empty scalar found along the given dotted paths."""
	for path in paths:
		value = dig(obj, path)
		if value is None or value == "" or isinstance(value, (Mapping, list)):
			continue
		return value
	return default


def _lookup_field(ref_value: Any, lookup: Lookup, name: str) -> Any:
	found = resolve_ref(ref_id(ref_value), lookup)
	return found.get(name) if found else None


def student_name(record: Mapping[str, Any], students: Lookup = None) -> str:
	value = pick(record, "studentId.studentName", "studentName", "student.studentName", default=None)
	if value is None:
		value = _lookup_field(record.get("studentId"), students, "studentName")
	return value or NOT_AVAILABLE


def class_name(record: Mapping[str, Any], classes: Lookup = None) -> str:
	value = pick(record, "classId.className", "className", "class.className", default=None)
	if value is None:
		value = _lookup_field(record.get("classId"), classes, "className")
	return value or NOT_AVAILABLE


def extract_subject_name(record: Mapping[str, Any], classes: Lookup = None) -> str:
	"""Subject lives on the subject ref, on the populated class, or on the class table."""
	value = pick(
		record,
		"subjectId.subjectName",
		"classId.subjectName",
		"subjectName",
		"subject.subjectName",
		default=None,
	)
	if value is None:
		value = _lookup_field(record.get("classId"), classes, "subjectName")
	if value is None:
		# subjectId has been seen pointing at the class document
		value = _lookup_field(record.get("subjectId"), classes, "subjectName")
	return value or NOT_AVAILABLE


def teacher_name(record: Mapping[str, Any]) -> str:
	teacher = record.get("teacherId")
	if teacher is not None and not isinstance(teacher, Mapping):
		fallback = str(teacher)
	else:
		fallback = NOT_AVAILABLE
	return pick(
		record,
		"teacherId.username",
		"teacherName",
		"teacher.username",
		"teacher.teacherName",
		"teacherId.email",
		default=fallback,
	)


def get_submitter_role(comment: Mapping[str, Any]) -> str:
	"""Work out whether a comment came from a teacher or a mentor."""
	role = pick(comment, "commenterRole", "role", "teacherId.role", "submittedBy.role", default=None)
	if isinstance(role, str) and role.strip():
		return role.strip().lower()
	if comment.get("modelLesson") or comment.get("lessonObservation"):
		return ROLE_MENTOR
	if comment.get("successStory") or comment.get("challenge"):
		return ROLE_TEACHER
	return NOT_AVAILABLE


def display_class_name(class_ref: Any, classes: Lookup = None) -> str:
	"""Class label for a classId that may be populated, an id or missing."""
	if not class_ref:
		return "No Class"
	found = resolve_ref(class_ref, classes)
	if found is None:
		return str(class_ref)
	return found.get("className") or found.get("name") or record_id(found) or "Unknown Class"


def display_teacher_name(teacher_ref: Any) -> str:
	if not teacher_ref:
		return "Unknown Teacher"
	if isinstance(teacher_ref, Mapping):
		return teacher_ref.get("username") or teacher_ref.get("email") or record_id(teacher_ref) or "Unknown Teacher"
	return str(teacher_ref)


def display_school_id(school_ref: Any) -> Optional[str]:
	if not school_ref:
		return None
	if isinstance(school_ref, Mapping):
		return record_id(school_ref) or school_ref.get("name") or "Unknown School"
	return str(school_ref)


def display_student_name(student: Optional[Mapping[str, Any]]) -> str:
	if not student:
		return "Unknown Student"
	name = student.get("studentName")
	if isinstance(name, Mapping):
		return name.get("name") or record_id(name) or "Unknown Student"
	return name or "Unknown Student"
