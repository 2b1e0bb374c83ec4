"""Attendance and marks aggregation over fetched records."""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .const import STATUS_ABSENT, STATUS_EXCUSED, STATUS_LATE, STATUS_PRESENT
from .utils import Lookup, index_by_id, normalize_date, ref_id


def round_half_up(value: float) -> int:
	"""Round .5 away from zero for positive values, as percentage displays expect."""
	return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
	"""Whole-number percentage; 0 when there is nothing to divide by."""
	if whole <= 0:
		return 0
	return round_half_up(part / whole * 100)


@dataclass
class AttendanceSummary:
	total: int = 0
	present: int = 0
	absent: int = 0
	late: int = 0
	excused: int = 0
	attendance_rate: int = 0

	def as_dict(self) -> Dict[str, int]:
		return {
			"total": self.total,
			"present": self.present,
			"absent": self.absent,
			"late": self.late,
			"excused": self.excused,
			"attendanceRate": self.attendance_rate,
		}


@dataclass
class ClassAttendanceSummary(AttendanceSummary):
	class_id: Optional[str] = None
	class_name: Optional[str] = None


@dataclass
class MarksSummary:
	count: int = 0
	average: float = 0.0
	highest: Optional[float] = None
	lowest: Optional[float] = None


def _status(record: Mapping[str, Any]) -> Optional[str]:
	status = record.get("status")
	return status.strip().lower() if isinstance(status, str) else None


def on_date(records: Iterable[Mapping[str, Any]], target_date: Any) -> List[Mapping[str, Any]]:
	"""Records whose calendar day equals target_date; all records when it is empty."""
	day = normalize_date(target_date)
	if day is None:
		return list(records)
	return [r for r in records if normalize_date(r.get("date")) == day]


def filter_by_date_window(
	records: Iterable[Mapping[str, Any]],
	start: Any = None,
	end: Any = None,
) -> List[Mapping[str, Any]]:
	"""Keep records whose day falls in [start, end]; either bound may be open."""
	start_day = normalize_date(start)
	end_day = normalize_date(end)
	kept = []
	for record in records:
		day = normalize_date(record.get("date"))
		if (start_day or end_day) and day is None:
			continue
		if start_day and day < start_day:
			continue
		if end_day and day > end_day:
			continue
		kept.append(record)
	return kept


def _fill(summary: AttendanceSummary, records: Iterable[Mapping[str, Any]]) -> AttendanceSummary:
	for record in records:
		summary.total += 1
		status = _status(record)
		if status == STATUS_PRESENT:
			summary.present += 1
		elif status == STATUS_ABSENT:
			summary.absent += 1
		elif status == STATUS_LATE:
			summary.late += 1
		elif status == STATUS_EXCUSED:
			summary.excused += 1
	summary.attendance_rate = percentage(summary.present, summary.total)
	return summary


def summarize_attendance(records: Iterable[Mapping[str, Any]], target_date: Any = None) -> AttendanceSummary:
	"""Count statuses for one day (or all records) and derive the attendance rate.

	Records with an unknown status still count towards the total.
	"""
	return _fill(AttendanceSummary(), on_date(records, target_date))


def summarize_by_class(
	records: Iterable[Mapping[str, Any]],
	target_date: Any = None,
	classes: Lookup = None,
) -> List[ClassAttendanceSummary]:
	"""One summary per class id, in first-seen order. Classes are not weighted."""
	grouped: Dict[Optional[str], List[Mapping[str, Any]]] = {}
	for record in on_date(records, target_date):
		grouped.setdefault(ref_id(record.get("classId")), []).append(record)

	class_index = index_by_id(classes)
	summaries = []
	for class_id, class_records in grouped.items():
		name = None
		populated = next((r.get("classId") for r in class_records if isinstance(r.get("classId"), Mapping)), None)
		if populated:
			name = populated.get("className")
		if name is None and class_id in class_index:
			name = class_index[class_id].get("className")
		summaries.append(_fill(ClassAttendanceSummary(class_id=class_id, class_name=name), class_records))
	return summaries


def _mark_value(mark: Mapping[str, Any]) -> Optional[float]:
	value = mark.get("totalMarks")
	if value is None or value == "" or isinstance(value, bool):
		return None
	try:
		return float(value)
	except (TypeError, ValueError):
		return None


def summarize_marks(marks: Iterable[Mapping[str, Any]]) -> MarksSummary:
	"""Average, highest and lowest over marks with a numeric totalMarks."""
	values = [v for v in (_mark_value(m) for m in marks) if v is not None]
	if not values:
		return MarksSummary()
	return MarksSummary(
		count=len(values),
		average=round(sum(values) / len(values), 2),
		highest=max(values),
		lowest=min(values),
	)


def summarize_marks_by(
	marks: Iterable[Mapping[str, Any]],
	key: Callable[[Mapping[str, Any]], Any],
) -> Dict[Any, MarksSummary]:
	"""Group marks by key(mark), e.g. class id or subject name, and summarise each group."""
	grouped: Dict[Any, List[Mapping[str, Any]]] = {}
	for mark in marks:
		grouped.setdefault(key(mark), []).append(mark)
	return {group: summarize_marks(items) for group, items in grouped.items()}
