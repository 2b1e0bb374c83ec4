"""Flatten report payloads into tables and write them as XLSX or CSV."""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from .client import Download
from .const import NOT_AVAILABLE
from .utils import (
	Lookup,
	class_name,
	extract_subject_name,
	get_submitter_role,
	normalize_date,
	pick,
	student_name,
	teacher_name,
	unwrap_list,
)

_LOGGER = logging.getLogger(__name__)

MARKS_HEADERS = (
	"Student", "Class", "Subject", "Teacher", "Exam Type",
	"Academic Year", "Academic Term", "Exam Date", "Total Marks",
)
ATTENDANCE_HEADERS = ("Student", "Class", "Date", "Status", "Remarks")
COMMENTS_HEADERS = (
	"Teacher", "Role", "Class", "Subject", "Number of Students",
	"Success Story", "Challenge", "Model Lesson", "Lesson Observation", "Date",
)

_SHEET_TITLE_INVALID = re.compile(r"[\[\]:*?/\\]")
MAX_SHEET_TITLE = 31
MAX_COLUMN_WIDTH = 60


@dataclass
class Table:
	"""A rectangular table ready for a spreadsheet."""
	title: str
	headers: Sequence[str]
	rows: List[Dict[str, Any]] = field(default_factory=list)

	def values(self) -> List[List[Any]]:
		return [[row.get(h, NOT_AVAILABLE) for h in self.headers] for row in self.rows]


def _day(value: Any) -> str:
	return normalize_date(value) or NOT_AVAILABLE


def flatten_marks(report: Any, students: Lookup = None, classes: Lookup = None, title: str = "Marks") -> Table:
	table = Table(title=title, headers=MARKS_HEADERS)
	for mark in unwrap_list(report, "marks"):
		table.rows.append({
			"Student": student_name(mark, students),
			"Class": class_name(mark, classes),
			"Subject": extract_subject_name(mark, classes),
			"Teacher": teacher_name(mark),
			"Exam Type": pick(mark, "examType"),
			"Academic Year": pick(mark, "academicYear"),
			"Academic Term": pick(mark, "academicTerm"),
			"Exam Date": _day(mark.get("examDate")),
			"Total Marks": pick(mark, "totalMarks"),
		})
	return table


def flatten_attendance(
	report: Any, students: Lookup = None, classes: Lookup = None, title: str = "Attendance"
) -> Table:
	table = Table(title=title, headers=ATTENDANCE_HEADERS)
	for record in unwrap_list(report, "attendance", "records"):
		table.rows.append({
			"Student": student_name(record, students),
			"Class": class_name(record, classes),
			"Date": _day(record.get("date")),
			"Status": pick(record, "status"),
			"Remarks": pick(record, "remarks", default=""),
		})
	return table


def flatten_comments(report: Any, classes: Lookup = None, title: str = "Comments") -> Table:
	table = Table(title=title, headers=COMMENTS_HEADERS)
	for comment in unwrap_list(report, "comments"):
		table.rows.append({
			"Teacher": teacher_name(comment),
			"Role": get_submitter_role(comment),
			"Class": class_name(comment, classes),
			"Subject": extract_subject_name(comment, classes),
			"Number of Students": pick(comment, "numberOfStudents"),
			"Success Story": pick(comment, "successStory", default=""),
			"Challenge": pick(comment, "challenge", default=""),
			"Model Lesson": pick(comment, "modelLesson", default=""),
			"Lesson Observation": pick(comment, "lessonObservation", default=""),
			"Date": _day(comment.get("date") or comment.get("createdAt")),
		})
	return table


FLATTENERS = {
	"marks": flatten_marks,
	"attendance": flatten_attendance,
	"comments": flatten_comments,
}


def _sheet_title(title: str, used: set) -> str:
	base = _SHEET_TITLE_INVALID.sub("_", title).strip() or "Sheet"
	base = base[:MAX_SHEET_TITLE]
	candidate = base
	counter = 2
	while candidate.lower() in used:
		suffix = f" ({counter})"
		candidate = base[:MAX_SHEET_TITLE - len(suffix)] + suffix
		counter += 1
	used.add(candidate.lower())
	return candidate


def write_xlsx(tables: Iterable[Table]) -> bytes:
	"""Build a workbook with one sheet per table and return its bytes."""
	workbook = Workbook()
	workbook.remove(workbook.active)
	used: set = set()
	header_font = Font(bold=True)

	for table in tables:
		sheet = workbook.create_sheet(_sheet_title(table.title, used))
		sheet.append(list(table.headers))
		for cell in sheet[1]:
			cell.font = header_font
			cell.alignment = Alignment(vertical="center")
		for row in table.values():
			sheet.append(row)
		for index, header in enumerate(table.headers, start=1):
			longest = max([len(str(header))] + [len(str(r[index - 1])) for r in table.values()])
			sheet.column_dimensions[get_column_letter(index)].width = min(longest + 2, MAX_COLUMN_WIDTH)
		sheet.freeze_panes = "A2"

	if not workbook.sheetnames:
		workbook.create_sheet("Report")

	buffer = io.BytesIO()
	workbook.save(buffer)
	return buffer.getvalue()


def write_csv(table: Table) -> str:
	"""CSV text; fields with commas, quotes or newlines are quoted and quotes doubled."""
	output = io.StringIO()
	writer = csv.writer(output, lineterminator="\n")
	writer.writerow(table.headers)
	writer.writerows(table.values())
	return output.getvalue()


def export_report_xlsx(
	report: Any,
	kind: str,
	students: Lookup = None,
	classes: Lookup = None,
	title: Optional[str] = None,
) -> bytes:
	"""Flatten one report ("marks", "attendance" or "comments") into a one-sheet workbook."""
	try:
		flatten = FLATTENERS[kind]
	except KeyError:
		raise ValueError(f"Unknown report kind {kind!r}; expected one of {sorted(FLATTENERS)}") from None
	title = title or kind.capitalize()
	if kind == "comments":
		table = flatten(report, classes=classes, title=title)
	else:
		table = flatten(report, students=students, classes=classes, title=title)
	_LOGGER.debug(f"Exporting {len(table.rows)} {kind} rows")
	return write_xlsx([table])


def default_filename(prefix: str, extension: str = ".xlsx") -> str:
	return f"{prefix}_{date.today().isoformat()}{extension}"


def save_download(
	data: Union[Download, bytes, str],
	directory: Union[str, Path] = ".",
	filename: Optional[str] = None,
) -> Path:
	"""Write an export to disk and return the path."""
	if isinstance(data, Download):
		content = data.content
		filename = filename or data.filename
	elif isinstance(data, str):
		content = data.encode("utf-8")
	else:
		content = data
	if not filename:
		filename = default_filename("report")
	target = Path(directory) / Path(filename).name
	target.parent.mkdir(parents=True, exist_ok=True)
	target.write_bytes(content)
	_LOGGER.info(f"Saved {len(content)} bytes to {target}")
	return target
