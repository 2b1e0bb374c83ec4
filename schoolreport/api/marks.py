"""Marks endpoints."""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from ..client import SchoolReportClient
from ..utils import clean_filters
from ..validation import validate_bulk_marks
from .base import call

_LOGGER = logging.getLogger(__name__)


async def create_marks(client: SchoolReportClient, marks_data: Dict[str, Any]) -> Any:
	return await call(client, _LOGGER, "POST", "/marks", "create marks", json_body=marks_data)


async def create_bulk_marks(client: SchoolReportClient, marks: Iterable[Mapping[str, Any]]) -> Any:
	"""Create many marks in one call.

	Every mark must carry studentId, subjectId, teacherId, classId and schoolId
	as ObjectId strings; SchoolReportValidationError is raised before sending
	otherwise. Unlike the attendance bulk endpoint the body is the bare array.
	"""
	validated = validate_bulk_marks(marks)
	return await call(client, _LOGGER, "POST", "/marks/bulk", "bulk marks", json_body=[dict(m) for m in validated])


async def get_marks(client: SchoolReportClient, filters: Optional[Mapping[str, Any]] = None) -> Any:
	return await call(client, _LOGGER, "GET", "/marks", "get marks", params=clean_filters(filters, trim=True))


async def get_mark_by_id(client: SchoolReportClient, mark_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/marks/{mark_id}", "get mark by ID")


async def get_marks_by_class(
	client: SchoolReportClient, class_id: str, filters: Optional[Mapping[str, Any]] = None
) -> Any:
	return await call(
		client, _LOGGER, "GET", f"/marks/class/{class_id}", "get marks by class", params=clean_filters(filters)
	)


async def get_marks_by_student(client: SchoolReportClient, student_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/marks/student/{student_id}", "get marks by student")


async def update_marks(client: SchoolReportClient, mark_id: str, marks_data: Dict[str, Any]) -> Any:
	return await call(client, _LOGGER, "PUT", f"/marks/{mark_id}", "update marks", json_body=marks_data)


async def delete_marks(client: SchoolReportClient, mark_id: str) -> Any:
	return await call(client, _LOGGER, "DELETE", f"/marks/{mark_id}", "delete marks")


async def get_marks_summary(
	client: SchoolReportClient,
	class_id: str,
	exam_type: Optional[str] = None,
	academic_year: Optional[str] = None,
	academic_term: Optional[str] = None,
) -> Any:
	params = clean_filters({
		"examType": exam_type,
		"academicYear": academic_year,
		"academicTerm": academic_term,
	})
	return await call(client, _LOGGER, "GET", f"/marks/class/{class_id}/summary", "get marks summary", params=params)
