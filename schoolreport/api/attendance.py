"""Attendance endpoints."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..client import SchoolReportClient
from ..utils import clean_filters
from .base import call

_LOGGER = logging.getLogger(__name__)


async def create_attendance(client: SchoolReportClient, attendance_data: Dict[str, Any]) -> Any:
	return await call(client, _LOGGER, "POST", "/attendance", "create attendance", json_body=attendance_data)


async def create_bulk_attendance(client: SchoolReportClient, records: List[Dict[str, Any]]) -> Any:
	"""Submit many records at once; the backend dedupes on (student, class, date)."""
	return await call(
		client, _LOGGER, "POST", "/attendance/bulk", "bulk attendance", json_body={"records": list(records)}
	)


async def get_attendance_records(client: SchoolReportClient, filters: Optional[Mapping[str, Any]] = None) -> Any:
	"""List records; empty filter values are dropped so the backend never sees blank ids."""
	return await call(
		client, _LOGGER, "GET", "/attendance", "get attendance records", params=clean_filters(filters)
	)


async def get_attendance_by_class(client: SchoolReportClient, class_id: str, date: Optional[str] = None) -> Any:
	return await call(
		client,
		_LOGGER,
		"GET",
		f"/attendance/class/{class_id}",
		"get attendance by class",
		params=clean_filters({"date": date}),
	)


async def get_attendance_by_student(client: SchoolReportClient, student_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/attendance/student/{student_id}", "get attendance by student")


async def get_attendance_summary(client: SchoolReportClient, class_id: str, date: Optional[str] = None) -> Any:
	return await call(
		client,
		_LOGGER,
		"GET",
		f"/attendance/class/{class_id}/summary",
		"get attendance summary",
		params=clean_filters({"date": date}),
	)


async def update_attendance(client: SchoolReportClient, attendance_id: str, attendance_data: Dict[str, Any]) -> Any:
	return await call(
		client, _LOGGER, "PUT", f"/attendance/{attendance_id}", "update attendance", json_body=attendance_data
	)


async def delete_attendance(client: SchoolReportClient, attendance_id: str) -> Any:
	return await call(client, _LOGGER, "DELETE", f"/attendance/{attendance_id}", "delete attendance")
