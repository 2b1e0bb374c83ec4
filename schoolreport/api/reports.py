"""Report endpoints and file exports."""

import logging
from typing import Any, Mapping, Optional

from ..client import Download, SchoolReportClient
from ..exceptions import SchoolReportError
from ..utils import clean_filters
from .base import call

_LOGGER = logging.getLogger(__name__)


async def get_attendance_report(client: SchoolReportClient, filters: Optional[Mapping[str, Any]] = None) -> Any:
	return await call(
		client, _LOGGER, "GET", "/reports/attendance", "attendance report", params=clean_filters(filters)
	)


async def get_class_performance_report(client: SchoolReportClient, class_id: str) -> Any:
	return await call(
		client, _LOGGER, "GET", f"/reports/class-performance/{class_id}", "class performance report"
	)


async def get_student_report(client: SchoolReportClient, student_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/reports/student/{student_id}", "student report")


async def export_attendance_report(
	client: SchoolReportClient, filters: Optional[Mapping[str, Any]] = None
) -> Download:
	"""Download the attendance report file rendered by the backend."""
	params = dict(clean_filters(filters), export=True)
	_LOGGER.debug(f"Exporting attendance report with filters: {params}")
	try:
		return await client.download("/reports/attendance", params=params, default_name="attendance_report")
	except SchoolReportError as e:
		_LOGGER.error(f"Export attendance report error: {e}")
		raise


async def export_class_report(client: SchoolReportClient, class_id: str) -> Download:
	_LOGGER.debug(f"Exporting class report for class: {class_id}")
	try:
		return await client.download(
			f"/reports/class-performance/{class_id}",
			params={"export": True},
			default_name=f"class_report_{class_id}",
		)
	except SchoolReportError as e:
		_LOGGER.error(f"Export class report error: {e}")
		raise


async def get_school_report(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/reports/schools", "school report")


async def get_marks_report(client: SchoolReportClient, school_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/reports/marks/{school_id}", "marks report")


async def get_school_attendance_report(client: SchoolReportClient, school_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/reports/attendance/{school_id}", "school attendance report")


async def get_class_report(client: SchoolReportClient, class_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/reports/class/{class_id}", "class report")
