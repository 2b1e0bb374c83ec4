"""Analytics endpoints."""

import logging
from typing import Any

from ..client import SchoolReportClient
from .base import call

_LOGGER = logging.getLogger(__name__)


async def get_dashboard_stats(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/analytics/dashboard", "dashboard stats")


async def get_class_performance(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/analytics/class-performance", "class performance")


async def get_attendance_trends(client: SchoolReportClient, start_date: str, end_date: str) -> Any:
	return await call(
		client,
		_LOGGER,
		"GET",
		"/analytics/attendance-trends",
		"attendance trends",
		params={"startDate": start_date, "endDate": end_date},
	)


async def get_student_performance(client: SchoolReportClient, student_id: str) -> Any:
	return await call(
		client, _LOGGER, "GET", f"/analytics/student-performance/{student_id}", "student performance"
	)
