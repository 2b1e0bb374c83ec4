"""Student endpoints."""

import logging
from typing import Any, Dict

from ..client import SchoolReportClient
from .base import call

_LOGGER = logging.getLogger(__name__)


async def create_student(client: SchoolReportClient, student_data: Dict[str, Any]) -> Any:
	return await call(client, _LOGGER, "POST", "/students", "create student", json_body=student_data)


async def get_students(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/students", "get students")


async def get_students_by_class(client: SchoolReportClient, class_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/students/class/{class_id}", "get students by class")


async def get_student_by_id(client: SchoolReportClient, student_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/students/{student_id}", "get student")
