"""Class endpoints."""

import logging
from typing import Any, Dict

from ..client import SchoolReportClient
from .base import call

_LOGGER = logging.getLogger(__name__)


async def create_class(client: SchoolReportClient, class_data: Dict[str, Any]) -> Any:
	return await call(client, _LOGGER, "POST", "/classes", "create class", json_body=class_data)


async def get_classes(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/classes", "get classes")


async def get_available_schools(client: SchoolReportClient) -> Any:
	"""Schools a teacher may attach a new class to."""
	return await call(client, _LOGGER, "GET", "/classes/available-schools", "get available schools")


async def create_teacher_school(client: SchoolReportClient, school_data: Dict[str, Any]) -> Any:
	return await call(
		client, _LOGGER, "POST", "/classes/teacher-school", "create teacher school", json_body=school_data
	)


async def get_class_by_id(client: SchoolReportClient, class_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/classes/{class_id}", "get class")
