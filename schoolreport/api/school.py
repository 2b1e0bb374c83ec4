"""Endpoints for the signed-in user's own school."""

import logging
from typing import Any, Dict

from ..client import SchoolReportClient
from ..exceptions import SchoolReportAPIError, SchoolReportAuthError
from .base import call

_LOGGER = logging.getLogger(__name__)

ADMIN_ONLY_MESSAGE = (
	"Only administrators can create schools. "
	"Please contact your system administrator to create a school for you."
)


async def get_my_school(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/schools/my-school", "get my school")


async def get_my_school_stats(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/schools/my-school/stats", "get my school stats")


async def create_my_school(client: SchoolReportClient, school_data: Dict[str, Any]) -> Any:
	"""Create a school. Permission failures get a message a teacher can act on."""
	try:
		return await call(client, _LOGGER, "POST", "/schools", "create my school", json_body=school_data)
	except SchoolReportAPIError as e:
		if e.status in (401, 403):
			raise SchoolReportAuthError(ADMIN_ONLY_MESSAGE, status=e.status) from e
		raise


async def update_my_school(client: SchoolReportClient, school_data: Dict[str, Any]) -> Any:
	return await call(client, _LOGGER, "PUT", "/schools/my-school", "update my school", json_body=school_data)


async def get_school_by_id(client: SchoolReportClient, school_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/schools/{school_id}", "get school by ID")
