"""Comment endpoints."""

import logging
from typing import Any, Dict

from ..client import SchoolReportClient
from ..validation import validate_comment
from .base import call

_LOGGER = logging.getLogger(__name__)


async def create_comment(client: SchoolReportClient, comment_data: Dict[str, Any]) -> Any:
	"""Post a comment; the fields required for the commenter role are checked first."""
	validated = validate_comment(comment_data)
	return await call(client, _LOGGER, "POST", "/comments", "create comment", json_body=validated)


async def get_comments(client: SchoolReportClient) -> Any:
	return await call(client, _LOGGER, "GET", "/comments", "get comments")


async def get_comment_by_id(client: SchoolReportClient, comment_id: str) -> Any:
	return await call(client, _LOGGER, "GET", f"/comments/{comment_id}", "get comment")


async def get_all_comments_admin(client: SchoolReportClient) -> Any:
	"""Every comment across schools, with teacher and class populated."""
	return await call(client, _LOGGER, "GET", "/comments/admin/all", "get all comments (admin)")
