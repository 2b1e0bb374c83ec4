"""Shared request helper for the resource API modules."""

import logging
from typing import Any, Dict, Optional

from ..client import SchoolReportClient
from ..exceptions import SchoolReportError


async def call(
	client: SchoolReportClient,
	logger: logging.Logger,
	method: str,
	path: str,
	action: str,
	params: Optional[Dict[str, Any]] = None,
	json_body: Any = None,
	log_body: bool = True,
) -> Any:
	"""Log, send one request, log the outcome and rethrow failures untouched."""
	logger.debug(f"Making {action} request to: {client.url(path)}")
	if params:
		logger.debug(f"{action} params: {params}")
	if json_body is not None and log_body:
		logger.debug(f"{action} data being sent: {json_body}")
	try:
		data = await client.request(method, path, params=params, json_body=json_body)
	except SchoolReportError as e:
		logger.error(f"{action} API error: {e}")
		raise
	logger.debug(f"{action} response: {data}")
	return data
