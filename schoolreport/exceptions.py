"""Custom exceptions for the school report client."""

from typing import Any, Optional


class SchoolReportError(Exception):
	"""Base exception for school report errors."""
	pass


class SchoolReportConnectionError(SchoolReportError):
	"""No response was received from the backend."""
	pass


class SchoolReportDataError(SchoolReportError):
	"""Data parsing or validation error."""
	pass


class SchoolReportValidationError(SchoolReportError):
	"""Client-side validation failed before any request was sent."""

	def __init__(self, message: str, field: Optional[str] = None):
		super().__init__(message)
		self.field = field


class SchoolReportAPIError(SchoolReportError):
	"""API request failed with a non-2xx response."""

	def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
		super().__init__(message)
		self.status = status
		self.body = body

	@property
	def server_message(self) -> Optional[str]:
		"""Message embedded in the response body, if any."""
		if isinstance(self.body, dict):
			for key in ("message", "error"):
				value = self.body.get(key)
				if isinstance(value, str) and value:
					return value
		return None


class SchoolReportAuthError(SchoolReportAPIError):
	"""Authentication failed or session expired."""
	pass


class SchoolReportExportError(SchoolReportAPIError):
	"""Backend returned a JSON error instead of the requested file."""
	pass


NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."


def describe_error(err: BaseException, fallback: str = "An unexpected error occurred.") -> str:
	"""Turn an exception into the message a page shows to the user."""
	if isinstance(err, SchoolReportConnectionError):
		return NETWORK_ERROR_MESSAGE
	if isinstance(err, SchoolReportExportError):
		return str(err) or fallback
	if isinstance(err, SchoolReportAPIError):
		if err.server_message:
			return err.server_message
		if err.status is not None:
			return f"Server error: {err.status}"
	return str(err) or fallback
