"""State shared by every page orchestrator."""

import logging
from typing import Any, Mapping, Optional

from ..client import SchoolReportClient
from ..exceptions import describe_error
from ..utils import record_id

_LOGGER = logging.getLogger(__name__)


class Page:
	"""One screen: the client, a loading flag and the messages shown to the user.

	Page methods catch SchoolReportError at the call site and record a
	user-facing message in `error` instead of raising.
	"""

	def __init__(self, client: SchoolReportClient) -> None:
		self.client = client
		self.loading = False
		self.error: Optional[str] = None
		self.success: Optional[str] = None

	def clear_messages(self) -> None:
		self.error = None
		self.success = None

	def _fail(self, err: BaseException, fallback: str) -> None:
		self.error = describe_error(err, fallback)
		self.success = None
		_LOGGER.error(f"{type(self).__name__}: {fallback} ({err})")

	def _current_user_id(self) -> Optional[str]:
		user: Any = self.client.store.user
		return record_id(user) if isinstance(user, Mapping) else None
