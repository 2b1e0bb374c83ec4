"""Stored session (auth token and signed-in user)."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .const import ADMIN_ROLES

_LOGGER = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class SessionStore:
	"""Holds the bearer token and user, optionally persisted as JSON.

	Without a path the session lives in memory only.
	"""

	def __init__(self, path: Optional[Path] = None) -> None:
		self._path = Path(path) if path else None
		self._data: Optional[Dict[str, Any]] = None

	def _load(self) -> Dict[str, Any]:
		if self._data is not None:
			return self._data
		self._data = {}
		if self._path and self._path.exists():
			try:
				with open(self._path, "r", encoding="utf-8") as f:
					stored = json.load(f)
				if isinstance(stored, dict):
					self._data = stored
			except (OSError, json.JSONDecodeError) as e:
				_LOGGER.warning(f"Could not read session file {self._path}: {e}")
		return self._data

	def _save(self) -> None:
		if not self._path:
			return
		self._path.parent.mkdir(parents=True, exist_ok=True)
		with open(self._path, "w", encoding="utf-8") as f:
			json.dump(self._data or {}, f)

	@property
	def token(self) -> Optional[str]:
		return self._load().get(TOKEN_KEY)

	@token.setter
	def token(self, value: Optional[str]) -> None:
		data = self._load()
		if value:
			data[TOKEN_KEY] = value
		else:
			data.pop(TOKEN_KEY, None)
		self._save()

	@property
	def user(self) -> Optional[Dict[str, Any]]:
		user = self._load().get(USER_KEY)
		return user if isinstance(user, dict) else None

	@user.setter
	def user(self, value: Optional[Dict[str, Any]]) -> None:
		data = self._load()
		if value:
			data[USER_KEY] = value
		else:
			data.pop(USER_KEY, None)
		self._save()

	@property
	def role(self) -> Optional[str]:
		user = self.user
		return user.get("role") if user else None

	def is_authenticated(self) -> bool:
		return bool(self.token)

	def is_admin(self) -> bool:
		return self.role in ADMIN_ROLES

	def has_role(self, role: str) -> bool:
		return self.role == role

	def clear(self) -> None:
		"""Drop token and user."""
		self._data = {}
		self._save()
		_LOGGER.debug("Session cleared")
