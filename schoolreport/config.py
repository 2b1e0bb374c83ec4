"""Client configuration loaded from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from .const import (
	DEFAULT_BASE_URL,
	DEFAULT_TIMEOUT,
	ENV_BASE_URL,
	ENV_SESSION_FILE,
	ENV_TIMEOUT,
)

_LOGGER = logging.getLogger(__name__)


@dataclass
class ClientConfig:
	"""Settings for SchoolReportClient."""
	base_url: str = DEFAULT_BASE_URL
	timeout: float = DEFAULT_TIMEOUT
	session_file: Optional[Path] = None

	def __post_init__(self) -> None:
		self.base_url = self.base_url.rstrip("/")
		if self.session_file is not None:
			self.session_file = Path(self.session_file)

	@classmethod
	def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "ClientConfig":
		"""Build a config from environment variables, loading a .env file first.

		Variables already set in the environment win over the .env file.
		"""
		if env_file is not None:
			load_dotenv(env_file)
		else:
			load_dotenv()

		timeout_raw = os.getenv(ENV_TIMEOUT)
		timeout: float = DEFAULT_TIMEOUT
		if timeout_raw:
			try:
				timeout = float(timeout_raw)
			except ValueError:
				_LOGGER.warning(f"Ignoring invalid {ENV_TIMEOUT}={timeout_raw!r}, using {DEFAULT_TIMEOUT}s")

		session_file = os.getenv(ENV_SESSION_FILE)
		return cls(
			base_url=os.getenv(ENV_BASE_URL) or DEFAULT_BASE_URL,
			timeout=timeout,
			session_file=Path(session_file) if session_file else None,
		)
