"""Main HTTP client for the school report backend."""

import asyncio
import inspect
import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Dict, Optional, Union
from urllib.parse import unquote

import aiohttp

from .config import ClientConfig
from .const import DEFAULT_HEADERS, SMALL_DOWNLOAD_BYTES
from .exceptions import (
	SchoolReportAPIError,
	SchoolReportAuthError,
	SchoolReportConnectionError,
	SchoolReportDataError,
	SchoolReportExportError,
)
from .session import SessionStore

_LOGGER = logging.getLogger(__name__)

UnauthorizedCallback = Callable[[], Union[None, Awaitable[None]]]

_FILENAME_STAR_RE = re.compile(r"filename\*\s*=\s*(?:[\w-]+'[^']*')?([^;]+)", re.IGNORECASE)
_FILENAME_RE = re.compile(r'filename\s*=\s*"?([^";]+)"?', re.IGNORECASE)


@dataclass
class Download:
	"""A binary file returned by an export endpoint."""
	content: bytes
	filename: str
	content_type: Optional[str] = None

	def __len__(self) -> int:
		return len(self.content)


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
	"""Extract a filename from a Content-Disposition header."""
	if not header:
		return None
	match = _FILENAME_STAR_RE.search(header)
	if match:
		return unquote(match.group(1).strip().strip('"'))
	match = _FILENAME_RE.search(header)
	if match:
		return match.group(1).strip()
	return None


def _encode_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
	"""Query values must be strings; booleans go over the wire lowercase."""
	if not params:
		return None
	encoded = {}
	for key, value in params.items():
		if isinstance(value, bool):
			encoded[key] = "true" if value else "false"
		else:
			encoded[key] = str(value)
	return encoded


class SchoolReportClient:
	"""Client for interacting with the school report REST API."""

	def __init__(
		self,
		config: Optional[ClientConfig] = None,
		session: Optional[aiohttp.ClientSession] = None,
		store: Optional[SessionStore] = None,
		on_unauthorized: Optional[UnauthorizedCallback] = None,
	):
		"""Initialise the client.

		Args:
			config: Base URL and timeout. Defaults to ClientConfig().
			session: Optional aiohttp session. If None, a new one will be created.
			store: Where the bearer token lives. Defaults to one built from config.
			on_unauthorized: Called after a 401 has cleared the stored session,
				typically to send the user back to the sign-in flow.
		"""
		self.config = config or ClientConfig()
		self.store = store or SessionStore(self.config.session_file)
		self.on_unauthorized = on_unauthorized
		self._session = session
		self._own_session = session is None
		self._timeout = aiohttp.ClientTimeout(total=self.config.timeout)

	async def __aenter__(self):
		"""Async context manager entry."""
		if self._own_session and self._session is None:
			self._session = aiohttp.ClientSession()
		return self

	async def __aexit__(self, exc_type, exc_val, exc_tb):
		"""Async context manager exit."""
		await self.close()

	async def close(self) -> None:
		if self._own_session and self._session:
			await self._session.close()
			self._session = None

	@property
	def base_url(self) -> str:
		return self.config.base_url

	def url(self, path: str) -> str:
		return f"{self.base_url}/{path.lstrip('/')}"

	def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
		headers = DEFAULT_HEADERS.copy()
		token = self.store.token
		if token:
			headers["Authorization"] = f"Bearer {token}"
		if extra:
			headers.update(extra)
		return headers

	def _require_session(self) -> aiohttp.ClientSession:
		if self._session is None:
			if not self._own_session:
				raise SchoolReportConnectionError("HTTP session has been closed")
			self._session = aiohttp.ClientSession()
		return self._session

	async def _handle_unauthorized(self) -> None:
		"""Tear down the stored session and notify the application."""
		_LOGGER.warning("Received 401 from backend, clearing stored session")
		self.store.clear()
		if self.on_unauthorized is None:
			return
		result = self.on_unauthorized()
		if inspect.isawaitable(result):
			await result

	@staticmethod
	def _decode_body(text: str, content_type: str) -> Any:
		"""Parse a response body, tolerating a wrong content-type header."""
		stripped = text.strip()
		if not stripped:
			return None
		if "json" in content_type or stripped.startswith("{") or stripped.startswith("["):
			try:
				return json.loads(stripped)
			except json.JSONDecodeError as e:
				if "json" in content_type:
					_LOGGER.error(f"Failed to parse response as JSON: {stripped[:200]}...")
					raise SchoolReportDataError(f"Invalid JSON response: {e}") from e
		return text

	@staticmethod
	def _api_error(method: str, path: str, status: int, body: Any) -> SchoolReportAPIError:
		err = SchoolReportAPIError(f"{method} {path} failed: HTTP {status}", status=status, body=body)
		if err.server_message:
			err.args = (err.server_message,)
		return err

	async def request(
		self,
		method: str,
		path: str,
		params: Optional[Dict[str, Any]] = None,
		json_body: Any = None,
		headers: Optional[Dict[str, str]] = None,
	) -> Any:
		"""Issue one request and return the parsed JSON body.

		Raises:
			SchoolReportAuthError: on 401, after the stored session is cleared.
			SchoolReportAPIError: on any other non-2xx status.
			SchoolReportConnectionError: when no response was received.
			SchoolReportDataError: when a JSON body cannot be parsed.
		"""
		session = self._require_session()
		url = self.url(path)
		_LOGGER.debug(f"{method} {url} params={params}")

		try:
			async with session.request(
				method,
				url,
				params=_encode_params(params),
				json=json_body,
				headers=self._headers(headers),
				timeout=self._timeout,
			) as resp:
				text = await resp.text()
				content_type = resp.headers.get("content-type", "").lower()
				status = resp.status
		except aiohttp.ClientError as e:
			raise SchoolReportConnectionError(f"Connection error: {e}") from e
		except asyncio.TimeoutError as e:
			raise SchoolReportConnectionError(f"Request to {url} timed out") from e

		if status == 401:
			await self._handle_unauthorized()
			body = self._decode_error_body(text, content_type)
			err = SchoolReportAuthError("Session expired or unauthorised", status=status, body=body)
			if err.server_message:
				err.args = (err.server_message,)
			raise err

		if status >= 400:
			body = self._decode_error_body(text, content_type)
			_LOGGER.debug(f"{method} {url} -> HTTP {status}: {str(body)[:200]}")
			raise self._api_error(method, path, status, body)

		data = self._decode_body(text, content_type)
		_LOGGER.debug(f"{method} {url} -> HTTP {status}")
		return data

	def _decode_error_body(self, text: str, content_type: str) -> Any:
		try:
			return self._decode_body(text, content_type)
		except SchoolReportDataError:
			return text

	async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
		return await self.request("GET", path, params=params)

	async def post(self, path: str, json_body: Any = None, params: Optional[Dict[str, Any]] = None) -> Any:
		return await self.request("POST", path, params=params, json_body=json_body)

	async def put(self, path: str, json_body: Any = None) -> Any:
		return await self.request("PUT", path, json_body=json_body)

	async def delete(self, path: str) -> Any:
		return await self.request("DELETE", path)

	async def download(
		self,
		path: str,
		params: Optional[Dict[str, Any]] = None,
		default_name: str = "report",
		extension: str = ".xlsx",
	) -> Download:
		"""Fetch a binary export.

		Some export endpoints answer errors with a small JSON body and a 200
		status. Such a body is turned into SchoolReportExportError here so that
		callers only ever see a real file or an exception.
		"""
		session = self._require_session()
		url = self.url(path)
		_LOGGER.debug(f"Downloading {url} params={params}")

		try:
			async with session.get(
				url,
				params=_encode_params(params),
				headers=self._headers({"Accept": "*/*"}),
				timeout=self._timeout,
			) as resp:
				content = await resp.read()
				status = resp.status
				content_type = resp.headers.get("content-type", "").lower()
				disposition = resp.headers.get("content-disposition")
		except aiohttp.ClientError as e:
			raise SchoolReportConnectionError(f"Connection error: {e}") from e
		except asyncio.TimeoutError as e:
			raise SchoolReportConnectionError(f"Download from {url} timed out") from e

		if status == 401:
			await self._handle_unauthorized()
			raise SchoolReportAuthError("Session expired or unauthorised", status=status)

		embedded = self._sniff_json_error(content, content_type)
		if status >= 400:
			raise SchoolReportExportError(
				embedded or f"Export failed: HTTP {status}", status=status, body=content
			)
		if embedded is not None:
			_LOGGER.warning(f"Export from {url} returned a JSON error instead of a file: {embedded}")
			raise SchoolReportExportError(embedded, status=status, body=content)

		filename = filename_from_disposition(disposition)
		if not filename:
			filename = f"{default_name}_{date.today().isoformat()}{extension}"
		_LOGGER.debug(f"Downloaded {len(content)} bytes as {filename}")
		return Download(content=content, filename=filename, content_type=content_type or None)

	@staticmethod
	def _sniff_json_error(content: bytes, content_type: str) -> Optional[str]:
		"""Return the embedded message when a download body is really a JSON error."""
		if "json" not in content_type and len(content) >= SMALL_DOWNLOAD_BYTES:
			return None
		try:
			payload = json.loads(content.decode("utf-8"))
		except (UnicodeDecodeError, json.JSONDecodeError):
			return None
		if not isinstance(payload, dict):
			return None
		message = payload.get("message") or payload.get("error")
		if isinstance(message, str) and message:
			return message
		return "Export failed: server returned an error instead of a file"
