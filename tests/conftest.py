"""Shared fixtures for the school report tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from schoolreport.session import SessionStore

TEACHER_ID = "64b000000000000000000001"
SCHOOL_ID = "64b0000000000000000000a1"
CLASS_ID = "64b0000000000000000000c1"
STUDENT_IDS = [
	"64b0000000000000000000f1",
	"64b0000000000000000000f2",
	"64b0000000000000000000f3",
]


@pytest.fixture
def mock_client():
	"""A client stand-in whose request coroutine the test controls."""
	client = MagicMock()
	client.request = AsyncMock(return_value=None)
	client.download = AsyncMock()
	client.url = MagicMock(side_effect=lambda path: f"http://test{path}")
	client.store = SessionStore()
	return client


@pytest.fixture
def roster():
	return [
		{"_id": sid, "studentName": f"Student {n}", "classId": CLASS_ID, "schoolId": SCHOOL_ID}
		for n, sid in enumerate(STUDENT_IDS, start=1)
	]
