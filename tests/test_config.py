#!/usr/bin/env python3
"""Configuration loading and the persisted session store."""

import json

import pytest

from schoolreport.config import ClientConfig
from schoolreport.const import DEFAULT_TIMEOUT, ENV_BASE_URL, ENV_SESSION_FILE, ENV_TIMEOUT
from schoolreport.session import SessionStore


@pytest.fixture
def clean_env(monkeypatch):
	# teardown removes these even when load_dotenv set them
	for name in (ENV_BASE_URL, ENV_TIMEOUT, ENV_SESSION_FILE):
		monkeypatch.setenv(name, "")
		monkeypatch.delenv(name)
	return monkeypatch


def test_defaults():
	config = ClientConfig()
	assert config.base_url == "http://localhost:3000"
	assert config.timeout == DEFAULT_TIMEOUT
	assert config.session_file is None


def test_from_env_file(tmp_path, clean_env):
	env_file = tmp_path / ".env"
	env_file.write_text(
		f"{ENV_BASE_URL}=http://api.school.test/\n"
		f"{ENV_TIMEOUT}=30\n"
		f"{ENV_SESSION_FILE}={tmp_path / 'session.json'}\n"
	)
	config = ClientConfig.from_env(env_file)
	assert config.base_url == "http://api.school.test"
	assert config.timeout == 30
	assert config.session_file == tmp_path / "session.json"


def test_environment_wins_over_env_file(tmp_path, clean_env):
	env_file = tmp_path / ".env"
	env_file.write_text(f"{ENV_TIMEOUT}=30\n")
	clean_env.setenv(ENV_TIMEOUT, "5")
	assert ClientConfig.from_env(env_file).timeout == 5


def test_invalid_timeout_falls_back(tmp_path, clean_env):
	env_file = tmp_path / ".env"
	env_file.write_text(f"{ENV_TIMEOUT}=soon\n")
	assert ClientConfig.from_env(env_file).timeout == DEFAULT_TIMEOUT


def test_session_store_persists_to_file(tmp_path):
	path = tmp_path / "session.json"
	store = SessionStore(path)
	store.token = "jwt"
	store.user = {"_id": "u1", "role": "Admin"}

	reloaded = SessionStore(path)
	assert reloaded.token == "jwt"
	assert reloaded.is_admin()
	assert reloaded.has_role("Admin")

	reloaded.clear()
	assert json.loads(path.read_text()) == {}
	assert not SessionStore(path).is_authenticated()


def test_session_store_ignores_corrupt_file(tmp_path):
	path = tmp_path / "session.json"
	path.write_text("{not json")
	store = SessionStore(path)
	assert store.token is None
	assert store.role is None
