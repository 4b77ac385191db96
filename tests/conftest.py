"""Shared test fixtures."""

from pathlib import Path

import pytest

import jbridge.providers.jira as jira_module
import jbridge.settings as settings_module
from jbridge.metadata import MetadataCache
from jbridge.session import JiraSession
from jbridge.settings import TrackerSettings

BASE_URL = "https://jira.example.com"
API = f"{BASE_URL}/rest/api/2"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config file at an empty temp location and drop JBRIDGE_* env vars."""
    config_path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr(settings_module, "CONFIG_PATH", config_path)
    for name in ("JBRIDGE_URL", "JBRIDGE_LOGIN", "JBRIDGE_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    settings_module._load_toml.cache_clear()
    yield config_path
    settings_module._load_toml.cache_clear()


@pytest.fixture(autouse=True)
def reset_provider():
    yield
    jira_module.free_provider()


@pytest.fixture
def settings() -> TrackerSettings:
    return TrackerSettings(url=BASE_URL, login="qa-bot", password="s3cret")


@pytest.fixture
def session(settings: TrackerSettings) -> JiraSession:
    s = JiraSession.open(settings)
    yield s
    s.close()


@pytest.fixture
def metadata(session: JiraSession) -> MetadataCache:
    return MetadataCache(session)


@pytest.fixture
def project_node() -> dict:
    return {
        "id": "10000",
        "key": "QA",
        "name": "Quality Assurance",
        "issueTypes": [
            {"id": "1", "name": "Bug", "subtask": False},
            {"id": "3", "name": "Task", "subtask": False},
            {"id": "5", "name": "Sub-task", "subtask": True},
        ],
    }


@pytest.fixture
def priority_nodes() -> list[dict]:
    return [
        {"id": "1", "name": "Highest", "self": f"{API}/priority/1"},
        {"id": "3", "name": "Medium", "self": f"{API}/priority/3"},
    ]


def _createmeta_project(key: str) -> dict:
    return {
        "key": key,
        "issuetypes": [
            {
                "id": "1",
                "name": "Bug",
                "fields": {
                    "summary": {"required": True, "name": "Summary", "schema": {"type": "string"}},
                    "customfield_10010": {
                        "required": False,
                        "name": "Severity",
                        "schema": {"type": "option", "custom": "com.atlassian.jira.plugin.system.customfieldtypes:select"},
                        "allowedValues": [{"id": "100", "value": "Critical"}, {"id": "101", "value": "Minor"}],
                    },
                    "customfield_10020": {"required": False, "name": "Build", "schema": {"type": "string"}},
                },
            },
        ],
    }


@pytest.fixture
def createmeta_body() -> dict:
    return {"projects": [_createmeta_project("QA")]}


@pytest.fixture
def createmeta_project():
    """Factory for a createmeta project entry with a Bug type and one option field."""
    return _createmeta_project
